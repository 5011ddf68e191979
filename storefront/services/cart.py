from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from storefront.constants import CART_STORAGE_KEY, MAX_QUANTITY
from storefront.db.sqlite import Storage
from storefront.models import Product
from storefront.services.catalog import find_product
from storefront.utils.validators import to_decimal

logger = logging.getLogger(__name__)


class CartState(str, Enum):
    EMPTY = "empty"
    POPULATED = "populated"


@dataclass
class CartItem:
    id: str
    name: str
    price: Decimal
    quantity: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": float(self.price),
            "quantity": self.quantity,
        }


def _item_from_snapshot(raw: Any) -> Optional[CartItem]:
    if not isinstance(raw, Mapping):
        return None
    item_id = raw.get("id")
    if not isinstance(item_id, str) or not item_id:
        return None
    qty = to_decimal(raw.get("quantity"))
    if qty is None or qty < 1:
        return None
    qty = min(qty, Decimal(MAX_QUANTITY))
    price = to_decimal(raw.get("price"))
    if price is None or price < 0:
        price = Decimal(0)
    name = raw.get("name")
    return CartItem(
        id=item_id,
        name=name if isinstance(name, str) else item_id,
        price=price,
        quantity=int(qty),
    )


class CartManager:
    """
    Ordered cart with at most one line per product id.

    Commands (add / update_quantity / remove / clear) mutate the cart,
    persist the snapshot and call on_change, which is where a UI re-renders.
    Unknown ids are ignored and the command returns False.
    """

    def __init__(
        self,
        storage: Storage,
        products: Iterable[Product] = (),
        on_change: Optional[Callable[["CartManager"], None]] = None,
        storage_key: str = CART_STORAGE_KEY,
    ) -> None:
        self.storage = storage
        self.storage_key = storage_key
        self.on_change = on_change
        self._products: Tuple[Product, ...] = tuple(products)
        self._items: List[CartItem] = []

    # ---------------- state ----------------

    @property
    def items(self) -> Tuple[CartItem, ...]:
        return tuple(self._items)

    @property
    def state(self) -> CartState:
        return CartState.POPULATED if self._items else CartState.EMPTY

    def set_products(self, products: Iterable[Product]) -> None:
        self._products = tuple(products)

    def _find(self, product_id: str) -> Optional[CartItem]:
        for it in self._items:
            if it.id == product_id:
                return it
        return None

    def _changed(self) -> None:
        self.persist()
        if self.on_change is not None:
            self.on_change(self)

    # ---------------- commands ----------------

    def add(self, product_id: str) -> bool:
        product = find_product(self._products, product_id)
        if product is None:
            return False

        existing = self._find(product_id)
        if existing:
            existing.quantity += 1
        else:
            self._items.append(
                CartItem(
                    id=product.id,
                    name=product.name,
                    price=to_decimal(product.price) or Decimal(0),
                    quantity=1,
                )
            )
        self._changed()
        return True

    def update_quantity(self, product_id: str, delta: int) -> bool:
        item = self._find(product_id)
        if item is None:
            return False

        quantity = item.quantity + int(delta)
        if quantity <= 0:
            return self.remove(product_id)

        item.quantity = quantity
        self._changed()
        return True

    def remove(self, product_id: str) -> bool:
        before = len(self._items)
        self._items = [it for it in self._items if it.id != product_id]
        self._changed()
        return len(self._items) != before

    def clear(self) -> None:
        self._items = []
        self._changed()

    # ---------------- totals ----------------

    def total(self) -> Decimal:
        total = Decimal(0)
        for it in self._items:
            price = to_decimal(it.price) or Decimal(0)
            qty = to_decimal(it.quantity) or Decimal(0)
            total += price * int(qty)
        return total

    def item_count(self) -> int:
        return sum(it.quantity for it in self._items)

    # ---------------- persistence ----------------

    def persist(self) -> None:
        snapshot = json.dumps([it.to_dict() for it in self._items], ensure_ascii=False)
        self.storage.set_item(self.storage_key, snapshot)

    def restore(self) -> None:
        self._items = []
        try:
            raw = self.storage.get_item(self.storage_key)
        except sqlite3.Error as e:
            logger.warning("Cannot read saved cart: %s", e)
            return
        if not raw:
            return

        try:
            data = json.loads(raw)
        except (ValueError, RecursionError):
            logger.warning("Saved cart is not valid JSON, starting empty")
            return
        if not isinstance(data, list):
            logger.warning("Saved cart is not a list, starting empty")
            return

        for entry in data:
            item = _item_from_snapshot(entry)
            if item is None or self._find(item.id):
                continue
            self._items.append(item)

    # ---------------- checkout ----------------

    def checkout_payload(self, customer: Mapping[str, Any]) -> Dict[str, Any]:
        payload = dict(customer)
        payload["items"] = [
            {"name": it.name, "quantity": it.quantity, "price": float(it.price)}
            for it in self._items
        ]
        payload["total"] = float(self.total())
        return payload

    def complete_checkout(self) -> None:
        self.clear()
