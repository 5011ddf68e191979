"""
Order intake: validate -> sanitize -> recompute total -> send mail.

The total sent by the client is only checked against a sanity bound and then
dropped. Every amount that leaves this module is computed here from the
sanitized items.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from storefront.config import Settings, settings as default_settings
from storefront.constants import (
    MAX_ADDRESS_LENGTH,
    MAX_EMAIL_LENGTH,
    MAX_ITEM_NAME_LENGTH,
    MAX_ITEM_PRICE,
    MAX_ITEMS,
    MAX_NAME_LENGTH,
    MAX_ORDER_TOTAL,
    MAX_PHONE_LENGTH,
    MAX_QUANTITY,
    MIN_QUANTITY,
)
from storefront.services.mailer import MailMessage, Mailer
from storefront.utils.formatters import money
from storefront.utils.validators import (
    clamp_decimal,
    clamp_int,
    is_number,
    is_valid_email,
    sanitize_email,
    sanitize_text,
    to_decimal,
)

logger = logging.getLogger(__name__)

GENERIC_DISPATCH_ERROR = "Failed to submit order"


class OrderValidationError(Exception):
    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class DispatchError(Exception):
    """Mail could not be delivered. The message never carries transport details."""

    def __init__(self, message: str = GENERIC_DISPATCH_ERROR) -> None:
        super().__init__(message)


@dataclass(frozen=True)
class SanitizedItem:
    name: str
    quantity: int
    price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class SanitizedOrder:
    customer_name: str
    customer_email: str
    customer_phone: str
    customer_address: str
    items: Tuple[SanitizedItem, ...]

    @property
    def total(self) -> Decimal:
        return compute_total(self.items)


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


# ---------------- validate ----------------

def validate_order(payload: Any) -> List[str]:
    if not isinstance(payload, Mapping):
        return ["Invalid order payload"]

    errors: List[str] = []

    if not sanitize_text(payload.get("customerName"), MAX_NAME_LENGTH):
        errors.append("Customer name is required")

    email = sanitize_email(payload.get("customerEmail"))
    if not is_valid_email(email, MAX_EMAIL_LENGTH):
        errors.append("A valid email address is required")

    phone = payload.get("customerPhone")
    if _is_present(phone) and not sanitize_text(phone, MAX_PHONE_LENGTH):
        errors.append("Phone number is invalid")

    address = payload.get("customerAddress")
    if _is_present(address) and len(str(address).strip()) > MAX_ADDRESS_LENGTH:
        errors.append(f"Address is too long (maximum {MAX_ADDRESS_LENGTH} characters)")

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        errors.append("Order must contain at least one item")
    elif len(items) > MAX_ITEMS:
        errors.append(f"Too many items in order (maximum {MAX_ITEMS})")

    total = payload.get("total")
    if not is_number(total) or not (0 <= to_decimal(total) <= MAX_ORDER_TOTAL):
        errors.append("Order total is invalid")

    return errors


# ---------------- sanitize ----------------

def sanitize_item(raw: Any) -> SanitizedItem:
    if not isinstance(raw, Mapping):
        raw = {}
    return SanitizedItem(
        name=sanitize_text(raw.get("name"), MAX_ITEM_NAME_LENGTH),
        quantity=clamp_int(raw.get("quantity"), MIN_QUANTITY, MAX_QUANTITY, default=MIN_QUANTITY),
        price=clamp_decimal(raw.get("price"), 0, MAX_ITEM_PRICE),
    )


def sanitize_order(payload: Mapping[str, Any]) -> SanitizedOrder:
    items = payload.get("items")
    if not isinstance(items, list):
        items = []

    return SanitizedOrder(
        customer_name=sanitize_text(payload.get("customerName"), MAX_NAME_LENGTH),
        customer_email=sanitize_email(payload.get("customerEmail")),
        customer_phone=sanitize_text(payload.get("customerPhone"), MAX_PHONE_LENGTH),
        customer_address=sanitize_text(payload.get("customerAddress"), MAX_ADDRESS_LENGTH),
        items=tuple(sanitize_item(it) for it in items[:MAX_ITEMS]),
    )


def compute_total(items: Iterable[SanitizedItem]) -> Decimal:
    return sum((it.line_total for it in items), Decimal(0))


# ---------------- messages ----------------

def _items_list(order: SanitizedOrder, currency: str, decimals: int) -> str:
    return "\n".join(
        f"  - {it.name} x {it.quantity} @ {money(it.price, decimals)} {currency}"
        f" = {money(it.line_total, decimals)} {currency}"
        for it in order.items
    )


def build_owner_message(
    order: SanitizedOrder,
    s: Settings,
    received_at: Optional[datetime] = None,
) -> MailMessage:
    received = (received_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    body = "\n".join(
        [
            "New Order Received!",
            "",
            "Customer Information:",
            "---------------------",
            f"Name: {order.customer_name}",
            f"Email: {order.customer_email}",
            f"Phone: {order.customer_phone or 'Not provided'}",
            f"Address: {order.customer_address or 'Not provided'}",
            "",
            "Order Items:",
            "------------",
            _items_list(order, s.currency, s.decimals),
            "",
            f"Total: {money(order.total, s.decimals)} {s.currency}",
            "",
            "---",
            f"Order received at: {received}",
        ]
    )
    return MailMessage(
        to=s.order_email,
        subject=f"New Order from {order.customer_name}",
        body=body,
        reply_to=order.customer_email,
    )


def build_customer_message(order: SanitizedOrder, s: Settings) -> MailMessage:
    body = "\n".join(
        [
            f"Dear {order.customer_name},",
            "",
            "Thank you for your order! We have received your order and will process it shortly.",
            "",
            "Order Summary:",
            _items_list(order, s.currency, s.decimals),
            "",
            f"Total: {money(order.total, s.decimals)} {s.currency}",
            "",
            "We will contact you soon regarding payment and delivery.",
            "",
            "Best regards,",
            s.shop_name,
        ]
    )
    return MailMessage(
        to=order.customer_email,
        subject=f"Order Confirmation - {s.shop_name}",
        body=body,
    )


# ---------------- submit ----------------

def dispatch_order(order: SanitizedOrder, mailer: Mailer, s: Settings) -> None:
    messages = [build_owner_message(order, s), build_customer_message(order, s)]

    failed = 0
    for msg in messages:
        try:
            mailer.send(msg)
        except Exception:
            failed += 1
            logger.exception("Failed to send order mail: %s", msg.subject)

    if failed:
        raise DispatchError()


def submit_order(
    payload: Any,
    mailer: Mailer,
    s: Settings = default_settings,
) -> SanitizedOrder:
    errors = validate_order(payload)
    if errors:
        logger.info("Order rejected: %s", "; ".join(errors))
        raise OrderValidationError(errors)

    order = sanitize_order(payload)
    dispatch_order(order, mailer, s)

    logger.info(
        "Order from %s accepted: %d item(s), total %s %s",
        order.customer_email,
        len(order.items),
        money(order.total, s.decimals),
        s.currency,
    )
    return order
