from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List
from urllib.parse import quote

from storefront.constants import (
    ALL_CATEGORIES,
    IMAGE_EXTENSIONS,
    MAX_CATEGORY_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_ITEM_NAME_LENGTH,
    MAX_PRODUCT_PRICE,
    MAX_SIDECAR_BYTES,
)
from storefront.models import Product
from storefront.utils.validators import clamp_decimal, sanitize_text

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """The catalog directory itself could not be read."""


def _default_name(stem: str) -> str:
    return stem.replace("_", " ").replace("-", " ")


def _read_sidecar(path: Path) -> Dict[str, Any]:
    """
    Sidecar <stem>.json is optional. Anything wrong with it
    (missing, too big, bad json, not an object) -> {} and defaults are used.
    """
    if not path.is_file():
        return {}
    try:
        if path.stat().st_size > MAX_SIDECAR_BYTES:
            logger.warning("Sidecar %s is too large, using defaults", path.name)
            return {}
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError, RecursionError) as e:
        logger.warning("Cannot read sidecar %s: %s", path.name, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Sidecar %s is not a JSON object, using defaults", path.name)
        return {}
    return data


def load_product(image_path: Path) -> Product:
    stem = image_path.stem
    info = _read_sidecar(image_path.with_name(f"{stem}.json"))

    name = sanitize_text(info.get("name"), MAX_ITEM_NAME_LENGTH) or _default_name(stem)
    price = clamp_decimal(info.get("price"), 0, MAX_PRODUCT_PRICE)

    return Product(
        id=stem,
        name=name,
        price=float(price),
        description=sanitize_text(info.get("description"), MAX_DESCRIPTION_LENGTH),
        category=sanitize_text(info.get("category"), MAX_CATEGORY_LENGTH),
        image=f"/products/{quote(image_path.name)}",
    )


def list_products(products_dir: str | Path) -> List[Product]:
    root = Path(products_dir)
    try:
        root.mkdir(parents=True, exist_ok=True)
        files = sorted(p for p in root.iterdir() if p.is_file())
    except OSError as e:
        raise CatalogError(f"cannot read catalog directory {root}") from e

    products = []
    for path in files:
        if path.suffix.lower() not in IMAGE_EXTENSIONS:
            continue
        products.append(load_product(path))
    return products


def find_product(products: Iterable[Product], product_id: str) -> Product | None:
    for p in products:
        if p.id == product_id:
            return p
    return None


def list_categories(products: Iterable[Product]) -> List[str]:
    categories = [ALL_CATEGORIES]
    for p in products:
        if p.category and p.category not in categories:
            categories.append(p.category)
    return categories


def filter_by_category(products: Iterable[Product], category: str) -> List[Product]:
    if not category or category == ALL_CATEGORIES:
        return list(products)
    return [p for p in products if p.category == category]
