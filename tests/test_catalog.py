import json

import pytest

from storefront.constants import MAX_SIDECAR_BYTES
from storefront.services.catalog import (
    CatalogError,
    filter_by_category,
    find_product,
    list_categories,
    list_products,
)


def test_lists_only_images(products_dir):
    products = list_products(products_dir)
    assert [p.id for p in products] == ["blue_t-shirt", "mug"]


def test_sidecar_overrides_defaults(products_dir):
    mug = find_product(list_products(products_dir), "mug")
    assert mug.name == "Mug"
    assert mug.price == 5
    assert mug.description == "A mug"
    assert mug.category == "kitchen"
    assert mug.image == "/products/mug.png"


def test_defaults_without_sidecar(products_dir):
    shirt = find_product(list_products(products_dir), "blue_t-shirt")
    assert shirt.name == "blue t shirt"
    assert shirt.price == 0
    assert shirt.description == ""
    assert shirt.category == ""


def test_sidecar_values_are_bounded(tmp_path):
    (tmp_path / "big.webp").write_bytes(b"RIFF")
    (tmp_path / "big.json").write_text(
        json.dumps(
            {
                "id": "hijack",
                "name": "N\x00" * 300,
                "price": 5_000_000,
                "description": "d" * 2000,
                "category": "c" * 200,
            }
        ),
        encoding="utf-8",
    )
    (p,) = list_products(tmp_path)
    assert p.id == "big"
    assert len(p.name) == 200
    assert "\x00" not in p.name
    assert p.price == 1_000_000
    assert len(p.description) == 1000
    assert len(p.category) == 100


@pytest.mark.parametrize(
    "content",
    ["{broken", "[1, 2, 3]", '"just a string"'],
)
def test_malformed_sidecar_falls_back(tmp_path, content):
    (tmp_path / "cup.gif").write_bytes(b"GIF89a")
    (tmp_path / "cup.json").write_text(content, encoding="utf-8")
    (p,) = list_products(tmp_path)
    assert p.name == "cup"
    assert p.price == 0


def test_deeply_nested_sidecar_falls_back(tmp_path):
    (tmp_path / "cup.png").write_bytes(b"\x89PNG")
    (tmp_path / "cup.json").write_text("[" * 60000, encoding="utf-8")
    (p,) = list_products(tmp_path)
    assert p.name == "cup"
    assert p.price == 0
    assert p.description == ""


def test_oversized_sidecar_falls_back(tmp_path):
    (tmp_path / "cup.jpeg").write_bytes(b"\xff\xd8")
    (tmp_path / "cup.json").write_text(
        json.dumps({"name": "Cup", "description": "x" * (MAX_SIDECAR_BYTES + 1)}),
        encoding="utf-8",
    )
    (p,) = list_products(tmp_path)
    assert p.name == "cup"


def test_non_numeric_price(tmp_path):
    (tmp_path / "cup.PNG").write_bytes(b"\x89PNG")
    (tmp_path / "cup.json").write_text(json.dumps({"price": "free"}), encoding="utf-8")
    (p,) = list_products(tmp_path)
    assert p.price == 0


def test_missing_directory_is_created(tmp_path):
    root = tmp_path / "new" / "products"
    assert list_products(root) == []
    assert root.is_dir()


def test_unreadable_directory(tmp_path):
    not_a_dir = tmp_path / "file"
    not_a_dir.write_text("x", encoding="utf-8")
    with pytest.raises(CatalogError):
        list_products(not_a_dir)


def test_image_url_is_quoted(tmp_path):
    (tmp_path / "red mug.png").write_bytes(b"\x89PNG")
    (p,) = list_products(tmp_path)
    assert p.id == "red mug"
    assert p.image == "/products/red%20mug.png"


def test_categories_and_filter(catalog):
    assert list_categories(catalog) == ["all", "kitchen"]
    assert [p.id for p in filter_by_category(catalog, "all")] == ["p1", "p2", "p3"]
    assert [p.id for p in filter_by_category(catalog, "kitchen")] == ["p1", "p2"]
    assert filter_by_category(catalog, "garden") == []
