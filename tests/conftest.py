"""Shared pytest fixtures."""
from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from storefront.config import Settings, settings
from storefront.db.sqlite import SqliteStorage
from storefront.models import Product
from storefront.services.mailer import MailMessage


class RecordingMailer:
    def __init__(self) -> None:
        self.sent: list[MailMessage] = []

    def send(self, message: MailMessage) -> None:
        self.sent.append(message)


class FailingMailer:
    """Fails for the given recipients, records the rest."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for
        self.attempted: list[MailMessage] = []

    def send(self, message: MailMessage) -> None:
        self.attempted.append(message)
        if self.fail_for is None or message.to in self.fail_for:
            raise ConnectionRefusedError("smtp.internal.example:587 refused connection")


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    products_dir = tmp_path / "products"
    products_dir.mkdir()
    return replace(
        settings,
        shop_name="Test Shop",
        currency="EUR",
        decimals=2,
        order_email="owner@shop.test",
        products_dir=str(products_dir),
        storage_path=str(tmp_path / "data" / "storefront.db"),
    )


@pytest.fixture()
def products_dir(test_settings: Settings) -> Path:
    root = Path(test_settings.products_dir)
    (root / "mug.png").write_bytes(b"\x89PNG")
    (root / "mug.json").write_text(
        json.dumps({"name": "Mug", "price": 5, "description": "A mug", "category": "kitchen"}),
        encoding="utf-8",
    )
    (root / "blue_t-shirt.jpg").write_bytes(b"\xff\xd8")
    (root / "notes.txt").write_text("not a product", encoding="utf-8")
    return root


@pytest.fixture()
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture()
def storage(tmp_path: Path) -> SqliteStorage:
    return SqliteStorage(str(tmp_path / "local.db"), namespace="42")


@pytest.fixture()
def catalog() -> list[Product]:
    return [
        Product(id="p1", name="Mug", price=5, image="/products/p1.png", category="kitchen"),
        Product(id="p2", name="Plate", price=2.5, image="/products/p2.png", category="kitchen"),
        Product(id="p3", name="Poster", price=12, image="/products/p3.png"),
    ]


@pytest.fixture()
def client(test_settings: Settings, mailer: RecordingMailer):
    from storefront.web.main import app, get_mailer, get_settings
    from storefront.web.rate_limit import limiter

    limiter.reset()
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_mailer] = lambda: mailer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        limiter.reset()


def valid_payload(**overrides) -> dict:
    payload = {
        "customerName": "Jo",
        "customerEmail": "jo@x.com",
        "items": [{"name": "Mug", "quantity": 3, "price": 5}],
        "total": 15,
    }
    payload.update(overrides)
    return payload
