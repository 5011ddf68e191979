from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]  # .../storefront repo root
load_dotenv(dotenv_path=ROOT_DIR / ".env")


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int | None = None) -> int | None:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return int(v)


def _get_bool(*keys: str, default: bool = False) -> bool:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "on")


def _get_path(*keys: str, default: str) -> str:
    v = _get_env(*keys, default=default)
    return str(v)


@dataclass(frozen=True)
class Settings:
    shop_name: str
    currency: str
    decimals: int
    order_email: str
    smtp_host: str
    smtp_port: int
    smtp_secure: bool
    smtp_user: str
    smtp_pass: str
    mail_from: str
    products_dir: str
    storage_path: str
    api_url: str
    bot_token: str
    host: str
    port: int
    order_rate_limit: int
    order_rate_window: int
    log_level: str


def load_settings() -> Settings:
    return Settings(
        shop_name=_get_env("SHOP_NAME", default="Simple Shop") or "Simple Shop",
        currency=_get_env("SHOP_CURRENCY", "CURRENCY", default="EUR") or "EUR",
        decimals=_get_int("DECIMALS", default=2),
        order_email=_get_env("ORDER_EMAIL", default="") or "",
        smtp_host=_get_env("SMTP_HOST", default="localhost") or "localhost",
        smtp_port=_get_int("SMTP_PORT", default=587) or 587,
        smtp_secure=_get_bool("SMTP_SECURE", default=False),
        smtp_user=_get_env("SMTP_USER", default="") or "",
        smtp_pass=_get_env("SMTP_PASS", "SMTP_PASSWORD", default="") or "",
        mail_from=_get_env("MAIL_FROM", "SMTP_USER", default="") or "",
        products_dir=_get_path("PRODUCTS_DIR", default=str(ROOT_DIR / "products")),
        storage_path=_get_path("STORAGE_PATH", default=str(ROOT_DIR / "data" / "storefront.db")),
        api_url=_get_env("STOREFRONT_API_URL", "API_URL", default="http://127.0.0.1:3000") or "",
        bot_token=_get_env("BOT_TOKEN", "TELEGRAM_BOT_TOKEN", default="") or "",
        host=_get_env("HOST", default="0.0.0.0") or "0.0.0.0",
        port=_get_int("PORT", default=3000) or 3000,
        order_rate_limit=_get_int("ORDER_RATE_LIMIT", default=10) or 10,
        order_rate_window=_get_int("ORDER_RATE_WINDOW", default=900) or 900,
        log_level=(_get_env("LOG_LEVEL", default="INFO") or "INFO").upper(),
    )


settings = load_settings()
