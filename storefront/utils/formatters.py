from decimal import Decimal, ROUND_HALF_UP

from storefront.config import settings


def money(v, decimals: int | None = None) -> str:
    places = settings.decimals if decimals is None else decimals
    q = Decimal(1).scaleb(-places)
    return f"{Decimal(v).quantize(q, rounding=ROUND_HALF_UP)}"


def money_with_currency(v, currency: str | None = None, decimals: int | None = None) -> str:
    return f"{money(v, decimals)} {currency or settings.currency}"
