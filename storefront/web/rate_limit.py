from slowapi import Limiter
from slowapi.util import get_remote_address

from storefront.config import settings

# per client IP, e.g. "10/900 seconds"
ORDER_RATE_LIMIT = f"{settings.order_rate_limit}/{settings.order_rate_window} seconds"

limiter = Limiter(key_func=get_remote_address)


__all__ = ["limiter", "ORDER_RATE_LIMIT"]
