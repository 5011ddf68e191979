import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from slowapi.errors import RateLimitExceeded

from storefront.config import Settings, settings
from storefront.services.catalog import CatalogError, list_categories, list_products
from storefront.services.mailer import Mailer, build_mailer
from storefront.services.orders import DispatchError, OrderValidationError, submit_order
from storefront.utils.log import setup_logging
from storefront.web.rate_limit import ORDER_RATE_LIMIT, limiter

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    Path(settings.products_dir).mkdir(parents=True, exist_ok=True)
    logger.info("Serving catalog from %s", settings.products_dir)
    yield


app = FastAPI(title=f"{settings.shop_name} API", lifespan=lifespan)
app.state.limiter = limiter

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

if STATIC_DIR.exists():
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# product images; the directory is created on startup
app.mount("/products", StaticFiles(directory=settings.products_dir, check_dir=False), name="products")

_mailer = build_mailer(settings)


def get_settings() -> Settings:
    return settings


def get_mailer() -> Mailer:
    return _mailer


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(400, "Invalid request body")


@app.exception_handler(RateLimitExceeded)
async def _rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    client = request.client.host if request.client else "unknown"
    logger.warning("Rate limit exceeded: ip=%s (%s)", client, exc.detail)
    return _error(429, "Too many orders, please try again later")


@app.get("/", response_class=HTMLResponse)
def index(request: Request, s: Settings = Depends(get_settings)):
    try:
        products = list_products(s.products_dir)
    except CatalogError:
        logger.exception("Error loading products")
        products = []
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "shop_name": s.shop_name,
            "currency": s.currency,
            "products": products,
            "categories": list_categories(products),
        },
    )


# ---------------- api ----------------

@app.get("/api/products")
def api_products(s: Settings = Depends(get_settings)):
    try:
        products = list_products(s.products_dir)
    except Exception:
        logger.exception("Error loading products")
        return _error(500, "Failed to load products")
    return [p.model_dump() for p in products]


@app.post("/api/order")
@limiter.limit(ORDER_RATE_LIMIT)
def api_order(
    request: Request,
    payload: Any = Body(None),
    s: Settings = Depends(get_settings),
    mailer: Mailer = Depends(get_mailer),
):
    try:
        submit_order(payload, mailer, s)
    except OrderValidationError as e:
        return _error(400, "; ".join(e.errors))
    except DispatchError as e:
        return _error(500, str(e))
    except Exception:
        logger.exception("Error submitting order")
        return _error(500, "Failed to submit order")

    return {"success": True, "message": "Order submitted successfully"}


@app.get("/api/health")
def api_health():
    return {"status": "ok"}


def run(host: Optional[str] = None, port: Optional[int] = None, reload: bool = False) -> None:
    import uvicorn

    setup_logging()
    host = host or settings.host
    port = port or settings.port
    logger.info("Starting %s on %s:%s", settings.shop_name, host, port)

    if reload:
        uvicorn.run("storefront.web.main:app", host=host, port=port, reload=True, log_level="info")
    else:
        uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    run()
