# app/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.exceptions import InvalidCartItemError, PricingError, PromoError
from app.database import create_db_and_tables
from app.repositories.cart_repo import CartRepository

# Import models so SQLModel metadata is populated before create_all()
from app.models import photo as _photo_models  # noqa: F401
from app.models import order as _order_models  # noqa: F401


# Routers
from app.routers.cart import router as cart_router
from app.routers.pricing import router as pricing_router
from app.routers.checkout import router as checkout_router
from app.routers.orders import router as orders_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.
      - Create the in-memory cart store.

    Shutdown:
      - Active carts are dropped with the process.
    """
    logger.info("Startup: connecting to the database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise
    app.state.cart_repo = CartRepository()
    yield
    logger.info(f"Shutdown: discarding {len(app.state.cart_repo)} active carts")


app = FastAPI(
    title=settings.PROJECT_NAME or "Arode Studio API",
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Cart-Id"],
)


# --- Domain errors ---
@app.exception_handler(PricingError)
async def pricing_error_handler(request: Request, exc: PricingError):
    logger.warning(f"Pricing error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc)},
    )


@app.exception_handler(InvalidCartItemError)
async def invalid_cart_item_handler(request: Request, exc: InvalidCartItemError):
    logger.warning(f"Invalid cart item on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.message},
    )


@app.exception_handler(PromoError)
async def promo_error_handler(request: Request, exc: PromoError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message},
    )


# Versioned API prefix, e.g. /api/v1
app.include_router(cart_router, prefix=settings.API_V1_STR)
app.include_router(pricing_router, prefix=settings.API_V1_STR)
app.include_router(checkout_router, prefix=settings.API_V1_STR)
app.include_router(orders_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "arode-studio-api"}
