from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pantry_pos import __version__
from pantry_pos.core.config import get_settings
from pantry_pos.core.exceptions import (
    AlreadyRefundedError,
    CartLineNotFoundError,
    EmptyCartError,
    IngredientNotFoundError,
    InsufficientPaymentError,
    InvalidQuantityError,
    PosError,
    ProductNotFoundError,
    ProductUnavailableError,
    SaleNotFoundError,
    StorageError,
)
from pantry_pos.db.session import SessionLocal, init_db
from pantry_pos.routers.cart import router as cart_router
from pantry_pos.routers.health import router as health_router
from pantry_pos.routers.ingredients import router as ingredients_router
from pantry_pos.routers.products import router as products_router
from pantry_pos.routers.sales import router as sales_router
from pantry_pos.services.persistence import SqlKeyValueStore
from pantry_pos.services.register import Register

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Most specific first
ERROR_STATUS_CODES = [
    (EmptyCartError, 400),
    (InsufficientPaymentError, 400),
    (InvalidQuantityError, 422),
    (ProductNotFoundError, 404),
    (IngredientNotFoundError, 404),
    (SaleNotFoundError, 404),
    (CartLineNotFoundError, 404),
    (AlreadyRefundedError, 409),
    (ProductUnavailableError, 409),
    (StorageError, 503),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    app.state.register = Register.open(
        SqlKeyValueStore(SessionLocal),
        key_prefix=settings.STORAGE_KEY_PREFIX,
        seed_defaults=settings.SEED_DEFAULTS,
    )
    yield


app = FastAPI(
    title=settings.APP_NAME,
    debug=settings.DEBUG,
    description="Point-of-sale and recipe-driven inventory for a small food business.",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(PosError)
async def pos_error_handler(request: Request, exc: PosError):
    """Turn domain errors into short messages tied to the attempted action."""
    status_code = 400
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            status_code = code
            break

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": exc.message, "details": exc.details},
    )


# Global exception handler for unhandled errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected server errors with structured response."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "request_id": request.headers.get("X-Request-ID"),
        }
    )

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(products_router, prefix="/api")
app.include_router(ingredients_router, prefix="/api")
app.include_router(cart_router, prefix="/api")
app.include_router(sales_router, prefix="/api")


@app.get("/")
def read_root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "docs": "/docs",
        "health": "/health"
    }
