"""FastAPI entry point for the booking backend."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.router import router as api_router
from app.config import get_settings
from app.database import close_db, init_models
from app.redis_client import close_redis, get_redis, redis_available
from app.schemas.common import ErrorResponse
from app.tasks import background_tasks

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=headers,
    )


def validation_message(exc: RequestValidationError) -> str:
    """First validation problem as "field: message"."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    await init_models()
    await get_redis()
    await background_tasks.start()
    logger.info("Database, Redis and background tasks ready")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")
    await background_tasks.stop()
    await close_redis()
    await close_db()


def register_exception_handlers(app: FastAPI) -> None:
    """Every error leaves as {"success": false, "error": "..."}."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Rejected request to {request.url.path}: {exc.errors()}")
        return error_response(400, validation_message(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return error_response(500, str(exc) if settings.DEBUG else "Internal server error")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=f"""
## {settings.BUSINESS_NAME} Booking API

Private theater bookings, from checkout to invoice.

- **Bookings**: customer checkout and staff manual bookings
- **Order items**: food, decoration and add-ons ordered after booking
- **Cancellations**: refunds for cancellations more than 72 hours ahead
- **Invoices**: HTML and PDF
- **AI assistant**: chat replies streamed as server-sent events
- **Admin**: counters, catalog, coupons, pricing and Excel exports

Admin endpoints require the `X-Admin-Token` header.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # The booking pages are served from a different origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")
    register_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    async def health_check():
        redis_ok = await redis_available()
        return {
            "status": "healthy" if redis_ok else "degraded",
            "version": settings.APP_VERSION,
            "redis": redis_ok,
        }

    return app


app = create_app()


def run():
    """Console entry point."""
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)


if __name__ == "__main__":
    run()
