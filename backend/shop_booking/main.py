# shop_booking/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shop_booking.api.v1 import appointments
from shop_booking.api.v1 import calendar
from shop_booking.core.config import ConfigContext, load_config
from shop_booking.core.context import AppContext, build_context
from shop_booking.core.errors import AppointmentError
from shop_booking.core.rate_limiter import rate_limit_dependency

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Reduce verbosity of third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def create_app(
    context: Optional[AppContext] = None,
    config: Optional[ConfigContext] = None,
) -> FastAPI:
    """Build the API.

    Pass a ready ``context`` (tests) or let the lifespan build one from
    ``config`` / the environment.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_context = context is None
        if owns_context:
            app.state.context = await build_context(config or load_config())
        else:
            app.state.context = context
        logger.info("🚀 Workshop backend starting up")
        yield
        if owns_context:
            await app.state.context.close()
        logger.info("Workshop backend shutting down")

    app = FastAPI(
        title="Workshop Appointments API",
        description="Appointment requests synced with Google Calendar",
        version="1.0.0",
        lifespan=lifespan,
    )
    if context is not None:
        # Usable without entering the lifespan (plain TestClient)
        app.state.context = context

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppointmentError)
    async def appointment_error_handler(request: Request, exc: AppointmentError):
        if exc.status_code >= 500:
            logger.error(f"❌ {request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.message},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # Guards, rate limiting and routing errors share the API error shape
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Ungültige Anfrage"},
        )

    # Include routers; every /api route shares one rate limit
    api_dependencies = [Depends(rate_limit_dependency)]
    app.include_router(appointments.router, prefix="/api", dependencies=api_dependencies)
    app.include_router(calendar.router, prefix="/api", dependencies=api_dependencies)

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        """Liveness string"""
        return "✅ Werkstatt Backend läuft (Google Sync)"

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        ctx: AppContext = app.state.context
        return {
            "status": "healthy",
            "calendar": ctx.calendar.name,
            "mail": ctx.notifier.transport.name,
        }

    return app


def get_app() -> FastAPI:
    """uvicorn factory entry point (``--factory``)."""
    config = load_config()
    configure_logging(config.log_level)
    return create_app(config=config)
