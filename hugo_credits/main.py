import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from hugo_credits.core.config import Settings, get_settings
from hugo_credits.core.exceptions import (
    AppError,
    app_exception_handler,
    generic_exception_handler,
    validation_exception_handler,
)
from hugo_credits.core.logging import bind_request_id, configure_logging, get_logger
from hugo_credits.routers import client_config, credits
from hugo_credits.services.credits import CreditLedger
from hugo_credits.storage.base import get_credit_store

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if settings.sentry_dsn:
        import sentry_sdk
        sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.1)
        log.info("startup", msg="Sentry enabled")
    client = None
    if getattr(app.state, "ledger", None) is None:
        if settings.storage_backend != "memory":
            from hugo_credits.db.init import create_mongo_client
            client = create_mongo_client(settings)
        store = get_credit_store(settings, client)
        app.state.ledger = CreditLedger(store, initial_credits=settings.initial_credits)
        log.info("startup", msg="Credit store ready", backend=settings.storage_backend)
    yield
    if client is not None:
        client.close()
        log.info("shutdown", msg="DB connection closed")


def create_app(settings: Settings | None = None, ledger: CreditLedger | None = None) -> FastAPI:
    """Build the API. Pass `ledger` to use an existing one instead of building it at startup."""
    settings = settings or get_settings()
    configure_logging(debug=settings.debug)

    app = FastAPI(
        title="Proyecto Hugo credits API",
        version="1.0.0",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.ledger = ledger

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_id_middleware(request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        bind_request_id(request_id)
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        log.info(
            "request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_exception_handler(AppError, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Routers
    app.include_router(client_config.router, prefix="/v1/client-config", tags=["config"])
    app.include_router(credits.router, prefix="/v1/credits", tags=["credits"])

    @app.get("/health")
    async def health():
        """Health check for load balancers and monitoring."""
        return {"status": "ok"}

    return app


app = create_app()
