"""
app/main.py

Purpose: Application entry point

- Builds the FastAPI app (middleware, error handlers, routers)
- Dials MongoDB once at startup and ensures the username index
- Exposes /health for this service and its database
- No storage logic lives here
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import addresses, cards, customers
from app.core.config import Settings, settings, validate_settings
from app.core.errors import add_exception_handlers
from app.core.logging import get_logger, setup_logging
from app.core.tracing import configure_tracing
from app.db.mongo import MongoPool
from app.schemas.response import HealthResponse
from app.services.user_service import UserService

setup_logging()
configure_tracing()
logger = get_logger(__name__)

# Requests slower than this are logged as warnings
SLOW_REQUEST_SECONDS = 5.0


def build_user_service(config: Settings) -> UserService:
    pool = MongoPool(
        config.mongodb_url,
        config.MONGODB_DB_NAME,
        connect_timeout_seconds=config.MONGO_CONNECT_TIMEOUT_SECONDS,
    )
    return UserService(pool)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Opens the store before serving and closes it on shutdown."""
    validate_settings()
    service = build_user_service(settings)
    try:
        await service.init()
    except Exception as e:
        logger.critical(f"User store could not start: {e}", exc_info=True)
        raise

    app.state.user_service = service
    logger.info(f"User store ready (environment={settings.ENVIRONMENT}, db={settings.MONGODB_DB_NAME})")

    yield

    logger.info("User store shutting down")
    app.state.user_service = None
    service.close()


async def time_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started
    response.headers["X-Process-Time"] = f"{elapsed:.6f}"

    if elapsed > SLOW_REQUEST_SECONDS:
        logger.warning(
            f"Slow request: {request.method} {request.url.path}",
            extra={"duration_ms": round(elapsed * 1000, 2)}
        )
    return response


async def health_check(request: Request):
    """
    Health of this service and of its database.
    Responds 503 when the database does not answer a ping.
    """
    service = getattr(request.app.state, "user_service", None)
    if service is None:
        now = time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime())
        entries = [{"service": "user", "status": "err", "time": now}]
    else:
        entries = await service.health()

    healthy = service is not None and all(e["status"] == "OK" for e in entries)
    return JSONResponse(status_code=200 if healthy else 503, content={"health": entries})


def create_app(config: Settings = settings) -> FastAPI:
    application = FastAPI(
        title="User Service",
        description="Customers, addresses and cards backed by MongoDB",
        version="1.0.0",
        lifespan=lifespan,
        debug=config.DEBUG,
        docs_url="/docs" if config.is_development else None,
        redoc_url=None,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )
    application.middleware("http")(time_requests)
    add_exception_handlers(application)

    for module, tag in ((customers, "Customers"), (addresses, "Addresses"), (cards, "Cards")):
        application.include_router(module.router, prefix=config.API_PREFIX, tags=[tag])
    application.add_api_route(
        "/health", health_check, methods=["GET"], tags=["Health"], response_model=HealthResponse
    )
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
