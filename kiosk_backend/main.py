import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import structlog

from .config import Settings, get_settings
from .logging_config import setup_logging
from .state import AppState, build_state

from .routes.pages import router as pages_router
from .routes.order_api import router as order_router
from .routes.payment_api import router as payment_router
from .routes.webhook_api import router as webhook_router

from .streams.order_stream import router as order_stream_router
from .streams.payment_stream import router as payment_stream_router

logger = structlog.get_logger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent


@asynccontextmanager
async def lifespan(app: FastAPI):
    ctx: AppState = app.state.kiosk
    logger.info(
        "application_startup",
        app_name=ctx.settings.app_name,
        env=ctx.settings.app_env,
        mail_enabled=ctx.mailer.enabled,
        strict_payment_transitions=ctx.settings.strict_payment_transitions,
    )
    yield
    logger.info("application_shutdown", order_subscribers=len(ctx.order_feed), payment_subscribers=len(ctx.payment_feed))
    await ctx.tasks.drain()


def create_app(settings: Optional[Settings] = None, state: Optional[AppState] = None) -> FastAPI:
    settings = settings or (state.settings if state else get_settings())
    setup_logging(settings)

    app = FastAPI(title="Kiosk Order & Payment Backend", lifespan=lifespan)
    app.state.kiosk = state or build_state(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def bind_request_id(request: Request, call_next):
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=str(uuid.uuid4()),
            method=request.method,
            path=request.url.path,
        )
        return await call_next(request)

    # Static
    static_dir = Path(settings.static_dir)
    if not static_dir.is_absolute():
        static_dir = BASE_DIR / static_dir
    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    # Routers
    app.include_router(pages_router)
    app.include_router(order_router)
    app.include_router(payment_router)
    app.include_router(webhook_router)

    # Push streams
    app.include_router(order_stream_router)
    app.include_router(payment_stream_router)

    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run("kiosk_backend.main:create_app", factory=True, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
