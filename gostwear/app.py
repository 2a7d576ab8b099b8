import logging
import re

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware

from gostwear.core.config import Settings, get_settings
from gostwear.repositories.json_storage import RecordStore
from gostwear.routers import auth as auth_router
from gostwear.routers import orders as orders_router
from gostwear.routers import pages as pages_router
from gostwear.routers import products as products_router
from gostwear.services.auth_service import AuthService
from gostwear.services.catalog_service import CatalogService
from gostwear.services.order_service import OrderService

logger = logging.getLogger(__name__)


class BlockedOriginLogMiddleware(BaseHTTPMiddleware):
    """Log requests whose Origin the CORS policy rejects (CORSMiddleware stays silent)."""

    def __init__(self, app, *, allowed_origins: tuple[str, ...], origin_regex: str) -> None:
        super().__init__(app)
        self._allowed = set(allowed_origins)
        self._pattern = re.compile(origin_regex) if origin_regex else None

    def is_allowed(self, origin: str) -> bool:
        if origin in self._allowed:
            return True
        return bool(self._pattern and self._pattern.fullmatch(origin))

    async def dispatch(self, request, call_next):
        origin = request.headers.get("origin")
        # no Origin header: curl, mobile apps, same-origin
        if origin and not self.is_allowed(origin):
            logger.warning("Blocked by CORS: %s", origin)
        return await call_next(request)


def create_app(settings: Settings | None = None, store: RecordStore | None = None) -> FastAPI:
    """Build the API; uvicorn can use it as a factory (``--factory``)."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(title="Gostwear Backend")
    app.state.settings = settings
    app.state.store = store or RecordStore(settings.data_dir, lock_timeout=settings.store_lock_timeout)
    app.state.catalog_service = CatalogService(app.state.store)
    app.state.auth_service = AuthService(app.state.store)
    app.state.order_service = OrderService()

    app.add_middleware(
        BlockedOriginLogMiddleware,
        allowed_origins=settings.allowed_origins,
        origin_regex=settings.allowed_origin_regex,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_origin_regex=settings.allowed_origin_regex or None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(pages_router.router)
    app.include_router(products_router.router)
    app.include_router(auth_router.router)
    app.include_router(orders_router.router)

    if settings.public_dir.is_dir():
        app.mount("/public", StaticFiles(directory=settings.public_dir), name="public")
    else:
        logger.info("Static dir %s missing; /public not mounted", settings.public_dir)

    logger.info("Data directory: %s", settings.data_dir)
    return app
