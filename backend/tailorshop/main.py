import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from tailorshop.api import admin, auth, catalog, customize, dashboard, tracking
from tailorshop.api.deps import require_admin, require_api_key
from tailorshop.config import Settings, load_settings
from tailorshop.db.session import BackendClient
from tailorshop.errors import FetchError, NotFoundError, ValidationError
from tailorshop.services.sync import build_syncs

logger = logging.getLogger(__name__)


class SettingsCORSMiddleware:
    """CORS with origins taken from the settings resolved at startup."""

    def __init__(self, app: ASGIApp, state):
        self.app = app
        self.state = state
        self._cors: Optional[CORSMiddleware] = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self.state.settings is None:
            await self.app(scope, receive, send)
            return
        if self._cors is None:
            self._cors = CORSMiddleware(
                self.app,
                allow_origins=self.state.settings.cors_origins,
                allow_credentials=True,
                allow_methods=["*"],
                allow_headers=["*"],
            )
        await self._cors(scope, receive, send)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse({"detail": exc.message, "issues": exc.issues}, status_code=422)

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse({"detail": str(exc)}, status_code=404)

    @app.exception_handler(FetchError)
    async def fetch_error(request: Request, exc: FetchError):
        logger.warning("Backend fetch failed path=%s: %s", request.url.path, exc.message)
        return JSONResponse({"detail": exc.message, "retry": True}, status_code=503)


def create_app(settings: Optional[Settings] = None, client: Optional[BackendClient] = None) -> FastAPI:
    """Build the API. Settings and backend client are resolved at startup when not given."""
    app = FastAPI(title="Tailor Shop")
    app.state.settings = settings
    app.state.client = client
    app.state.syncs = {}

    app.add_middleware(SettingsCORSMiddleware, state=app.state)

    api_key = [Depends(require_api_key)]
    admin_only = api_key + [Depends(require_admin)]

    # Include routers
    app.include_router(catalog.router, prefix="", tags=["catalog"], dependencies=api_key)
    app.include_router(customize.router, prefix="/customize", tags=["customize"], dependencies=api_key)
    app.include_router(tracking.router, prefix="", tags=["tracking"], dependencies=api_key)
    app.include_router(auth.router, prefix="/admin", tags=["auth"], dependencies=api_key)
    app.include_router(admin.router, prefix="/admin", tags=["admin"], dependencies=admin_only)
    app.include_router(dashboard.router, prefix="/admin/dashboard", tags=["dashboard"], dependencies=admin_only)

    _register_error_handlers(app)

    @app.on_event("startup")
    def on_startup():
        if app.state.settings is None:
            app.state.settings = load_settings()
        logging.getLogger("tailorshop").setLevel(app.state.settings.log_level)
        if app.state.client is None:
            app.state.client = BackendClient.from_settings(app.state.settings)
        app.state.client.create_schema()

        app.state.syncs = build_syncs(app.state.client)
        for sync in app.state.syncs.values():
            sync.mount()
            if sync.error:
                logger.warning("Initial fetch of %s failed: %s", sync.name, sync.error)
        logger.info("Tailor shop started collections=%s", sorted(app.state.syncs))

    @app.on_event("shutdown")
    def on_shutdown():
        for sync in app.state.syncs.values():
            sync.unmount()
        if app.state.client is not None:
            app.state.client.dispose()

    @app.get("/")
    async def root():
        return {"status": "ok", "service": "tailor-shop"}

    return app


app = create_app()
