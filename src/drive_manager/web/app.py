"""
Web application wiring for Drive Manager using the NiceGUI framework.
"""

from nicegui import app, ui

from ..core.logging import get_logger
from ..settings import AppSettings
from .routes import auth_router, drive_router, register_error_handlers
from . import pages  # noqa: F401  registers the NiceGUI pages


logger = get_logger(__name__)

_configured = False


def configure_app():
    """Attach the API and auth routes to the NiceGUI FastAPI app once."""
    global _configured
    if not _configured:
        app.include_router(auth_router)
        app.include_router(drive_router)
        register_error_handlers(app)
        _configured = True
    return app


def run_web(settings: AppSettings) -> None:
    """Start the web UI and block until it stops."""
    if not settings.google_drive.has_oauth_client:
        logger.warning("No Google OAuth client configured; sign-in will fail until one is set")
    if settings.web.storage_secret == "change-me":
        logger.warning("WEB_STORAGE_SECRET is not set; using the insecure default")

    configure_app()
    logger.info(f"Starting {settings.name} on http://{settings.web.host}:{settings.web.port}")
    ui.run(
        host=settings.web.host,
        port=settings.web.port,
        title=settings.web.title,
        storage_secret=settings.web.storage_secret,
        reload=False,
        show=False,
        favicon="📁"
    )
