import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import auth as auth_api
from .api import job as job_api
from .api import user as user_api
from .api import utils as utils_api
from .config import Settings, load_settings
from .database import Database
from .services.emailer import SmtpMailer
from .services.media import MediaStore
from .services.notifications import SEND_MAIL_TOPIC, NotificationRelay, OutboxWorker, send_mail_handler
from .services.uploads import UploadClient
from .utils.error_handlers import register_exception_handlers

logger = logging.getLogger(__name__)

ROUTERS = {
    "auth": auth_api.router,
    "job": job_api.router,
    "user": user_api.router,
    "utils": utils_api.router,
}

_default_origins = ["http://localhost:5173", "http://127.0.0.1:5173", "http://localhost:3000"]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    upload_client: UploadClient | None = None,
    media_store: MediaStore | None = None,
    notifier: NotificationRelay | None = None,
    mail_worker: OutboxWorker | None = None,
) -> FastAPI:
    """
    Build the HTTP app for the services listed in `settings.services`.

    Clients are constructed here unless injected, opened in the lifespan and
    exposed to handlers through `app.state`.
    """
    settings = settings or load_settings()

    database = database or Database(settings.database_url)
    upload_client = upload_client or UploadClient(settings.upload_service_url, timeout_s=settings.upload_timeout_s)
    notifier = notifier or NotificationRelay(database)

    runs_utils = "utils" in settings.services
    if runs_utils and media_store is None:
        media_store = MediaStore(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
        )
    if runs_utils and mail_worker is None and settings.mail_worker_enabled:
        mail_worker = OutboxWorker(
            database,
            {SEND_MAIL_TOPIC: send_mail_handler(SmtpMailer(settings))},
            poll_interval_s=settings.mail_poll_interval_s,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.connect()
        await upload_client.connect()
        notifier.connect()
        if media_store is not None:
            media_store.connect()
        if mail_worker is not None:
            mail_worker.connect()
        logger.info("Services running: %s", ", ".join(settings.services))
        try:
            yield
        finally:
            if mail_worker is not None:
                mail_worker.close()
            if media_store is not None:
                media_store.close()
            notifier.close()
            await upload_client.close()
            database.close()

    app = FastAPI(title="Work-Ora", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database
    app.state.uploads = upload_client
    app.state.media = media_store
    app.state.notifier = notifier
    app.state.mail_worker = mail_worker

    register_exception_handlers(app)

    for name in settings.services:
        app.include_router(ROUTERS[name])

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok", "services": list(settings.services)}

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[*_default_origins, *settings.frontend_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


def build_app() -> FastAPI:
    """Uvicorn factory: `uvicorn --factory workora.main:build_app`."""
    settings = load_settings()
    configure_logging(settings.log_level)
    return create_app(settings)
