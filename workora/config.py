import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# For automated tests (SQLite), set DISABLE_DOTENV=1 so a developer .env cannot
# override the test DATABASE_URL.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)

ALL_SERVICES = ("auth", "job", "user", "utils")

# Default to a local SQLite DB for dev so the services can start out-of-the-box.
_default_sqlite_path = (Path(__file__).resolve().parent.parent / "dev.db").as_posix()


def _env_bool(name: str, default: str = "1") -> bool:
    v = (os.getenv(name, default) or default).strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


def _env_list(name: str, default: str = "") -> tuple[str, ...]:
    raw = os.getenv(name, default) or default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = f"sqlite:///{_default_sqlite_path}"
    # NOTE: keep a default for local dev so the server can boot even if JWT_SECRET isn't set.
    jwt_secret: str = "dev_secret_change_me"
    services: tuple[str, ...] = ALL_SERVICES
    log_level: str = "INFO"

    # Upload relay (utils service) as seen by the other services
    upload_service_url: str = "http://localhost:5001"
    upload_timeout_s: float = 30.0

    frontend_url: str = "http://localhost:3000"
    frontend_origins: tuple[str, ...] = field(default_factory=tuple)

    # SMTP relay used by the mail delivery worker
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_pass: str = ""
    smtp_tls: bool = True
    mail_from: str = '"Ora Team" <no-reply@ora.com>'
    mail_worker_enabled: bool = True
    mail_poll_interval_s: float = 2.0

    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""


def load_settings() -> Settings:
    """Build Settings from the process environment (and a local .env)."""
    database_url = (os.getenv("DATABASE_URL") or "").strip() or Settings.database_url
    services = _env_list("SERVICES", ",".join(ALL_SERVICES))
    unknown = sorted(set(services) - set(ALL_SERVICES))
    if unknown:
        raise ValueError(f"Unknown services in SERVICES: {', '.join(unknown)}")

    return Settings(
        database_url=database_url,
        jwt_secret=os.getenv("JWT_SECRET", Settings.jwt_secret),
        services=services,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        upload_service_url=(os.getenv("UPLOAD_SERVICE_URL") or Settings.upload_service_url).rstrip("/"),
        upload_timeout_s=float(os.getenv("UPLOAD_TIMEOUT_S", "30") or "30"),
        frontend_url=(os.getenv("FRONTEND_URL") or Settings.frontend_url).rstrip("/"),
        frontend_origins=_env_list("FRONTEND_ORIGINS"),
        smtp_host=os.getenv("SMTP_HOST", Settings.smtp_host),
        smtp_port=int(os.getenv("SMTP_PORT", "587") or "587"),
        smtp_user=(os.getenv("SMTP_USER") or "").strip(),
        smtp_pass=(os.getenv("SMTP_PASS") or "").strip(),
        smtp_tls=_env_bool("SMTP_TLS", "1"),
        mail_from=(os.getenv("MAIL_FROM") or Settings.mail_from).strip(),
        mail_worker_enabled=_env_bool("MAIL_WORKER_ENABLED", "1"),
        mail_poll_interval_s=float(os.getenv("MAIL_POLL_INTERVAL_S", "2") or "2"),
        cloudinary_cloud_name=(os.getenv("CLOUDINARY_CLOUD_NAME") or "").strip(),
        cloudinary_api_key=(os.getenv("CLOUDINARY_API_KEY") or "").strip(),
        cloudinary_api_secret=(os.getenv("CLOUDINARY_API_SECRET") or "").strip(),
    )
