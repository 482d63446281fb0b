"""
Environment-backed settings.

Values are read at call time so tests (and a restarted worker) always see the
current environment. Missing settings never crash the process; they are
reported once at startup by `warn_missing_env()`.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

REQUIRED_ENV_VARS = ("DATABASE_URL", "MAIL_USER", "MAIL_PASSWORD")
OPTIONAL_ENV_VARS = ("MAILBLUSTER_API_KEY", "VERIFY_SECRET")

DEFAULT_TIMEOUT_S = 10.0


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def database_url() -> str:
    return _env_str("DATABASE_URL")


def mail_user() -> str:
    return _env_str("MAIL_USER")


def mail_password() -> str:
    return _env_str("MAIL_PASSWORD")


def smtp_host() -> str:
    return _env_str("SMTP_HOST", "smtp.gmail.com")


def smtp_port() -> int:
    return _env_int("SMTP_PORT", 587)


def operator_email() -> str:
    return _env_str("OPERATOR_EMAIL") or mail_user()


def site_name() -> str:
    return _env_str("SITE_NAME", "Personal website")


def verify_secret() -> str:
    return _env_str("VERIFY_SECRET")


def mailbluster_api_key() -> str:
    return _env_str("MAILBLUSTER_API_KEY")


def store_timeout_s() -> float:
    return _env_float("STORE_TIMEOUT_S", DEFAULT_TIMEOUT_S)


def http_timeout_s() -> float:
    return _env_float("HTTP_TIMEOUT_S", DEFAULT_TIMEOUT_S)


def cors_origins() -> list[str]:
    raw = _env_str("CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


def missing_required() -> list[str]:
    return [name for name in REQUIRED_ENV_VARS if not _env_str(name)]


def missing_optional() -> list[str]:
    return [name for name in OPTIONAL_ENV_VARS if not _env_str(name)]


def warn_missing_env() -> None:
    required = missing_required()
    if required:
        logger.warning("Missing environment variables: %s", ", ".join(required))

    optional = missing_optional()
    if optional:
        logger.warning("Missing optional environment variables: %s", ", ".join(optional))


def configure_logging() -> None:
    level = _env_str("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
