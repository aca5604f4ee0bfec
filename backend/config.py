"""
Application configuration with Docker secrets support.

Secrets are read using the _read_secret() pattern:
  1. Direct env var (e.g., APP_SECRET_KEY)
  2. File-based env var (e.g., APP_SECRET_KEY_FILE → reads file path)
  3. Raises ValueError if neither is set
"""

import os
import logging

logger = logging.getLogger(__name__)


def _read_secret(env_var: str, file_env_var: str | None = None) -> str:
    """Read a secret from env var or Docker secrets file.

    Args:
        env_var: Direct environment variable name (e.g., APP_SECRET_KEY)
        file_env_var: File path env var name (e.g., APP_SECRET_KEY_FILE).
                      If None, defaults to env_var + '_FILE'.

    Returns:
        The secret value.

    Raises:
        ValueError: If neither source provides a value.
    """
    if file_env_var is None:
        file_env_var = f"{env_var}_FILE"

    # Priority 1: Direct env var
    value = os.environ.get(env_var)
    if value:
        return value

    # Priority 2: File-based (Docker secrets pattern)
    file_path = os.environ.get(file_env_var)
    if file_path:
        try:
            with open(file_path, "r") as f:
                value = f.read().strip()
            if value:
                return value
        except FileNotFoundError:
            logger.error(f"Secret file not found: {file_path} (from {file_env_var})")
        except PermissionError:
            logger.error(f"Permission denied reading: {file_path} (from {file_env_var})")

    raise ValueError(
        f"Secret not configured. Set {env_var} env var or {file_env_var} pointing to a file."
    )


def _optional_secret(env_var: str) -> str | None:
    try:
        return _read_secret(env_var)
    except ValueError:
        return None


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment and Docker secrets."""

    def __init__(self):
        # Database
        self.database_url = self._build_database_url()

        # Secrets (loaded lazily on first access via properties)
        self._app_secret_key: str | None = None

        # Public config
        self.public_base_url = os.environ.get("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")
        self.frontend_base_url = os.environ.get("FRONTEND_BASE_URL", "http://localhost:3000").rstrip("/")

        # Storage driver: "local" or "s3"
        self.storage_driver = os.environ.get("STORAGE_DRIVER", "local").strip().lower()
        self.local_storage_root = os.environ.get("LOCAL_STORAGE_ROOT", "uploads")

        # S3
        self.s3_region = os.environ.get("S3_REGION", "us-east-2")
        self.s3_private_bucket = os.environ.get("S3_PRIVATE_BUCKET", "")
        self.s3_public_bucket = os.environ.get("S3_PUBLIC_BUCKET", "")
        self.s3_endpoint = os.environ.get("S3_ENDPOINT") or None
        self.s3_force_path_style = _env_bool("S3_FORCE_PATH_STYLE")
        self.s3_access_key_id = _optional_secret("S3_ACCESS_KEY_ID")
        self.s3_secret_access_key = _optional_secret("S3_SECRET_ACCESS_KEY")

        # Signed URL lifetimes (seconds) and backend call bound
        self.download_url_expires_seconds = int(os.environ.get("DOWNLOAD_URL_EXPIRES_SECONDS", "120"))
        self.upload_url_expires_seconds = int(os.environ.get("UPLOAD_URL_EXPIRES_SECONDS", "3600"))
        self.storage_timeout_seconds = float(os.environ.get("STORAGE_TIMEOUT_SECONDS", "5"))

    def _build_database_url(self) -> str:
        """Build async database URL with password from secrets."""
        base_url = os.environ.get(
            "DATABASE_URL", "postgresql+asyncpg://delivery@postgres:5432/delivery"
        )
        try:
            password = _read_secret("POSTGRES_PASSWORD")
            # Insert password into URL: postgresql+asyncpg://user@host → user:pass@host
            if "://" in base_url and "@" in base_url:
                scheme_user, rest = base_url.split("@", 1)
                if ":" not in scheme_user.split("://")[1]:
                    # No password in URL yet, add it
                    base_url = f"{scheme_user}:{password}@{rest}"
        except ValueError:
            logger.warning("POSTGRES_PASSWORD not set, using DATABASE_URL as-is")
        return base_url

    @property
    def app_secret_key(self) -> str:
        if self._app_secret_key is None:
            self._app_secret_key = _read_secret("APP_SECRET_KEY")
        return self._app_secret_key


settings = Settings()
