"""Application settings loaded from environment variables via pydantic-settings.

Configuration is read from two sources, environment variables first and
then the project-root ``.env`` file.  Field ``cloudconvert_api_key`` maps
to env var ``CLOUDCONVERT_API_KEY`` and so on.  Defaults apply when neither
source sets a value.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

_CLOUDCONVERT_API_URL = "https://api.cloudconvert.com/v2"
_CLOUDCONVERT_SANDBOX_URL = "https://api.sandbox.cloudconvert.com/v2"


class Settings(BaseSettings):
    """fileforge application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === External conversion service ===
    # Empty string = "not configured": Word->PDF requests skip delegation
    # and go straight to the placeholder document.
    cloudconvert_api_key: str = ""
    cloudconvert_sandbox: bool = False
    cloudconvert_base_url: str = ""

    # === Job polling ===
    # Interval grows by backoff_factor after every non-terminal poll,
    # capped at max_interval.  timeout bounds the whole wait.
    job_poll_initial_interval: float = 1.0
    job_poll_max_interval: float = 10.0
    job_poll_backoff_factor: float = 2.0
    job_timeout_seconds: float = 300.0
    # 1 = single attempt, no retry before falling back.
    job_max_attempts: int = 1
    job_retry_backoff_seconds: float = 2.0

    http_timeout_seconds: float = 30.0

    # === Conversion behaviour ===
    # False keeps image bytes untouched (passthrough); True re-encodes via Pillow.
    image_transcode_enabled: bool = False
    max_upload_mb: int = 50

    # === Dashboard records ===
    # SQLite database the CLI --user flag appends processed files to.
    file_store_path: str = "data/fileforge_files.db"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: str = "*"

    def get_cloudconvert_base_url(self) -> str:
        """Return the API base URL, honouring an explicit override first."""
        if self.cloudconvert_base_url:
            return self.cloudconvert_base_url.rstrip("/")
        if self.cloudconvert_sandbox:
            return _CLOUDCONVERT_SANDBOX_URL
        return _CLOUDCONVERT_API_URL

    def get_cors_origins(self) -> list[str]:
        """Split the comma-separated ``cors_origins`` value."""
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or ["*"]
