"""
# Configuration Management Module

Settings for the Wrytix CMS backend, built on **Pydantic Settings**.

## Loading Order

Values are resolved with the following precedence (highest first):

1. **Environment variables** (`export STORAGE_BACKEND=mongodb`)
2. **`WRYTIX_CONFIG_PATH`**: explicit config file path
3. **`.wrytix` file** in the project root
4. **`.env` file** in the project root
5. **Defaults** declared on `Settings`

If no file is found the application runs in environment-only mode.

## Configuration Groups

| Group        | Purpose                                              |
|--------------|------------------------------------------------------|
| Server       | Host, port, debug mode, CORS origins                 |
| Storage      | Backend selection, flat-file data dir, MongoDB       |
| Sessions     | Cookie name, TTL, secure flag, password hash rounds  |
| Content      | Default headline, ad expiry sweep interval           |
| Logging      | Log level, metrics toggle                            |

## Usage

```python
from wrytix.config import settings

if settings.STORAGE_BACKEND == "mongodb":
    ...
```
"""

import os
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
WRYTIX_FILENAME: str = ".wrytix"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "WRYTIX_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent

STORAGE_BACKENDS = ("json", "mongodb")


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determine the configuration file path.

    Checks, in order, the `WRYTIX_CONFIG_PATH` environment variable, a `.wrytix`
    file in the project root and a `.env` file in the project root.

    Returns:
        Optional[str]: Path to the configuration file, or `None` when only
        environment variables should be used.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    wrytix_path: Path = PROJECT_ROOT / WRYTIX_FILENAME
    if wrytix_path.exists():
        return str(wrytix_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=False)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Validation:**
    The storage backend must be one of `json` or `mongodb`, intervals and TTLs
    must be positive, and a MongoDB URL is required when the `mongodb` backend
    is selected.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 3000
    DEBUG: bool = False
    CORS_ORIGINS: str = "https://wrytix.netlify.app,http://localhost:5500"

    # Storage configuration
    STORAGE_BACKEND: str = "json"
    DATA_DIR: str = str(PROJECT_ROOT / "data")

    # MongoDB configuration (used when STORAGE_BACKEND == "mongodb")
    MONGODB_URL: str = ""
    MONGODB_DATABASE: str = "wrytix"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Sessions
    SESSION_COOKIE_NAME: str = "wrytix_session"
    SESSION_TTL_HOURS: int = 24
    SESSION_COOKIE_SECURE: bool = False
    SESSION_CLEANUP_INTERVAL_SECONDS: int = 3600
    BCRYPT_ROUNDS: int = 10

    # Content
    DEFAULT_HEADLINE: str = (
        "Welcome to Wrytix - Tips, Stories, Tech & Lifestyle! | "
        "Check out our latest post on boosting productivity | "
        "Don't miss our trending business hacks!"
    )
    AD_EXPIRY_SWEEP_INTERVAL_SECONDS: int = 600  # 10 minutes

    # Logging & metrics
    DEFAULT_LOG_LEVEL: str = "INFO"
    METRICS_ENABLED: bool = True

    @field_validator("STORAGE_BACKEND", mode="before")
    @classmethod
    def validate_storage_backend(cls, v: Any) -> str:
        """Normalize and check the storage backend name."""
        value = str(v).strip().lower()
        if value not in STORAGE_BACKENDS:
            raise ValueError(f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}")
        return value

    @field_validator(
        "SESSION_TTL_HOURS",
        "SESSION_CLEANUP_INTERVAL_SECONDS",
        "AD_EXPIRY_SWEEP_INTERVAL_SECONDS",
        "BCRYPT_ROUNDS",
        mode="before",
    )
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        """Ensure intervals, TTLs and rounds are positive."""
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @model_validator(mode="after")
    def require_mongodb_url(self) -> "Settings":
        if self.STORAGE_BACKEND == "mongodb" and not self.MONGODB_URL.strip():
            raise ValueError("MONGODB_URL must be set when STORAGE_BACKEND is 'mongodb'")
        return self

    @property
    def cors_origins(self) -> List[str]:
        """Return the configured CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings: Settings = Settings()
