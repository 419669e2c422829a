"""
# Configuration Management Module

Settings for the Flashdeck workspace service, built on **Pydantic Settings**.

## Loading Hierarchy

Higher layers override lower layers:

1. Environment variables (highest priority)
2. File named by `FLASHDECK_CONFIG_PATH`
3. `.flashdeck` file in the project root
4. `.env` file in the project root
5. Defaults declared on `Settings` (lowest priority)

If no configuration file is found the application runs in environment-only mode.

## Usage

```python
from flashdeck.config import settings

limit = settings.FOLDER_LIMIT
window = settings.quota_window
```

Attributes:
    settings (Settings): The global settings instance.
"""

import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
FLASHDECK_FILENAME: str = ".flashdeck"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "FLASHDECK_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path based on a predefined precedence order.

    1.  **Environment Variable**: `FLASHDECK_CONFIG_PATH` (if set and file exists).
    2.  **Flashdeck Config**: `.flashdeck` file in the project root directory.
    3.  **Dotenv Config**: `.env` file in the project root directory.
    4.  **Fallback**: `None`, which triggers environment-variable-only mode.

    Returns:
        Optional[str]: The path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    flashdeck_path: Path = PROJECT_ROOT / FLASHDECK_FILENAME
    if flashdeck_path.exists():
        return str(flashdeck_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=True)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Server**: Host, port, debug mode.
    *   **Database**: MongoDB connection details and collection names.
    *   **Workspace Limits**: Folder, deck and card capacities.
    *   **Admission Gate**: Generation call quota and window.
    *   **Guests**: Local deck storage for users without an account.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # MongoDB configuration
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "flashdeck"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Collections
    FOLDERS_COLLECTION: str = "folders"
    DECKS_COLLECTION: str = "decks"
    QUOTA_COLLECTION: str = "api_call_limits"
    PROMPTS_COLLECTION: str = "prompts"

    # Per-call timeout applied to every store operation
    STORE_OPERATION_TIMEOUT_SECONDS: float = 10.0

    # Workspace limits
    FOLDER_LIMIT: int = 50
    DECK_LIMIT_PER_FOLDER: int = 75
    MAX_CARDS_PER_DECK: int = 25
    MAX_TOPIC_LENGTH: int = 250

    # Admission gate
    GENERATION_CALL_LIMIT: int = 200
    GENERATION_WINDOW_SECONDS: int = 5 * 60 * 60
    QUOTA_MAX_CAS_RETRIES: int = 5

    # Guest mode
    GUEST_DECK_LIMIT: int = 75
    GUEST_DECKS_DIR: str = str(Path.home() / ".flashdeck" / "guest_decks")

    @field_validator("MONGODB_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any, info: Any) -> Any:
        """
        Validates that the MongoDB URL is not empty.

        Raises:
            ValueError: If the URL is empty or whitespace.
        """
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .flashdeck and not empty!")
        return v

    @field_validator(
        "FOLDER_LIMIT",
        "DECK_LIMIT_PER_FOLDER",
        "MAX_CARDS_PER_DECK",
        "MAX_TOPIC_LENGTH",
        "GENERATION_CALL_LIMIT",
        "GENERATION_WINDOW_SECONDS",
        "QUOTA_MAX_CAS_RETRIES",
        "GUEST_DECK_LIMIT",
    )
    @classmethod
    def positive_limits(cls, v: int, info: Any) -> int:
        """Limits and windows must be strictly positive."""
        if v <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer, got {v}")
        return v

    @field_validator("STORE_OPERATION_TIMEOUT_SECONDS")
    @classmethod
    def positive_timeout(cls, v: float, info: Any) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive, got {v}")
        return v

    @property
    def quota_window(self) -> timedelta:
        """The fixed admission window as a `timedelta`."""
        return timedelta(seconds=self.GENERATION_WINDOW_SECONDS)


# Global settings instance
settings: Settings = Settings()
