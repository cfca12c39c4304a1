"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "chatdocs.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _split_origins(value: str) -> list[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@dataclass
class Settings:
    """Runtime settings read from the environment."""

    database_url: str | None = None
    api_host: str = "localhost"
    api_port: int = 8000
    client_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000"]
    )

    # Whapi.cloud
    whapi_base_url: str = "https://gate.whapi.cloud"
    whapi_token: str = ""
    webhook_url: str | None = None

    # Google Document AI
    document_ai_project_id: str = ""
    document_ai_location: str = "us"
    document_ai_processor_id: str = ""

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            api_host=os.getenv("API_HOST", "localhost"),
            api_port=int(os.getenv("API_PORT", "8000")),
            client_origins=_split_origins(
                os.getenv("CLIENT_URL", "http://localhost:3000")
            ),
            whapi_base_url=os.getenv("WHAPI_BASE_URL", "https://gate.whapi.cloud"),
            whapi_token=os.getenv("WHAPI_TOKEN", ""),
            webhook_url=os.getenv("WEBHOOK_URL"),
            document_ai_project_id=os.getenv("DOCUMENT_AI_PROJECT_ID", ""),
            document_ai_location=os.getenv("DOCUMENT_AI_LOCATION", "us"),
            document_ai_processor_id=os.getenv("DOCUMENT_AI_PROCESSOR_ID", ""),
        )

    @property
    def document_ai_configured(self) -> bool:
        """Whether every Document AI coordinate is set."""
        return bool(
            self.document_ai_project_id
            and self.document_ai_location
            and self.document_ai_processor_id
        )
