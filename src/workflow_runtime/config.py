"""
Runtime configuration
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class RuntimeSettings:
    """Settings shared by the API server, the CLI and the runner"""
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT
    definitions_dir: Optional[Path] = None
    strict_outputs: bool = False
    max_auto_advance: int = 100
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "RuntimeSettings":
        """Build settings from the environment (and a .env file if present)"""
        load_dotenv(dotenv_path)

        definitions_dir = os.getenv("WORKFLOW_DEFINITIONS_DIR")

        return cls(
            log_level=os.getenv("WORKFLOW_LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("WORKFLOW_LOG_FORMAT", DEFAULT_LOG_FORMAT),
            definitions_dir=Path(definitions_dir) if definitions_dir else None,
            strict_outputs=_env_bool("WORKFLOW_STRICT_OUTPUTS", False),
            max_auto_advance=int(os.getenv("WORKFLOW_MAX_AUTO_ADVANCE", "100")),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("API_PORT", "8000")),
            api_reload=_env_bool("API_RELOAD", False),
        )


def configure_logging(settings: Optional[RuntimeSettings] = None) -> None:
    """Configure root logging for entry points"""
    settings = settings or RuntimeSettings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=settings.log_format
    )
