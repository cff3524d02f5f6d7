import os
import logging
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    upload_dir: str = "uploads"
    state_file: str = "current_files.json"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def get_settings() -> Settings:
    """Read service settings from the environment (and .env, if present)."""
    origins = os.getenv("DATA_ALCHEMIST_CORS_ORIGINS", "*")
    return Settings(
        upload_dir=os.getenv("DATA_ALCHEMIST_UPLOAD_DIR", "uploads"),
        state_file=os.getenv("DATA_ALCHEMIST_STATE_FILE", "current_files.json"),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()] or ["*"],
        log_level=os.getenv("DATA_ALCHEMIST_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
