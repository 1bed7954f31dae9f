import logging
import os
from dataclasses import dataclass, field
from typing import List

from newsroom.llm import DEFAULT_MODEL, load_api_keys

logger = logging.getLogger(__name__)


def get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {name}={value}, using default={default}")
        return default


def get_bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes")


def get_log_level(name: str = "LOG_LEVEL", default: str = "INFO") -> str:
    value = os.getenv(name, default).strip().upper()
    if not isinstance(logging.getLevelName(value), int):
        logger.warning(f"Unknown log level {name}={value}, using {default}")
        return default
    return value


def configure_logging(level: str) -> None:
    """Apply the configured level to the root logger set up by main.py."""
    logging.getLogger().setLevel(level)


@dataclass
class Settings:
    github_token: str
    gemini_api_keys: List[str] = field(default_factory=list)
    gemini_model: str = DEFAULT_MODEL
    publish_dir: str = "./site"
    base_path: str = ""
    history_lookback: int = 3
    dry_run: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from the environment (call load_dotenv() first)."""
        return cls(
            github_token=os.getenv("GITHUB_TOKEN", ""),
            gemini_api_keys=load_api_keys(),
            gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_MODEL),
            publish_dir=os.getenv("PUBLISH_DIR", "./site"),
            base_path=os.getenv("BASE_PATH", ""),
            history_lookback=max(0, get_int_env("HISTORY_LOOKBACK", 3)),
            dry_run=get_bool_env("DRY_RUN"),
            log_level=get_log_level(),
        )

    def missing(self) -> List[str]:
        """Names of required variables that are not set."""
        missing = []
        if not self.github_token:
            missing.append("GITHUB_TOKEN")
        if not self.gemini_api_keys:
            missing.append("GEMINI_API_KEY")
        return missing
