"""Configuration management for Vital."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

VITAL_HOME = Path(os.environ.get("VITAL_HOME", Path.home() / "vital"))
CONFIG_FILE = VITAL_HOME / "config" / "vital.conf"
DATA_DIR = VITAL_HOME / "data"

BACKENDS = ("file", "supabase")


@dataclass
class Config:
    """Vital configuration."""

    backend: str = "file"
    data_file: str = ""
    supabase_url: str = ""
    supabase_api_key: str = ""
    supabase_access_token: str = ""
    supabase_user_id: str = ""

    @property
    def data_path(self) -> Path:
        """Resolved location of the local habits file."""
        if self.data_file:
            return Path(self.data_file).expanduser()
        return DATA_DIR / "habits.json"


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from an unquoted value."""
    if value[:1] in ('"', "'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def parse_config(text: str) -> Config:
    """Parse vital.conf contents (KEY=value lines)."""
    config = Config()

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "backend":
                value = value.lower()
                if value in BACKENDS:
                    config.backend = value
                else:
                    logger.warning(f"Unknown BACKEND {value!r}, using {config.backend!r}")
            case "data_file":
                config.data_file = value
            case "supabase_url":
                config.supabase_url = value.rstrip("/")
            case "supabase_api_key":
                config.supabase_api_key = value
            case "supabase_access_token":
                config.supabase_access_token = value
            case "supabase_user_id":
                config.supabase_user_id = value
            case _:
                logger.debug(f"Ignoring unknown config key: {key}")

    return config


def load_config(path: Path | None = None) -> Config:
    """Load configuration from vital.conf file."""
    path = path or CONFIG_FILE
    if not path.exists():
        return Config()
    return parse_config(path.read_text())
