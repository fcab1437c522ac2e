"""
Settings — explicit values, then TREETRACKER_* environment variables, then
~/.treetracker/config.json, then defaults.
"""

import json
import os
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel

from treetracker_messaging.transport.http import DEFAULT_BASE_URL, DEFAULT_TIMEOUT

CONFIG_DIR = Path.home() / ".treetracker"
CONFIG_FILE = CONFIG_DIR / "config.json"
ENV_PREFIX = "TREETRACKER_"


class Settings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    database_url: str = f"sqlite:///{CONFIG_DIR / 'messages.db'}"
    page_limit: int = 50
    timeout: float = DEFAULT_TIMEOUT
    checkpoint_mode: Literal["derived", "persisted"] = "derived"
    state_file: str = str(CONFIG_DIR / "sync_state.json")
    wallet_handle: Optional[str] = None
    partition: str = "default"

    @classmethod
    def load(cls, config_file: Optional[Path] = None, **overrides: Any) -> "Settings":
        values: dict[str, Any] = load_config_file(config_file or CONFIG_FILE)
        for name in cls.model_fields:
            env = os.environ.get(ENV_PREFIX + name.upper())
            if env is not None:
                values[name] = env
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)


def load_config_file(path: Optional[Path] = None) -> dict:
    try:
        data = json.loads(Path(path or CONFIG_FILE).read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config_file(cfg: dict, path: Optional[Path] = None) -> None:
    path = Path(path or CONFIG_FILE)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg, indent=2))
