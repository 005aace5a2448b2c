"""
Configuration for the engagement core.

Values come from the environment (.env is loaded first), then from an
optional engagement.yaml next to the working directory. YAML wins.
"""

import logging
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

load_dotenv()

SETTINGS_FILE = Path(os.environ.get("ENGAGEMENT_SETTINGS", "engagement.yaml"))


def load_settings_file(path: Path = SETTINGS_FILE) -> dict:
    """Load YAML overrides. Missing file means no overrides."""
    if not path.exists():
        return {}
    with open(path) as f:
        data = yaml.safe_load(f)
    return data or {}


_overrides = load_settings_file()


def _setting(name: str, default):
    if name in _overrides:
        return _overrides[name]
    return os.environ.get(f"ENGAGEMENT_{name}", default)


# Storage
STORE_BACKEND: str = str(_setting("STORE_BACKEND", "memory"))  # 'memory' | 'json'
DATA_DIR = Path(_setting("DATA_DIR", "data"))
BLOB_DIR = Path(_setting("BLOB_DIR", "blobs"))

# Pagination
DEFAULT_PAGE_LIMIT: int = int(_setting("DEFAULT_PAGE_LIMIT", 10))
MAX_PAGE_LIMIT: int = int(_setting("MAX_PAGE_LIMIT", 100))

# Pipeline evaluation budget, seconds. 0 disables the deadline.
PIPELINE_TIMEOUT_SECONDS: float = float(_setting("PIPELINE_TIMEOUT_SECONDS", 5.0))

LOG_LEVEL: str = str(_setting("LOG_LEVEL", "INFO")).upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = None) -> None:
    """Set up root logging once for the process."""
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
