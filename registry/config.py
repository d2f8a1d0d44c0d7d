"""
registry/config.py

Environment-driven settings for the case registry.

Variables
---------
CASE_REGISTRY_DB_PATH     SQLite file path, or ``:memory:`` for a
                          process-local store.
CASE_REGISTRY_DATA_KEY    Fernet key for clinical payload encryption.
CASE_REGISTRY_LOG_LEVEL   Root log level used by entry points.
"""

import logging
import os
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parents[1]

DB_PATH: str = os.environ.get(
    "CASE_REGISTRY_DB_PATH",
    str(_PROJECT_ROOT / "data" / "case_registry.db"),
)

DATA_KEY_ENV = "CASE_REGISTRY_DATA_KEY"

LOG_LEVEL: str = os.environ.get("CASE_REGISTRY_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Apply the standard log format to the root logger."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
