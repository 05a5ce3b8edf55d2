"""Environment variable access for fake service configuration."""

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class EnvAccessor:
    """Reads environment variables by name.

    Every call goes back to the underlying mapping, so changes made between
    calls (for example in test setup and teardown) are seen immediately.
    Pass ``environ`` to read from a controlled mapping instead of the
    process environment.
    """

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = environ

    def get(self, name: str) -> str | None:
        """Return the value of ``name`` or None when it is not set."""
        environ = os.environ if self._environ is None else self._environ
        return environ.get(name)

    def __repr__(self) -> str:
        source = "os.environ" if self._environ is None else "mapping"
        return f"EnvAccessor({source})"


def load_env(dotenv_path: str | Path | None = None) -> bool:
    """Load variables from a .env file without overriding the process environment.

    Args:
        dotenv_path: Explicit path to the file, defaults to dotenv's search

    Returns:
        True if a file was found and loaded
    """
    if dotenv_path is not None and not Path(dotenv_path).exists():
        logger.debug(f"No .env file at {dotenv_path}")
        return False

    loaded = load_dotenv(dotenv_path, override=False)
    if loaded:
        logger.debug(f"Loaded environment from: {dotenv_path or '.env'}")
    return loaded
