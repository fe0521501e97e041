import logging

from .config import LOG_LEVEL


def configure_logging() -> None:
    """Install a single root handler using LOG_LEVEL.

    Safe to call more than once (uvicorn reloads re-import the app module).
    """
    if logging.getLogger().handlers:
        return
    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    logging.basicConfig(level=LOG_LEVEL, format=fmt)
