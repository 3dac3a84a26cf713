import logging
import os
import sys

BASE_LOGGER = "rotatelab"
LEVEL_ENV = "ROTATELAB_LOG_LEVEL"
CATEGORIES_ENV = "ROTATELAB_LOG_CATS"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

_FORMATTER = logging.Formatter(
    fmt="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
)


class CategoryFilter(logging.Filter):
    """Passes records whose last dotted name part is one of *categories*,
    so ``engine`` lets ``rotatelab.engine`` through."""

    def __init__(self, categories):
        super().__init__()
        self.categories = frozenset(categories)

    def filter(self, record: logging.LogRecord) -> bool:
        return (record.name or "").rsplit(".", 1)[-1] in self.categories


def _resolve_level(default: int) -> int:
    requested = (os.getenv(LEVEL_ENV) or "").strip().lower()
    return _LEVELS.get(requested, default)


def _categories() -> set[str]:
    raw = os.getenv(CATEGORIES_ENV) or ""
    return {part.strip() for part in raw.split(",") if part.strip()}


def _stderr_handler(logger: logging.Logger) -> logging.StreamHandler:
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and getattr(handler, "stream", None) is sys.stderr:
            return handler
    handler = logging.StreamHandler(stream=sys.stderr)
    logger.addHandler(handler)
    return handler


def setup_logger(level: int = logging.INFO, name: str = BASE_LOGGER) -> logging.Logger:
    """Configure the application logger and return it.

    Safe to call repeatedly: the stderr handler is reused, and the level and
    category environment variables are read again on each call.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    handler = _stderr_handler(logger)
    handler.setFormatter(_FORMATTER)
    handler.filters.clear()
    categories = _categories()
    if categories:
        handler.addFilter(CategoryFilter(categories))

    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = setup_logger()
    return base if not name else base.getChild(name)
