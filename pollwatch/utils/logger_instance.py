import logging
import os
from rich.logging import RichHandler


TRACE = 5  # below DEBUG; per-block discovery decisions
LEVELS = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL
}
logging.addLevelName(TRACE, "TRACE")


def resolve_level(name):
    """LOG_LEVEL name -> logging level. Unknown names fall back to INFO."""
    return LEVELS.get((name or "").strip().upper(), logging.INFO)


LOG_LEVEL = resolve_level(os.getenv("LOG_LEVEL", "INFO"))

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(message)s',
    handlers=[RichHandler(rich_tracebacks=True, show_path=False)]
)
logger = logging.getLogger("pollwatch")
logger.setLevel(LOG_LEVEL)
