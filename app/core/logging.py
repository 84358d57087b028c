import logging
import os
from typing import Optional


DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEFAULT_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | caller=%(caller_id)s model=%(model)s | %(message)s"
)

# Passed per call via ``extra=``; rendered as "-" when a record lacks them
CONTEXT_FIELDS = ("caller_id", "model")


class ContextFilter(logging.Filter):
    """Fills generation context fields so the formatter never raises KeyError."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        for field in CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, "-")
        return True


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Install a single stream handler on the root logger.

    Safe to call again (uvicorn reload, CLI re-entry): previous handlers are
    replaced rather than stacked.
    """
    resolved_level = getattr(logging, (level or DEFAULT_LEVEL), logging.INFO)

    root = logging.getLogger()
    root.setLevel(resolved_level)
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    handler.addFilter(ContextFilter())
    root.addHandler(handler)

    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(max(resolved_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Module logger; configures the root on first use if nothing else did."""
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)
