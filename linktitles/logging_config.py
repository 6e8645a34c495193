import os
import logging
import logging.config
import contextvars
from contextlib import contextmanager

try:
    import sentry_sdk
    from sentry_sdk.integrations.logging import LoggingIntegration
except ImportError:  # pragma: no cover - sentry optional
    sentry_sdk = None
    LoggingIntegration = None

# Fields stamped on every record; "N/A" outside a rewrite.
CONTEXT_VARS = {
    "invocation": contextvars.ContextVar("invocation", default="N/A"),
    "block_uuid": contextvars.ContextVar("block_uuid", default="N/A"),
}

LOG_FORMAT = (
    "%(asctime)s [%(levelname)s] %(name)s "
    "[invocation=%(invocation)s block=%(block_uuid)s]: %(message)s"
)


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for field, var in CONTEXT_VARS.items():
            setattr(record, field, var.get())
        return True


def _handlers(log_level: str, log_dir: str) -> dict:
    common = {"formatter": "default", "filters": ["context"], "level": log_level}
    return {
        "console": {"class": "logging.StreamHandler", **common},
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": os.path.join(log_dir, "linktitles.log"),
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
            **common,
        },
    }


def setup_logging() -> None:
    """Log to the console and a rotating file; forward errors to Sentry if configured."""
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_dir = os.getenv("LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "filters": {"context": {"()": ContextFilter}},
            "handlers": _handlers(log_level, log_dir),
            "root": {"handlers": ["console", "file"], "level": log_level},
        }
    )

    dsn = os.getenv("SENTRY_DSN")
    if dsn and sentry_sdk:
        sentry_sdk.init(
            dsn=dsn,
            integrations=[LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)],
        )


@contextmanager
def logging_context(**fields):
    """Set ``invocation``/``block_uuid`` for records logged inside the block."""
    tokens = []
    for field, value in fields.items():
        if value is not None and field in CONTEXT_VARS:
            var = CONTEXT_VARS[field]
            tokens.append((var, var.set(str(value))))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
