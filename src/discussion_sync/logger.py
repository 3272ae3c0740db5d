import json
import logging
import os
import sys

_TEXT_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Single-line JSON formatter for structured output.

    Produces one JSON object per log record with fields: ts, level, logger, msg.
    Exception info is included as an "exc" field when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter(datefmt=_DATE_FORMAT)
    return logging.Formatter(_TEXT_FORMAT, datefmt=_DATE_FORMAT)


def setup_logging(
    debug: bool = False,
    log_file: str | None = None,
    log_format: str = "text",
    level: str | None = None,
    fallback_file: str | None = None,
) -> None:
    """
    Configure logging for the sync service.

    Logs go to stderr, and additionally to *log_file* when one is given.

    Args:
        debug: If True, overrides LOG_LEVEL to DEBUG.
        log_file: Log file path (overrides LOG_FILE env var).
        log_format: "text" (default) or "json" for structured output.
        level: Level name from the config file, used when LOG_LEVEL is unset.
        fallback_file: Log file from the config file, used when neither
            *log_file* nor LOG_FILE is set.

    Environment variables:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR). Default: INFO.
        LOG_FILE: Optional log file path.
    """
    env_level = os.getenv("LOG_LEVEL", level or "INFO").upper()

    # debug parameter overrides environment
    if debug:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, env_level, logging.INFO)

    handlers: list[logging.Handler] = []
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_formatter(log_format))
    handlers.append(stderr_handler)

    final_log_file = log_file or os.getenv("LOG_FILE") or fallback_file
    if final_log_file:
        file_handler = logging.FileHandler(final_log_file, mode="a")
        file_handler.setFormatter(_formatter(log_format))
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    # Silence third-party libs unless DEBUG
    if log_level != logging.DEBUG:
        logging.getLogger("discord").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
