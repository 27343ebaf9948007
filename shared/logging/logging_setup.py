import logging
import logging.config
import os
from datetime import datetime
from logging import Logger

from pytz import timezone

LOGGER_NAME = "md_preview_bridge"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# third-party loggers and the level they are held at outside debug mode
QUIET_LOGGERS: dict[str, int] = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "markdown_it": logging.WARNING,
}

LEVEL_PREFIXES: dict[int, str] = {
    logging.WARNING: "⚠️ ",
    logging.ERROR: "⛔ ",
    logging.CRITICAL: "⛔ ",
}

ANSI_RESET = "\033[0m"
ANSI_COLORS: dict[str, str] = {
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
    "blue": "\033[34m",
    "white": "\033[37m",
}


def get_log_level() -> int:
    """Reads LOG_LEVEL (debug, info, warning, error). Unknown names fall back to info."""
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "info").upper())
    return level if isinstance(level, int) else logging.INFO


class CustomFormatter(logging.Formatter):
    """Renders timestamps in the configured timezone and marks warnings and errors with an emoji."""

    def __init__(self, tz_name, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record):
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # arguments do not fit the template, keep the template
            message = str(record.msg)
        record.msg = LEVEL_PREFIXES.get(record.levelno, "") + message
        record.args = ()
        return super().format(record)


class ColoredFormatter(CustomFormatter):
    """Console formatter coloring records that carry a ``color`` attribute."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = ANSI_COLORS.get(getattr(record, "color", None) or "")
        return f"{ansi}{line}{ANSI_RESET}" if ansi and line else line


class ColorLogger:
    """
    Wraps a Logger so that every log method accepts ``color=<name>``.

        logger.info("preview shown for %s", name, color="green")

    The color only reaches the console handler; the log file stays plain.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _log(self, level: int, msg, args, color: str | None, kwargs: dict) -> None:
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.DEBUG, msg, args, color, kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.INFO, msg, args, color, kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.WARNING, msg, args, color, kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.ERROR, msg, args, color, kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, args, color, kwargs)

    def __getattr__(self, name):
        return getattr(self._logger, name)


def _formatter(formatter_class: type, tz_name: str) -> dict:
    return {"()": formatter_class, "format": LOG_FORMAT, "datefmt": LOG_DATE_FORMAT, "tz_name": tz_name}


def setup_logging() -> ColorLogger:
    """Configures console and file logging and returns the application logger.

    Env:
        LOG_LEVEL: debug, info (default), warning or error.
        TIMEZONE: Timezone of the timestamps (default Europe/Berlin).
        ROOT_DIR: Log files go to $ROOT_DIR/logs/app.log (current directory if unset).
    """
    level = get_log_level()
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")
    log_dir = os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "logs")
    os.makedirs(log_dir, exist_ok=True)

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": _formatter(CustomFormatter, tz_name),
            "colored": _formatter(ColoredFormatter, tz_name),
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "colored",
                "level": level,
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "standard",
                "level": level,
                "filename": os.path.join(log_dir, "app.log"),
                "encoding": "utf-8",
            },
        },
        "root": {"handlers": ["console", "file"], "level": level},
    })

    # host traffic is logged by the pipeline itself
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level if level == logging.DEBUG else quiet_level)

    return ColorLogger(logging.getLogger(LOGGER_NAME))
