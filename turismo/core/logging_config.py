from __future__ import annotations

import logging
import logging.handlers
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every statement or hash round at INFO
_NOISY_LOGGERS = ("sqlalchemy.engine", "passlib", "multipart", "aiohttp.access")

_MARKER = "_turismo_handler"


def _rotating(path: str, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    setattr(handler, _MARKER, True)
    return handler


def configure_logging(*, log_dir: str, level: str = "INFO") -> None:
    """Console plus turismo.log, and errors.log for WARNING and above.

    Safe to call more than once; handlers are only attached the first time.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if any(getattr(h, _MARKER, False) for h in root.handlers):
        return

    os.makedirs(log_dir, exist_ok=True)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    setattr(console, _MARKER, True)

    root.addHandler(console)
    root.addHandler(_rotating(os.path.join(log_dir, "turismo.log"), logging.NOTSET, formatter))
    root.addHandler(_rotating(os.path.join(log_dir, "errors.log"), logging.WARNING, formatter))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
