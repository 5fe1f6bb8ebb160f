from __future__ import annotations

import logging
import os
import sys
import traceback
from datetime import datetime
from pathlib import Path

LOG_DIR_ENV = "CHIPSFX_LOG_DIR"
DEBUG_ENV = "CHIPSFX_DEBUG"

_LOGGER = logging.getLogger("chipsfx.logging")
_PACKAGE_LOGGER = "chipsfx"
_LOG_FILE = "chipsfx.log"
_configured = False


def is_debug() -> bool:
    return bool(os.environ.get(DEBUG_ENV))


def get_log_dir() -> Path:
    configured = os.environ.get(LOG_DIR_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".cache" / "chipsfx" / "logs"


def get_log_path() -> Path:
    return get_log_dir() / _LOG_FILE


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(stream=sys.__stderr__)
    handler.setLevel(logging.DEBUG if is_debug() else logging.INFO)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    return handler


def _file_handler() -> logging.Handler:
    get_log_dir().mkdir(parents=True, exist_ok=True)
    # Opened on first record so importing chipsfx never touches the disk.
    handler = logging.FileHandler(get_log_path(), encoding="utf-8", delay=True)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    return handler


def configure_logging(*, force: bool = False) -> None:
    """Attach console and file handlers to the ``chipsfx`` logger once.

    The console handler is left out when the host application already
    configured the root logger, unless ``force`` is set.
    """

    global _configured
    if _configured and not force:
        return

    logger = logging.getLogger(_PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG)
    if force:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    if force or not logging.getLogger().handlers:
        logger.addHandler(_console_handler())
    try:
        logger.addHandler(_file_handler())
    except OSError as exc:
        _LOGGER.warning("Failed to configure file logging: %s", exc, exc_info=True)
    _configured = True


def log_exception(context: str, exc: BaseException) -> Path | None:
    """Append ``exc`` with its traceback to the log file and return the file."""

    path = get_log_path()
    trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    stamp = datetime.now().isoformat()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(f"[{stamp}] {context} failed: {type(exc).__name__}: {exc}\n{trace}\n")
    except OSError as log_exc:
        _LOGGER.warning("Failed to write log file: %s", log_exc, exc_info=True)
        return None
    return path
