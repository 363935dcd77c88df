"""
Logging bootstrap for the headless render service.

`setup_logging()` configures the root logger once from the `logging` section
of the active YAML settings; `get_logger(__name__)` hands out module loggers
and performs that setup lazily when nothing has done it yet.

Recognised settings:
- `level`, `format`
- `handlers.console.enabled`
- `handlers.file.{enabled, path, max_bytes, backup_count}` (rotating file,
  path relative to the project root)
- `loggers`: per-logger level overrides, e.g. `{"uvicorn.access": "WARNING"}`
"""
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from headless_render.core.config import ConfigurationManager

# Relative log file paths are resolved against this directory.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s - %(message)s"
DEFAULT_LOG_FILE = "logs/headless_render.log"

_logging_initialized = False


def _level(name: Any, fallback: int = logging.INFO) -> int:
    return getattr(logging, str(name).upper(), fallback)


def _file_handler(settings: Dict[str, Any], formatter: logging.Formatter) -> Optional[logging.Handler]:
    path = os.path.join(PROJECT_ROOT, settings.get("path", DEFAULT_LOG_FILE))
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        handler = RotatingFileHandler(
            filename=path,
            maxBytes=int(settings.get("max_bytes", 10 * 1024 * 1024)),
            backupCount=int(settings.get("backup_count", 5)),
            encoding='utf-8',
        )
    except OSError as e:
        logging.error(f"Logging setup: cannot write log file '{path}': {e}. File logging disabled.", exc_info=True)
        return None
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: Optional[ConfigurationManager] = None) -> None:
    """
    Configures the root logger from the `logging` settings.

    Runs once per process; later calls are no-ops. Without a `logging`
    section, `logging.basicConfig` at INFO is used instead.

    Args:
        config (Optional[ConfigurationManager]): Settings to read. Defaults to
            the shared `config_manager`.
    """
    global _logging_initialized
    if _logging_initialized:
        return

    if config is None:
        from headless_render.core.config import config_manager as config

    log_settings: Dict[str, Any] = config.get("logging") or {}
    if not log_settings:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        logging.warning("Logging setup: no 'logging' section in configuration, using basicConfig.")
        _logging_initialized = True
        return

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    level = _level(log_settings.get("level", "INFO"))
    root_logger.setLevel(level)
    formatter = logging.Formatter(log_settings.get("format", DEFAULT_LOG_FORMAT))

    handlers = log_settings.get("handlers") or {}
    if (handlers.get("console") or {}).get("enabled", False):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    file_settings = handlers.get("file") or {}
    if file_settings.get("enabled", False):
        file_handler = _file_handler(file_settings, formatter)
        if file_handler is not None:
            root_logger.addHandler(file_handler)

    for name, logger_level in (log_settings.get("loggers") or {}).items():
        logging.getLogger(name).setLevel(_level(logger_level, level))

    _logging_initialized = True
    logging.getLogger(__name__).info(
        f"Logging initialized for environment '{getattr(config, 'current_environment', '')}' "
        f"at level {logging.getLevelName(level)} with {len(root_logger.handlers)} handler(s)."
    )


def get_logger(name: str) -> logging.Logger:
    """
    Returns the logger called `name`, configuring logging first if needed.

    Args:
        name (str): Usually the calling module's `__name__`.
    """
    if not _logging_initialized:
        setup_logging()
    return logging.getLogger(name)
