"""Logging setup: rich console output plus rotating log files."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from rich.logging import RichHandler

from config.settings import get_settings

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAIN_LOG_NAME = "novelscope.log"
SDK_LOG_NAME = "llm_calls.log"
SDK_LOGGER_NAME = "tools.agent_sdk_client"

_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        str(path),
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
    console_enabled: bool = True,
) -> Path:
    """Configure application-wide logging.

    Args:
        level: Root level, as a number or a name such as ``"DEBUG"``.
        log_dir: Directory for log files. Defaults to ``Settings.log_dir``.
        console_enabled: Whether to render log records on the console via Rich.

    Returns:
        The directory the log files are written to.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    log_dir = Path(log_dir) if log_dir is not None else get_settings().log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # Drop handlers from a previous call so records are not written twice
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if console_enabled:
        console_handler = RichHandler(rich_tracebacks=True, show_path=False)
        console_handler.setLevel(level)
        root_logger.addHandler(console_handler)

    root_logger.addHandler(_rotating_handler(log_dir / MAIN_LOG_NAME, level, formatter))

    # SDK calls get their own file at DEBUG regardless of the root level
    sdk_logger = logging.getLogger(SDK_LOGGER_NAME)
    sdk_logger.setLevel(logging.DEBUG)
    for handler in list(sdk_logger.handlers):
        sdk_logger.removeHandler(handler)
        handler.close()
    sdk_logger.addHandler(_rotating_handler(log_dir / SDK_LOG_NAME, logging.DEBUG, formatter))

    logging.getLogger(__name__).debug("Logging initialized: level=%s, dir=%s", level, log_dir)
    return log_dir
