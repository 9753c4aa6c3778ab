"""
Production Manifest Logging Configuration

Everything logs under the ``production_manifest`` logger tree. Call
``setup_logging`` once from the host application; library code only ever
calls ``get_logger`` or ``manifest_logger``.
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

ROOT_LOGGER_NAME = "production_manifest"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
VERBOSE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(funcName)s | %(message)s"

# SDK loggers that log every HTTP round trip at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "anthropic", "openai")


class LogLevel(Enum):
    """Log level enumeration."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


LevelLike = Union[LogLevel, str, int]

_loggers: Dict[str, logging.Logger] = {}


def resolve_level(level: LevelLike) -> int:
    """Turn a LogLevel, level name or number into a logging level number."""
    if isinstance(level, LogLevel):
        return level.value
    if isinstance(level, int):
        return level
    try:
        return LogLevel[str(level).strip().upper()].value
    except KeyError:
        raise ValueError(f"Unknown log level: {level!r}") from None


def setup_logging(
    level: LevelLike = LogLevel.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = False,
    console_output: bool = True,
    quiet_sdks: bool = True
) -> logging.Logger:
    """
    Configure the production_manifest logger tree.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Minimum level, as a LogLevel, a name like "debug" or a number
        log_file: Optional file that receives the same records as stderr
        verbose: Include line numbers and function names
        console_output: Write records to stderr
        quiet_sdks: Hold the LLM SDK and HTTP client loggers at WARNING

    Returns:
        The root logger of the tree
    """
    numeric_level = resolve_level(level)
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(numeric_level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        VERBOSE_FORMAT if verbose else DEFAULT_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    handlers = []
    if console_output:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    if quiet_sdks:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.debug(
        f"Logging ready at {logging.getLevelName(numeric_level)} with {len(handlers)} handler(s)"
    )
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a namespaced logger for a pipeline component.

    Args:
        name: Component name, e.g. "repair.pipeline"

    Returns:
        Logger under the production_manifest tree
    """
    full_name = name if name.startswith(ROOT_LOGGER_NAME) else f"{ROOT_LOGGER_NAME}.{name}"
    if full_name not in _loggers:
        _loggers[full_name] = logging.getLogger(full_name)
    return _loggers[full_name]


class ManifestLogAdapter(logging.LoggerAdapter):
    """Prefixes each message with the id of the manifest being processed."""

    def process(self, msg, kwargs):
        return f"[{self.extra['manifest_id']}] {msg}", kwargs


def manifest_logger(name: str, manifest_id: Optional[str]) -> ManifestLogAdapter:
    """Logger for one manifest run; concurrent runs stay distinguishable."""
    return ManifestLogAdapter(get_logger(name), {"manifest_id": manifest_id or "unidentified"})


class LogContext:
    """Temporarily run a pipeline logger at another level."""

    def __init__(self, logger: Union[logging.Logger, str], level: LevelLike):
        self.logger = get_logger(logger) if isinstance(logger, str) else logger
        self.new_level = resolve_level(level)
        self.old_level = self.logger.level

    def __enter__(self) -> logging.Logger:
        self.logger.setLevel(self.new_level)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.setLevel(self.old_level)
        return False
