"""
Production Manifest Core Module

Configuration, constants, exceptions and logging.
"""

from .config import ManifestConfig, get_config, load_config, set_config
from .constants import *
from .exceptions import *
from .logging_config import LogContext, get_logger, manifest_logger, setup_logging

__all__ = [
    'ManifestConfig',
    'get_config',
    'load_config',
    'set_config',
    'setup_logging',
    'get_logger',
    'manifest_logger',
    'LogContext',
]
