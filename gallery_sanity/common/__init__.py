"""
================================================================================
Common Utilities
================================================================================

Shared configuration management and logging setup for the sanity check.

Exports:
    - ConfigLoader / HarnessConfig: configuration access
    - init_logger: initialize the loguru logger with standard settings

Usage:
    from gallery_sanity.common import ConfigLoader, HarnessConfig, init_logger

    loader = ConfigLoader()
    init_logger(loader)
    config = HarnessConfig.from_loader(loader)

================================================================================
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import (
    AppConfig,
    ConfigLoader,
    ConfigurationError,
    DriverConfig,
    HarnessConfig,
    ReadinessConfig,
    ScenarioConfig,
    SUPPORTED_BACKENDS,
)


# ============================================================
# Logging Setup
# ============================================================

_logger_initialized = False


def init_logger(
    loader: Optional[ConfigLoader] = None,
    level: str = None,
    force: bool = False,
) -> None:
    """
    Initializes the loguru logger with standard settings.

    Diagnostics always go to stderr; stdout is reserved for the progress
    markers printed by the reporter.

    Args:
        loader: Configuration source. Defaults to the ConfigLoader singleton.
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        force: Re-initialize even if already configured.
    """
    global _logger_initialized

    if _logger_initialized and not force:
        return

    loader = loader or ConfigLoader()
    log_level = (level or loader.get("logging.level", "INFO")).upper()
    log_format = loader.get("logging.format")

    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        format=log_format,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    log_file = loader.get("logging.file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=log_level,
            format=log_format.replace("{level: <8}", "{level}"),
            rotation="10 MB",
            retention="7 days",
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {log_level}")


__all__ = [
    "AppConfig",
    "ConfigLoader",
    "ConfigurationError",
    "DriverConfig",
    "HarnessConfig",
    "ReadinessConfig",
    "ScenarioConfig",
    "SUPPORTED_BACKENDS",
    "init_logger",
]
