# Author: PB
# Maintainer: PB
# Original date: 2025.07.03
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/system/logging_setup.py

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from gitmarks.config.manager import SyncConfig, load_merged_config


def setup_logging(config: Optional[SyncConfig] = None) -> None:
    """Setup loguru logging for the engine.

    Configures:
    - Console output: WARNING+ only
    - File output: DEBUG+ if local_log is configured
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level="WARNING",
        format="<level>{level}</level>: {message}",
        colorize=True
    )

    try:
        if config is None:
            config = load_merged_config()
        if config.local_log:
            log_dir = Path(config.local_log)
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file = log_dir / "gitmarks.log"

            logger.add(
                log_file,
                level="DEBUG",
                format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}",
                rotation="10 MB",
                retention="30 days",
                compression="gz",
                enqueue=True,
            )
            logger.debug(f"File logging enabled: {log_file}")

    except Exception as e:
        # Logging problems must not stop the engine
        logger.warning(f"Failed to setup file logging: {e}")
