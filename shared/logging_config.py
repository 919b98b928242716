"""
Logging configuration for CFS services.

Provides consistent logging setup across all components: master, metanode,
datanode and the admin CLI.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def normalize_log_level(raw: Optional[str]) -> int:
    """Map a config log level to a logging level; unknown values become ERROR"""
    return LOG_LEVELS.get(str(raw or "").strip().lower(), logging.ERROR)


def setup_logging(
    component_name: str,
    level=logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
):
    """
    Configure logging for a CFS component.

    Args:
        component_name: Module tag (e.g., 'master', 'metaNode', 'dataNode')
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        format_string: Custom format string (default provided)
    """
    if format_string is None:
        format_string = f'[%(asctime)s] [{component_name.upper()}] %(levelname)s - %(message)s'

    # Configure root logger
    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ],
        force=True
    )

    # Add file handler if specified
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(format_string, datefmt='%Y-%m-%d %H:%M:%S'))
        logging.getLogger().addHandler(file_handler)

    logger = logging.getLogger(component_name)
    logger.info(f"{component_name.upper()} logging initialized (level={logging.getLevelName(level)})")

    return logger


def init_node_logging(log_dir: str, module: str, level: int):
    """Log to stdout and to <log_dir>/<module>/<module>.log"""
    log_file = os.path.join(log_dir or "./logs", module, f"{module}.log")
    return setup_logging(module, level=level, log_file=log_file)


def flush_logs():
    """Flush every handler attached to the root logger"""
    for handler in logging.getLogger().handlers:
        try:
            handler.flush()
        except (OSError, ValueError):
            pass
