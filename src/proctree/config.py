"""Runtime configuration for proctree."""

import argparse
import logging
import os
import sys
from dataclasses import dataclass

from proctree.models import Operation

LOG_LEVEL_ENV = "PROCTREE_LOG_LEVEL"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@dataclass
class Config:
    root_pid: int
    target_pid: int
    operation: Operation | None = None
    log_level: int = logging.WARNING


def _env_log_level() -> int:
    value = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if not value:
        return logging.WARNING
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else logging.WARNING


def init_config_from_args(args: argparse.Namespace) -> Config:
    """Build a Config from parsed command-line arguments and the environment."""
    cfg = Config(root_pid=args.root_pid, target_pid=args.target_pid)
    cfg.operation = args.operation
    cfg.log_level = logging.DEBUG if args.verbose else _env_log_level()
    return cfg


def configure_logging(level: int) -> None:
    """Send proctree's log records to stderr, keeping stdout for results."""
    logger = logging.getLogger("proctree")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
