"""
Logging setup for the Agent Relay command line interface.

The library modules only create loggers; handlers are attached here, once,
by the CLI entry point.
"""

import logging
import os
import sys
from typing import Optional


def setup_logging(verbose: bool = False, debug: bool = False, log_file: Optional[str] = None) -> None:
    """Configure logging for CLI use.

    Args:
        verbose: Show INFO messages (per-domain progress).
        debug: Show DEBUG messages (discovery decisions); overrides ``verbose``.
        log_file: Also append log records to this file.

    Environment variables:
        AGENT_RELAY_LOG_LEVEL: Level used when neither flag is given.
                               Default: WARNING.
    """
    if debug:
        log_level = logging.DEBUG
    elif verbose:
        log_level = logging.INFO
    else:
        env_level = os.getenv("AGENT_RELAY_LOG_LEVEL", "WARNING").upper()
        log_level = getattr(logging, env_level, logging.WARNING)

    # Log to stderr so command output on stdout stays clean
    handlers = []
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    handlers.append(stderr_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] [%(levelname)s] %(name)s %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)
