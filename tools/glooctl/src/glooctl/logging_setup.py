"""
Logging configuration for glooctl.

Every run writes a DEBUG log file; the console only shows warnings and
errors unless ``--verbose`` is given.  The log directory is, in order:

  1. ``--log-dir`` / the GLOO_LOG_DIR environment variable
  2. ``<tool root>/logs`` when running from a source checkout
  3. ``~/.glooctl/logs``
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime

from .config import PROJECT_ROOT, ConfigError

__all__ = ["ENV_LOG_DIR", "USER_LOG_DIR", "default_log_dir", "setup_logging"]

ENV_LOG_DIR = "GLOO_LOG_DIR"
USER_LOG_DIR = os.path.join("~", ".glooctl", "logs")

_FILE_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


def _is_source_checkout(root: str) -> bool:
    return os.path.isdir(os.path.join(root, "src", "glooctl"))


def default_log_dir(root: str = PROJECT_ROOT) -> str:
    """Directory used when neither --log-dir nor GLOO_LOG_DIR is set."""
    if _is_source_checkout(root):
        return os.path.join(root, "logs")
    return os.path.expanduser(USER_LOG_DIR)


def _console_handler(verbose: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if verbose:
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%H:%M:%S"))
    else:
        handler.setLevel(logging.WARNING)
        handler.setFormatter(logging.Formatter("%(levelname)-8s  %(message)s"))
    return handler


def setup_logging(verbose: bool = False, log_dir: str | None = None) -> str:
    """Install the file and console handlers on the root logger.

    Returns the path of the log file.

    Raises:
        ConfigError: If the log directory cannot be created or written.
    """
    log_dir = os.path.expanduser(log_dir or os.environ.get(ENV_LOG_DIR) or default_log_dir())
    log_path = os.path.join(
        log_dir, f"glooctl_{datetime.now().strftime('%Y-%m-%d-%H%M%S')}.log"
    )
    try:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to write log file in {log_dir}: {exc}") from exc
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    root_logger.addHandler(file_handler)
    root_logger.addHandler(_console_handler(verbose))

    # urllib3 logs every connection and retry at DEBUG
    logging.getLogger("urllib3").setLevel(logging.INFO)

    logging.getLogger(__name__).debug("Logging to %s", log_path)
    return log_path
