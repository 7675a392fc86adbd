"""
Logging configuration for GIS Layer Viewer.

All modules log under the 'gis_viewer' logger tree. The command line attaches
a console handler (INFO by default, DEBUG with --verbose) and a timestamped
DEBUG file per run. Without setup_logging() records fall through to Python's
default handling.

Functions:
    setup_logging: Attach console and file handlers, return the log file path
    get_logger: Child logger for a module

Example:
    >>> from utils.logger import setup_logging, get_logger
    >>> log_file = setup_logging(verbose=True)
    >>> get_logger('core.session').debug("Viewer session initialized")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = 'gis_viewer'
DEFAULT_LOG_DIR = Path(__file__).parent.parent / 'logs'

CONSOLE_FORMAT = '%(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_dir: Optional[Path] = None, verbose: bool = False) -> Path:
    """
    Attach console and file handlers to the viewer's root logger.

    Parameters:
    -----------
    log_dir : Optional[Path]
        Directory for gis_viewer_<timestamp>.log files. Defaults to PROJECT_ROOT/logs
    verbose : bool
        Show DEBUG messages (layer ids, hit-tests, fits) on the console

    Returns:
    --------
    Path
        Path to this run's log file
    """
    log_dir = log_dir or DEFAULT_LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"gis_viewer_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(logging.DEBUG)

    # Calling setup_logging again replaces the previous run's handlers
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console)

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    root.addHandler(file_handler)

    root.debug(f"Logging to {log_file} (console {'DEBUG' if verbose else 'INFO'})")
    return log_file


def get_logger(name: str) -> logging.Logger:
    """Logger named gis_viewer.<name>, so records reach the handlers above."""
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')
