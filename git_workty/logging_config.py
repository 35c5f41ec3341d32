"""Logging configuration for git-workty"""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOG_DIR = Path.home() / '.git-workty'
LOG_FILE_NAME = 'git-workty.log'

# Package prefixes dropped from logger names, outermost first
_NAME_PREFIXES = ('git_workty.', 'services.')


def _level_for(verbose: bool, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def _file_handler(log_dir: Path) -> logging.Handler:
    """Debug log file, overwritten on every run."""
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / LOG_FILE_NAME, mode='w')
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    return handler


def setup_logging(verbose: bool = False, debug: bool = False, log_dir: Optional[Path] = None) -> None:
    """
    Configure logging for the application.

    Log records always go to stderr so stdout stays clean for paths and JSON.

    Args:
        verbose: If True, show INFO level messages
        debug: If True, show DEBUG level messages and also write a log file
        log_dir: Where the debug log file goes (default: ~/.git-workty)
    """
    level = _level_for(verbose, debug)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = RichHandler(
        console=Console(stderr=True),
        level=level,
        show_time=debug,
        show_path=debug,
        markup=False,
        rich_tracebacks=debug,
    )
    console_handler.setFormatter(logging.Formatter('[%(name)s] %(message)s'))
    root_logger.addHandler(console_handler)

    if debug:
        root_logger.addHandler(_file_handler(log_dir or LOG_DIR))

    # GitPython logs every command at DEBUG; keep it out of normal verbose output
    logging.getLogger('git').setLevel(logging.DEBUG if debug else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        name: Name of the module (typically __name__)

    Returns:
        Logger instance
    """
    for prefix in _NAME_PREFIXES:
        name = name.removeprefix(prefix)
    return logging.getLogger(name)
