"""
Centralized Logging Configuration Module

Every run logs to a dated file per area (pipeline, cli, api) and,
optionally, to the console.

- Files live under logs/<subdir>/ (a temp directory while pytest is running)
- Daily rotation, plus optional size-based rotation for noisy runs
- Files older than LOG_RETENTION_DAYS are removed when a logger is created
- Level comes from LOG_LEVEL unless passed explicitly

Usage:
    from attendance_reconciler.logging_config import get_logger

    logger = get_logger('pipeline', 'pipeline')
    logger.info('Resolved 412 identities')
"""

import logging
import os
import shutil
import sys
import tempfile
from datetime import datetime, timedelta
from logging.handlers import TimedRotatingFileHandler, RotatingFileHandler
from pathlib import Path
from typing import Optional


# Environment Detection
IS_TEST_ENV = 'pytest' in sys.modules
TEST_LOG_DIR = Path(tempfile.gettempdir()) / 'attendance_reconciler_test_logs'

# Configuration
LOG_BASE_DIR = TEST_LOG_DIR if IS_TEST_ENV else Path(os.getenv('ATTENDANCE_LOG_DIR', 'logs'))
DEFAULT_LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
LOG_RETENTION_DAYS = int(os.getenv('LOG_RETENTION_DAYS', '30'))
MAX_LOG_SIZE_MB = int(os.getenv('MAX_LOG_SIZE_MB', '10'))

# Log format
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def ensure_log_directory(log_subdir: str) -> Path:
    """Create logs/<log_subdir> if needed and return it."""
    log_dir = LOG_BASE_DIR / log_subdir
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def cleanup_old_logs(log_dir: Path, retention_days: int = LOG_RETENTION_DAYS):
    """
    Remove *.log files last modified before the retention window.

    Args:
        log_dir: Directory containing log files
        retention_days: Number of days to retain logs
    """
    if not log_dir.exists():
        return

    cutoff = (datetime.now() - timedelta(days=retention_days)).timestamp()
    for log_file in log_dir.glob('*.log'):
        if log_file.stat().st_mtime < cutoff:
            try:
                log_file.unlink()
            except OSError:
                # another process may have rotated it away already
                continue


def _resolve_level(level: Optional[str]) -> int:
    return getattr(logging, (level or DEFAULT_LOG_LEVEL).upper())


def _daily_file_handler(log_dir: Path, prefix: str, level: int, formatter) -> logging.Handler:
    handler = TimedRotatingFileHandler(
        filename=log_dir / f"{prefix}_{datetime.now().strftime('%Y-%m-%d')}.log",
        when='midnight',
        interval=1,
        backupCount=LOG_RETENTION_DAYS,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _console_handler(level: int, formatter) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def get_logger(
    name: str,
    log_subdir: str,
    level: Optional[str] = None,
    use_size_rotation: bool = False,
    console_output: bool = True
) -> logging.Logger:
    """
    Get a configured logger instance. Repeated calls return the same logger unchanged.

    Args:
        name: Logger name (e.g., 'pipeline', 'cli')
        log_subdir: Subdirectory under the log root
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Defaults to LOG_LEVEL
        use_size_rotation: Also write a size-rotated rolling log (MAX_LOG_SIZE_MB)
        console_output: Also log to the console

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)  # handlers do the filtering
    log_level = _resolve_level(level)
    log_dir = ensure_log_directory(log_subdir)
    cleanup_old_logs(log_dir)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    logger.addHandler(_daily_file_handler(log_dir, log_subdir, log_level, formatter))

    if use_size_rotation:
        size_handler = RotatingFileHandler(
            filename=log_dir / f"{log_subdir}_rolling.log",
            maxBytes=MAX_LOG_SIZE_MB * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        size_handler.setLevel(log_level)
        size_handler.setFormatter(formatter)
        logger.addHandler(size_handler)

    if console_output:
        logger.addHandler(_console_handler(log_level, formatter))

    return logger


def configure_root_logger(level: Optional[str] = None, console_output: bool = True):
    """
    Attach file (logs/app/) and console handlers to the root logger.

    The engine's named loggers (identity, formatter, aggregator, ...) have no
    handlers of their own and propagate here. Does nothing if the root logger
    is already configured.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    root_logger.setLevel(logging.DEBUG)
    log_level = _resolve_level(level)
    log_dir = ensure_log_directory('app')
    cleanup_old_logs(log_dir)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger.addHandler(_daily_file_handler(log_dir, 'app', log_level, formatter))
    if console_output:
        root_logger.addHandler(_console_handler(log_level, formatter))


def cleanup_test_logs():
    """
    Remove the temporary log directory used under pytest. No-op outside tests.

    Example:
        def pytest_sessionfinish(session, exitstatus):
            cleanup_test_logs()
    """
    if not IS_TEST_ENV:
        return
    if TEST_LOG_DIR.exists():
        shutil.rmtree(TEST_LOG_DIR, ignore_errors=True)
