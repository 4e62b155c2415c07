"""Logging configuration for the TowerOps reconciler.

Provides configurable logging with:
- File-based logging with rotation
- Console output for real-time debugging
- Performance timing decorators for remote calls

Environment Variables:
    TOWEROPS_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    TOWEROPS_LOG_FILE: Path to log file (default: ~/.towerops/towerops.log)
    TOWEROPS_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    TOWEROPS_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from towerops_reconciler.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("read")
    async def read(self, kind, resource_id):
        ...
"""
import functools
import logging
import os
import time
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Optional

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("towerops.perf")

PACKAGE_LOGGER = "towerops_reconciler"


def get_log_level() -> int:
    """Get log level from environment."""
    level_str = os.environ.get("TOWEROPS_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_log_file() -> Path:
    """Get log file path from environment."""
    default_path = Path.home() / ".towerops" / "towerops.log"
    path_str = os.environ.get("TOWEROPS_LOG_FILE", str(default_path))
    return Path(path_str)


def setup_logging(log_file: Optional[Path] = None) -> None:
    """Configure logging for the application.

    Sets up:
    - Console handler (respects TOWEROPS_LOG_LEVEL)
    - File handler with rotation (DEBUG level - captures everything)
    - Performance logger for remote call timings
    """
    log_level = get_log_level()
    log_file = log_file or get_log_file()
    max_size_mb = int(os.environ.get("TOWEROPS_LOG_MAX_SIZE", "10"))
    backup_count = int(os.environ.get("TOWEROPS_LOG_BACKUPS", "5"))

    log_file.parent.mkdir(parents=True, exist_ok=True)

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-35s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    perf_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | PERF | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(main_format)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)

    perf_log_file = log_file.parent / "towerops-perf.log"
    perf_handler = RotatingFileHandler(
        perf_log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    perf_handler.setLevel(logging.DEBUG)
    perf_handler.setFormatter(perf_format)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    package_logger.addHandler(console_handler)
    package_logger.addHandler(file_handler)

    perf_logger.setLevel(logging.DEBUG)
    perf_logger.addHandler(perf_handler)
    perf_logger.propagate = False

    package_logger.info(
        f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}"
    )


def _format_timing(operation: str, target: Optional[str], elapsed: float, outcome: str) -> str:
    return f"{operation:12s} | {target or 'N/A':40s} | {elapsed:8.2f}ms | {outcome}"


def timed(operation: str, target_arg: Optional[int] = None):
    """Decorator to log execution time of coroutines.

    Args:
        operation: Name of the operation (e.g., "create", "read")
        target_arg: Index of a positional argument (after self) to log as
            the call target, e.g. the request path
    """
    def _target(args: tuple) -> Optional[str]:
        if target_arg is None or len(args) <= target_arg + 1:
            return None
        return str(args[target_arg + 1])

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.warning(_format_timing(operation, _target(args), elapsed, f"FAIL: {e}"))
                raise
            elapsed = (time.perf_counter() - start) * 1000
            perf_logger.info(_format_timing(operation, _target(args), elapsed, "OK"))
            return result

        return async_wrapper

    return decorator


@asynccontextmanager
async def timed_section(operation: str, target: Optional[str] = None, **extra):
    """Async context manager for timing code sections.

    Usage:
        async with timed_section("apply", target="device/D1", action="update"):
            ...
    """
    start = time.perf_counter()
    extra_str = " | ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""

    try:
        yield
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        msg = _format_timing(operation, target, elapsed, f"FAIL: {e}")
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.warning(msg)
        raise

    elapsed = (time.perf_counter() - start) * 1000
    msg = _format_timing(operation, target, elapsed, "OK")
    if extra_str:
        msg += f" | {extra_str}"
    perf_logger.info(msg)
