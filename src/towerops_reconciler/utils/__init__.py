"""Utility modules for retries, logging and auditing."""
from .audit_log import AuditTrail, ChangeRecord, get_recent_changes, setup_audit_logging
from .connection import RETRYABLE_EXCEPTIONS, with_retry
from .logging_config import (
    setup_logging,
    timed,
    timed_section,
    perf_logger,
)

__all__ = [
    "with_retry",
    "RETRYABLE_EXCEPTIONS",
    "setup_logging",
    "timed",
    "timed_section",
    "perf_logger",
    "AuditTrail",
    "ChangeRecord",
    "get_recent_changes",
    "setup_audit_logging",
]
