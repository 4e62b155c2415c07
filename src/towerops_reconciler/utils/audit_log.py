"""Audit logging for remote changes.

Every create, update, delete and recreate the reconciler performs can be
recorded as a JSON line in a dedicated audit log:
- Timestamped entries with the resource kind and id
- Payloads with sensitive values redacted
- Separate rotating file, not propagated to the root logger
"""
import json
import logging
import os
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Optional

# Dedicated audit logger
audit_logger = logging.getLogger("towerops.audit")

DEFAULT_AUDIT_DIR = "~/.towerops"
AUDIT_FILE_NAME = "audit.log"
MAX_ERROR_LENGTH = 1000


def setup_audit_logging(log_dir: Optional[str] = None) -> str:
    """Configure audit logging to file.

    Args:
        log_dir: Directory for audit logs. Defaults to ~/.towerops/

    Returns:
        Path of the audit log file
    """
    log_dir = os.path.expanduser(log_dir or DEFAULT_AUDIT_DIR)
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    audit_file = os.path.join(log_dir, AUDIT_FILE_NAME)

    audit_logger.setLevel(logging.INFO)
    for handler in list(audit_logger.handlers):
        audit_logger.removeHandler(handler)
        handler.close()

    handler = RotatingFileHandler(
        audit_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10,
        encoding="utf-8",
    )
    # One JSON document per line
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)
    audit_logger.propagate = False

    return audit_file


@dataclass
class ChangeRecord:
    """Record of a single remote change."""
    timestamp: str
    kind: str
    resource_id: Optional[str]
    operation: str  # create, update, delete, recreate
    success: bool
    parameters: dict
    previous_id: Optional[str] = None
    error: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps(asdict(self), sort_keys=True)

    @classmethod
    def from_json(cls, json_str: str) -> "ChangeRecord":
        return cls(**json.loads(json_str))


def redact(payload: dict[str, Any], sensitive: Iterable[str]) -> dict[str, Any]:
    """Copy a payload with sensitive values masked."""
    sensitive = set(sensitive)
    return {
        key: ("***" if key in sensitive and value is not None else value)
        for key, value in payload.items()
    }


class AuditTrail:
    """Write change records to the audit log."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or audit_logger

    def log_change(
        self,
        kind: str,
        operation: str,
        resource_id: Optional[str],
        parameters: dict,
        success: bool,
        error: Optional[str] = None,
        previous_id: Optional[str] = None,
    ) -> ChangeRecord:
        """Log a remote change.

        Args:
            kind: Resource kind ("site", "device")
            operation: The operation performed
            resource_id: Id of the remote object after the operation
            parameters: Request payload, already redacted
            success: Whether the operation succeeded
            error: Error message if failed
            previous_id: Stale id replaced by a recreate

        Returns:
            The ChangeRecord that was logged
        """
        record = ChangeRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            kind=kind,
            resource_id=resource_id,
            operation=operation,
            success=success,
            parameters=parameters,
            previous_id=previous_id,
            error=error[:MAX_ERROR_LENGTH] if error else None,
        )
        self.logger.info(record.to_json())
        return record


def get_recent_changes(
    log_file: Optional[str] = None,
    kind: Optional[str] = None,
    resource_id: Optional[str] = None,
    operation: Optional[str] = None,
    limit: int = 100,
) -> list[ChangeRecord]:
    """Read recent changes from the audit log.

    Args:
        log_file: Path to audit log. Defaults to ~/.towerops/audit.log
        kind: Filter by resource kind
        resource_id: Filter by resource id (current or previous)
        operation: Filter by operation
        limit: Maximum number of records to return

    Returns:
        List of ChangeRecords, most recent first
    """
    if log_file is None:
        log_file = os.path.join(os.path.expanduser(DEFAULT_AUDIT_DIR), AUDIT_FILE_NAME)

    if not os.path.exists(log_file):
        return []

    records = []
    with open(log_file, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                record = ChangeRecord.from_json(line)
            except (json.JSONDecodeError, TypeError):
                continue  # Skip malformed lines

            if kind and record.kind != kind:
                continue
            if resource_id and resource_id not in (record.resource_id, record.previous_id):
                continue
            if operation and record.operation != operation:
                continue
            records.append(record)

    return list(reversed(records[-limit:]))
