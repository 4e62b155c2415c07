"""Reconciliation engine - converge TowerOps resources to declared state.

The engine turns declared configuration into remote operations:
- Validate and default declarations before any network call
- Diff declared state against the last observed state
- Create, update, replace or delete the remote object
- Recreate objects deleted outside reconciliation

Usage:
    from towerops_reconciler.engine import Reconciler

    reconciler = Reconciler(client)
    instance = ResourceInstance(ResourceKind.DEVICE)
    result = await reconciler.apply(instance, {
        "site_id": "site-1",
        "ip_address": "10.0.0.1",
        "name": "core-router",
    }, dry_run=True)
"""

from .diff import DriftEngine, summarize_diff
from .reconciler import Reconciler, declared_only
from .schema import (
    ChangeType,
    DiffResult,
    FieldChange,
    FieldError,
    ReconcileResult,
    ValidationResult,
)
from .validator import SchemaValidator, validate_and_default

__all__ = [
    "Reconciler",
    "SchemaValidator",
    "DriftEngine",
    "validate_and_default",
    "summarize_diff",
    "declared_only",
    "ChangeType",
    "DiffResult",
    "FieldChange",
    "FieldError",
    "ReconcileResult",
    "ValidationResult",
]
