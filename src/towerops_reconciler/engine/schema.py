"""Result types shared by the validator, drift engine and reconciler."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..resources import Resource, ResourceInstance

MASK = "***"


# --- Validation Results ---

@dataclass
class FieldError:
    """A problem with one declared attribute."""
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass
class ValidationResult:
    """Result of validating and defaulting a declared configuration."""
    valid: bool
    errors: list[FieldError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    # Normalized resource, only when valid
    resource: Optional[Resource] = None

    def error_for(self, name: str) -> Optional[FieldError]:
        """First error reported for an attribute, if any."""
        return next((e for e in self.errors if e.field == name), None)


# --- Diff Results ---

class ChangeType(str, Enum):
    """Remote operation needed to converge an instance."""
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"   # Delete then create; identity-defining change
    DELETE = "delete"
    NO_CHANGE = "no_change"


@dataclass
class FieldChange:
    """One drifted attribute."""
    name: str
    current: Any
    desired: Any
    sensitive: bool = False
    requires_replace: bool = False

    def describe(self) -> str:
        current = MASK if self.sensitive and self.current is not None else self.current
        desired = MASK if self.sensitive and self.desired is not None else self.desired
        suffix = " (forces replacement)" if self.requires_replace else ""
        return f"{self.name}: {current!r} -> {desired!r}{suffix}"


@dataclass
class DiffResult:
    """Result of diffing desired state against an instance."""
    change_type: ChangeType
    kind: str
    resource_id: Optional[str] = None
    field_changes: list[FieldChange] = field(default_factory=list)

    @property
    def no_change(self) -> bool:
        return self.change_type == ChangeType.NO_CHANGE

    @property
    def requires_replace(self) -> bool:
        return self.change_type == ChangeType.REPLACE

    @property
    def replace_fields(self) -> list[str]:
        return [c.name for c in self.field_changes if c.requires_replace]

    @property
    def total_changes(self) -> int:
        return len(self.field_changes)


# --- Reconcile Results ---

@dataclass
class ReconcileResult:
    """Outcome of one Reconciler.apply pass."""
    action: ChangeType
    instance: ResourceInstance
    diff: Optional[DiffResult] = None
    dry_run: bool = False
    changes_made: list[str] = field(default_factory=list)
    # Set when an update found the object missing and created a new one
    recreated_from: Optional[str] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.action != ChangeType.NO_CHANGE and not self.dry_run

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        resource = self.instance.resource
        return {
            "action": self.action.value,
            "kind": self.instance.kind.value,
            "state": self.instance.state.value,
            "id": self.instance.id,
            "dry_run": self.dry_run,
            "changes_made": self.changes_made,
            "recreated_from": self.recreated_from,
            "warnings": self.warnings,
            "resource": resource.to_dict() if resource else None,
        }
