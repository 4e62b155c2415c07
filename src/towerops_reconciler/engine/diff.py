"""Drift engine for deciding which remote operation an instance needs.

Compares declared state with the canonical state of an instance and
reports the minimal change: nothing, an update of the drifted attributes,
a replacement when an identity-defining attribute changed, a create or a
delete.
"""
from typing import Optional

from ..resources import Device, LifecycleState, Resource, ResourceInstance
from ..resources.device import SNMPV3_ATTRIBUTES
from .schema import ChangeType, DiffResult, FieldChange


class DriftEngine:
    """Calculate differences between desired state and an instance."""

    def calculate(
        self,
        instance: ResourceInstance,
        desired: Optional[Resource],
    ) -> DiffResult:
        """
        Calculate the change needed to converge an instance.

        Args:
            instance: Instance holding the last applied/observed state
            desired: Normalized desired resource, or None to remove it

        Returns:
            DiffResult with the change type and drifted attributes
        """
        kind = instance.kind.value
        state = instance.state

        if desired is None:
            if state in (LifecycleState.BOUND, LifecycleState.ORPHANED):
                return DiffResult(ChangeType.DELETE, kind, instance.id)
            return DiffResult(ChangeType.NO_CHANGE, kind, instance.id)

        if state in (LifecycleState.UNBOUND, LifecycleState.ORPHANED) or instance.resource is None:
            changes = [
                FieldChange(
                    name=name,
                    current=None,
                    desired=desired.plain_value(name),
                    sensitive=name in desired.SENSITIVE,
                )
                for name in desired.ATTRIBUTES
                if not desired.get(name).is_absent
            ]
            return DiffResult(ChangeType.CREATE, kind, None, changes)

        changes = self.field_changes(instance.resource, desired)
        if not changes:
            return DiffResult(ChangeType.NO_CHANGE, kind, instance.id)
        if any(c.requires_replace for c in changes):
            return DiffResult(ChangeType.REPLACE, kind, instance.id, changes)
        return DiffResult(ChangeType.UPDATE, kind, instance.id, changes)

    def field_changes(self, current: Resource, desired: Resource) -> list[FieldChange]:
        """List declared attributes whose value differs from the current state.

        Absent and defaulted desired attributes are never drift: the
        server's value stands. SNMPv3 attributes only count when the
        desired device uses SNMPv3.
        """
        changes = []
        for name in desired.ATTRIBUTES:
            wanted = desired.get(name)
            if wanted.is_absent or name in desired.defaulted:
                continue
            if name in SNMPV3_ATTRIBUTES and isinstance(desired, Device) and not desired.uses_snmpv3:
                continue

            have = current.get(name)
            if wanted.same_value(have):
                continue

            if name in desired.IMMUTABLE and not wanted.is_set:
                # An immutable attribute can be assigned, never cleared
                continue

            changes.append(FieldChange(
                name=name,
                current=current.plain_value(name),
                desired=desired.plain_value(name),
                sensitive=name in desired.SENSITIVE,
                requires_replace=name in desired.IMMUTABLE,
            ))
        return changes


def summarize_diff(diff: DiffResult) -> str:
    """Generate a human-readable summary of a diff."""
    target = f"{diff.kind} {diff.resource_id}" if diff.resource_id else f"new {diff.kind}"

    if diff.change_type == ChangeType.NO_CHANGE:
        return f"{target}: no changes needed - state already matches"
    if diff.change_type == ChangeType.DELETE:
        return f"{target}: will be deleted"

    headers = {
        ChangeType.CREATE: "will be created",
        ChangeType.UPDATE: "will be updated in-place",
        ChangeType.REPLACE: "must be replaced (destroy and recreate)",
    }
    lines = [f"{target}: {headers[diff.change_type]}"]
    prefix = "+" if diff.change_type == ChangeType.CREATE else "~"
    for change in diff.field_changes:
        if diff.change_type == ChangeType.CREATE:
            value = "***" if change.sensitive and change.desired is not None else repr(change.desired)
            lines.append(f"  {prefix} {change.name} = {value}")
        else:
            lines.append(f"  {prefix} {change.describe()}")
    return "\n".join(lines)
