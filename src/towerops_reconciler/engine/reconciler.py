"""Reconciler - drives a resource instance through its lifecycle.

Owns every lifecycle transition:

    UNBOUND  --create-->            BOUND
    BOUND    --refresh/update-->    BOUND
    BOUND    --404 on read-->       ORPHANED
    BOUND    --404 on update-->     recreate --> BOUND (new id)
    BOUND/ORPHANED --delete-->      DESTROYED (terminal)

Each operation issues its remote call(s) one at a time and only
transitions once the response is in.
"""
import dataclasses
import logging
from typing import Any, Mapping, Optional

from ..errors import (
    ClientError,
    LifecycleError,
    NotFoundError,
    OperationError,
    RecreateError,
    ReplacementRequiredError,
    ValidationError,
)
from ..resources import (
    FieldValue,
    LifecycleState,
    Resource,
    ResourceInstance,
    ResourceKind,
)
from ..utils.audit_log import AuditTrail, redact
from ..utils.logging_config import timed_section
from .diff import DriftEngine, summarize_diff
from .schema import ChangeType, ReconcileResult
from .validator import SchemaValidator

logger = logging.getLogger(__name__)


class Reconciler:
    """
    Create, refresh, update and delete remote objects for resource instances.

    Usage:
        async with ResourceClient.from_config(config) as client:
            reconciler = Reconciler(client)
            instance = ResourceInstance(ResourceKind.SITE)
            result = await reconciler.apply(instance, {"name": "Main Office"})
    """

    def __init__(
        self,
        client: Any,
        validator: Optional[SchemaValidator] = None,
        drift_engine: Optional[DriftEngine] = None,
        audit: Optional[AuditTrail] = None,
    ):
        """
        Initialize the reconciler.

        Args:
            client: ResourceClient (or anything with the same coroutines)
            validator: Validator used by apply()
            drift_engine: Drift engine used by apply() and apply_update()
            audit: Audit trail for remote changes (optional)
        """
        self.client = client
        self.validator = validator or SchemaValidator()
        self.drift_engine = drift_engine or DriftEngine()
        self.audit = audit

    # --- Lifecycle operations ---

    async def apply_create(
        self,
        instance: ResourceInstance,
        desired: Resource,
    ) -> ResourceInstance:
        """Create the remote object and bind the instance to its new id."""
        self._require_state(instance, "create", LifecycleState.UNBOUND, LifecycleState.ORPHANED)
        self._check_kind(instance, desired)
        kind = instance.kind

        payload = desired.to_payload()
        logger.info(f"Creating {kind.value}")
        try:
            created = await self.client.create(kind, payload)
        except ClientError as e:
            logger.error(f"Failed to create {kind.value}: {e}")
            self._record(kind, "create", None, desired, payload, success=False, error=str(e))
            raise OperationError("create", kind.value, e) from e

        instance.resource = desired.merged_with(created, keep_id=False)
        instance.state = LifecycleState.BOUND
        logger.info(f"Created {kind.value} {instance.id}")
        self._record(kind, "create", instance.id, desired, payload, success=True)
        return instance

    async def refresh(self, instance: ResourceInstance) -> ResourceInstance:
        """Re-read the remote object; the server is authoritative.

        A missing object moves the instance to ORPHANED instead of raising.
        """
        self._require_state(instance, "refresh", LifecycleState.BOUND)
        kind = instance.kind
        resource_id = instance.id

        try:
            remote = await self.client.read(kind, resource_id)
        except NotFoundError:
            logger.warning(f"{kind.value} {resource_id} no longer exists, marking orphaned")
            instance.state = LifecycleState.ORPHANED
            return instance
        except ClientError as e:
            logger.error(f"Failed to read {kind.value} {resource_id}: {e}")
            raise OperationError("read", kind.value, e) from e

        instance.resource = instance.resource.merged_with(remote, keep_id=True)
        logger.debug(f"Refreshed {kind.value} {resource_id}")
        return instance

    async def apply_update(
        self,
        instance: ResourceInstance,
        desired: Resource,
    ) -> ResourceInstance:
        """Update the remote object in place.

        If the object vanished out-of-band, it is recreated from the desired
        state under a new id.

        Raises:
            ReplacementRequiredError: An identity-defining attribute changed
            RecreateError: The object was missing and recreating it failed
            OperationError: The update failed
        """
        self._require_state(instance, "update", LifecycleState.BOUND)
        self._check_kind(instance, desired)
        kind = instance.kind
        stale_id = instance.id

        replace = [
            change.name
            for change in self.drift_engine.field_changes(instance.resource, desired)
            if change.requires_replace
        ]
        if replace:
            raise ReplacementRequiredError(kind.value, replace, stale_id)

        payload = desired.to_payload(include_defaults=False, include_immutable=False)
        logger.info(f"Updating {kind.value} {stale_id}")
        try:
            updated = await self.client.update(kind, stale_id, payload)
        except NotFoundError:
            logger.warning(f"{kind.value} {stale_id} was deleted outside reconciliation, recreating")
            return await self._recreate(instance, desired, stale_id)
        except ClientError as e:
            logger.error(f"Failed to update {kind.value} {stale_id}: {e}")
            self._record(kind, "update", stale_id, desired, payload, success=False, error=str(e))
            raise OperationError("update", kind.value, e) from e

        instance.resource = (
            instance.resource
            .merged_with(declared_only(desired))
            .merged_with(updated, keep_id=True)
        )
        self._record(kind, "update", stale_id, desired, payload, success=True)
        return instance

    async def _recreate(
        self,
        instance: ResourceInstance,
        desired: Resource,
        stale_id: Optional[str],
    ) -> ResourceInstance:
        kind = instance.kind
        payload = desired.to_payload()
        try:
            created = await self.client.create(kind, payload)
        except ClientError as e:
            instance.state = LifecycleState.ORPHANED
            logger.error(f"Failed to recreate {kind.value} after 404 on update: {e}")
            self._record(
                kind, "recreate", None, desired, payload,
                success=False, error=str(e), previous_id=stale_id,
            )
            raise RecreateError(kind.value, e, stale_id=stale_id) from e

        instance.resource = desired.merged_with(created, keep_id=False)
        instance.state = LifecycleState.BOUND
        if instance.id == stale_id:
            logger.warning(f"Server reissued id {stale_id} for recreated {kind.value}")
        logger.info(f"Recreated {kind.value} {stale_id} as {instance.id}")
        self._record(
            kind, "recreate", instance.id, desired, payload,
            success=True, previous_id=stale_id,
        )
        return instance

    async def apply_delete(self, instance: ResourceInstance) -> ResourceInstance:
        """Delete the remote object; an already missing object counts as deleted."""
        self._require_state(instance, "delete", LifecycleState.BOUND, LifecycleState.ORPHANED)
        kind = instance.kind
        resource_id = instance.id

        logger.info(f"Deleting {kind.value} {resource_id}")
        try:
            await self.client.delete(kind, resource_id)
        except NotFoundError:
            logger.info(f"{kind.value} {resource_id} already gone")
        except ClientError as e:
            logger.error(f"Failed to delete {kind.value} {resource_id}: {e}")
            self._record(kind, "delete", resource_id, None, {}, success=False, error=str(e))
            raise OperationError("delete", kind.value, e) from e

        instance.state = LifecycleState.DESTROYED
        self._record(kind, "delete", resource_id, None, {}, success=True)
        return instance

    async def import_existing(self, kind: ResourceKind, resource_id: str) -> ResourceInstance:
        """Adopt an existing remote object by id."""
        kind = ResourceKind(kind)
        try:
            remote = await self.client.read(kind, resource_id)
        except ClientError as e:
            raise OperationError("import", kind.value, e) from e

        if not remote.id:
            remote = dataclasses.replace(remote, id=resource_id)
        logger.info(f"Imported {kind.value} {remote.id}")
        return ResourceInstance(kind, LifecycleState.BOUND, remote)

    # --- Plan / apply ---

    def normalize(self, kind: ResourceKind, declared: Mapping[str, Any]) -> tuple[Resource, list[str]]:
        """Validate and default a declaration.

        Returns:
            Tuple of (normalized resource, warnings)

        Raises:
            ValidationError: With every field error found
        """
        validation = self.validator.validate_and_default(kind, declared)
        if not validation.valid:
            raise ValidationError(validation.errors)
        for warning in validation.warnings:
            logger.warning(f"{ResourceKind(kind).value}: {warning}")
        return validation.resource, validation.warnings

    async def apply(
        self,
        instance: ResourceInstance,
        declared: Optional[Mapping[str, Any]],
        dry_run: bool = False,
        refresh: bool = True,
    ) -> ReconcileResult:
        """
        Converge an instance to a declared configuration.

        This is the main entry point. It:
        1. Validates and defaults the declaration (no network on failure)
        2. Refreshes a bound instance (optional)
        3. Calculates the diff
        4. Runs create, update, replace, delete or nothing

        Args:
            instance: Instance to converge
            declared: Declared attributes, or None to delete the object
            dry_run: If True, report the planned action without applying it
            refresh: If True, re-read a bound instance before diffing

        Returns:
            ReconcileResult; `instance` is a new instance after a replace
        """
        desired = None
        warnings: list[str] = []
        if declared is not None:
            desired, warnings = self.normalize(instance.kind, declared)

        if instance.state == LifecycleState.DESTROYED:
            raise LifecycleError(
                f"{instance.kind.value} {instance.id} was destroyed; declare a new instance"
            )

        if refresh and instance.is_bound:
            await self.refresh(instance)

        diff = self.drift_engine.calculate(instance, desired)
        result = ReconcileResult(
            action=diff.change_type,
            instance=instance,
            diff=diff,
            dry_run=dry_run,
            warnings=warnings,
        )

        if diff.no_change:
            result.changes_made = ["No changes needed - state already matches"]
            return result
        if dry_run:
            logger.info(f"DRY RUN: {summarize_diff(diff)}")
            return result

        target = f"{instance.kind.value}/{instance.id or 'new'}"
        async with timed_section("apply", target=target, action=diff.change_type.value):
            if diff.change_type == ChangeType.CREATE:
                orphaned_id = instance.id
                await self.apply_create(instance, desired)
                result.changes_made = [f"Created {instance.kind.value} {instance.id}"]
                if orphaned_id:
                    result.recreated_from = orphaned_id

            elif diff.change_type == ChangeType.UPDATE:
                previous_id = instance.id
                await self.apply_update(instance, desired)
                if instance.id != previous_id:
                    result.recreated_from = previous_id
                    result.changes_made = [
                        f"Recreated {instance.kind.value} {previous_id} as {instance.id}"
                    ]
                else:
                    result.changes_made = [c.describe() for c in diff.field_changes]

            elif diff.change_type == ChangeType.REPLACE:
                old_id = instance.id
                await self.apply_delete(instance)
                replacement = ResourceInstance(instance.kind)
                await self.apply_create(replacement, desired)
                result.instance = replacement
                result.changes_made = [
                    f"Replaced {instance.kind.value} {old_id} with {replacement.id} "
                    f"({', '.join(diff.replace_fields)} changed)"
                ]

            elif diff.change_type == ChangeType.DELETE:
                await self.apply_delete(instance)
                result.changes_made = [f"Deleted {instance.kind.value} {instance.id}"]

        return result

    async def preview(
        self,
        instance: ResourceInstance,
        declared: Optional[Mapping[str, Any]],
    ) -> str:
        """Human-readable summary of what apply() would do."""
        result = await self.apply(instance, declared, dry_run=True)
        summary = summarize_diff(result.diff)
        if result.warnings:
            summary += "\n\nWarnings:\n" + "\n".join(f"  - {w}" for w in result.warnings)
        return summary

    # --- Helpers ---

    def _require_state(
        self,
        instance: ResourceInstance,
        operation: str,
        *allowed: LifecycleState,
    ) -> None:
        if instance.state not in allowed:
            target = " ".join(filter(None, (instance.kind.value, instance.id)))
            raise LifecycleError(
                f"Cannot {operation} {target} in state {instance.state.value}"
            )
        if instance.state != LifecycleState.UNBOUND and not instance.id:
            raise LifecycleError(
                f"Cannot {operation} {instance.kind.value}: instance has no id"
            )

    def _check_kind(self, instance: ResourceInstance, desired: Resource) -> None:
        if desired.kind != instance.kind:
            raise ValueError(
                f"Cannot apply a {desired.kind.value} to a {instance.kind.value} instance"
            )

    def _record(
        self,
        kind: ResourceKind,
        operation: str,
        resource_id: Optional[str],
        desired: Optional[Resource],
        payload: dict,
        success: bool,
        error: Optional[str] = None,
        previous_id: Optional[str] = None,
    ) -> None:
        if self.audit is None:
            return
        sensitive = desired.SENSITIVE if desired is not None else ()
        self.audit.log_change(
            kind=kind.value,
            operation=operation,
            resource_id=resource_id,
            parameters=redact(payload, sensitive),
            success=success,
            error=error,
            previous_id=previous_id,
        )


def declared_only(resource: Resource) -> Resource:
    """Copy of a resource with defaulted attributes reset to absent."""
    if not resource.defaulted:
        return resource
    reset = {name: FieldValue.absent() for name in resource.defaulted}
    return dataclasses.replace(resource, defaulted=frozenset(), **reset)
