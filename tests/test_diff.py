"""Tests for the drift engine."""
import dataclasses

from towerops_reconciler.engine import ChangeType, DriftEngine, summarize_diff, validate_and_default
from towerops_reconciler.resources import (
    Device,
    FieldValue,
    LifecycleState,
    ResourceInstance,
    ResourceKind,
    SiteParent,
)


def desired(kind, declared):
    return validate_and_default(kind, declared).resource


def bound(resource):
    return ResourceInstance(resource.kind, LifecycleState.BOUND, resource)


def server_device(**overrides):
    data = {
        "id": "D1",
        "site_id": "site-A",
        "ip_address": "10.0.0.1",
        "name": "core-router",
        "monitoring_enabled": True,
        "snmp_enabled": True,
        "snmp_version": "2c",
        "snmp_port": 161,
    }
    data.update(overrides)
    return Device.from_wire(data)


DEVICE = {"site_id": "site-A", "ip_address": "10.0.0.1", "name": "core-router"}


class TestDriftEngine:
    """Tests for DriftEngine.calculate."""

    def test_unbound_is_create(self):
        diff = DriftEngine().calculate(ResourceInstance(ResourceKind.SITE), desired("site", {"name": "Main"}))

        assert diff.change_type == ChangeType.CREATE
        assert [c.name for c in diff.field_changes] == ["name"]

    def test_orphaned_is_create(self):
        instance = ResourceInstance(ResourceKind.DEVICE, LifecycleState.ORPHANED, server_device())
        assert DriftEngine().calculate(instance, desired("device", DEVICE)).change_type == ChangeType.CREATE

    def test_matching_is_no_change(self):
        diff = DriftEngine().calculate(bound(server_device()), desired("device", DEVICE))

        assert diff.no_change
        assert diff.total_changes == 0

    def test_drift_is_update(self):
        diff = DriftEngine().calculate(bound(server_device(name="renamed")), desired("device", DEVICE))

        assert diff.change_type == ChangeType.UPDATE
        assert diff.resource_id == "D1"
        change = diff.field_changes[0]
        assert (change.name, change.current, change.desired) == ("name", "renamed", "core-router")

    def test_null_clears(self):
        diff = DriftEngine().calculate(
            bound(server_device(description="Rack 4")),
            desired("device", {**DEVICE, "description": None}),
        )

        assert diff.change_type == ChangeType.UPDATE
        assert diff.field_changes[0].desired is None

    def test_defaulted_fields_are_not_drift(self):
        diff = DriftEngine().calculate(bound(server_device(snmp_port=1161)), desired("device", DEVICE))
        assert diff.no_change

    def test_declared_default_value_is_drift(self):
        diff = DriftEngine().calculate(
            bound(server_device(snmp_port=1161)),
            desired("device", {**DEVICE, "snmp_port": 161}),
        )
        assert [c.name for c in diff.field_changes] == ["snmp_port"]

    def test_absent_fields_are_not_drift(self):
        diff = DriftEngine().calculate(
            bound(server_device(description="Set by hand")),
            desired("device", DEVICE),
        )
        assert diff.no_change

    def test_parent_change_is_replace(self):
        diff = DriftEngine().calculate(bound(server_device()), desired("device", {**DEVICE, "site_id": "site-B"}))

        assert diff.requires_replace
        assert diff.replace_fields == ["parent"]

    def test_unreported_parent_assigned_is_replace(self):
        current = dataclasses.replace(server_device(), parent=FieldValue.absent())
        diff = DriftEngine().calculate(bound(current), desired("device", DEVICE))

        assert diff.requires_replace
        assert diff.replace_fields == ["parent"]

    def test_null_parent_assigned_is_replace(self):
        diff = DriftEngine().calculate(bound(server_device(site_id=None)), desired("device", DEVICE))

        assert diff.requires_replace
        assert diff.replace_fields == ["parent"]

    def test_snmpv3_ignored_without_v3(self):
        diff = DriftEngine().calculate(
            bound(server_device(snmpv3_username=None)),
            desired("device", {**DEVICE, "snmpv3_username": "monitor"}),
        )
        assert diff.no_change

    def test_snmpv3_drift_with_v3(self):
        v3 = {**DEVICE, "snmp_version": "3", "snmpv3_username": "monitor"}
        diff = DriftEngine().calculate(
            bound(server_device(snmp_version="3", snmpv3_username="other")),
            desired("device", v3),
        )
        assert [c.name for c in diff.field_changes] == ["snmpv3_username"]

    def test_delete(self):
        assert DriftEngine().calculate(bound(server_device()), None).change_type == ChangeType.DELETE
        assert DriftEngine().calculate(ResourceInstance(ResourceKind.DEVICE), None).no_change


class TestSummarizeDiff:
    """Tests for diff summaries."""

    def test_create_masks_secrets(self):
        diff = DriftEngine().calculate(
            ResourceInstance(ResourceKind.SITE),
            desired("site", {"name": "Main", "snmp_community": "public"}),
        )

        summary = summarize_diff(diff)

        assert summary.startswith("new site: will be created")
        assert "+ snmp_community = ***" in summary
        assert "public" not in summary

    def test_update(self):
        diff = DriftEngine().calculate(bound(server_device(name="renamed")), desired("device", DEVICE))
        assert summarize_diff(diff) == (
            "device D1: will be updated in-place\n"
            "  ~ name: 'renamed' -> 'core-router'"
        )

    def test_replace(self):
        diff = DriftEngine().calculate(bound(server_device()), desired("device", {**DEVICE, "site_id": "site-B"}))

        summary = summarize_diff(diff)

        assert "must be replaced" in summary
        assert "(forces replacement)" in summary
        assert "site-B" in summary

    def test_no_change(self):
        diff = DriftEngine().calculate(bound(server_device()), desired("device", DEVICE))
        assert summarize_diff(diff) == "device D1: no changes needed - state already matches"

    def test_parent_value_shape(self):
        diff = DriftEngine().calculate(bound(server_device()), desired("device", {**DEVICE, "site_id": "site-B"}))
        change = diff.field_changes[0]
        assert change.current == {"site_id": "site-A"}
        assert change.desired == {"site_id": "site-B"}
        assert SiteParent("site-B") == desired("device", {**DEVICE, "site_id": "site-B"}).parent.get()
