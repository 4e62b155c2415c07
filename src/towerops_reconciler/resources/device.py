"""Device resource: network equipment owned by a site or an organization.

A device belongs to exactly one parent. The parent is modeled as a sum
type (SiteParent | OrganizationParent) serialized on the wire as either
`site_id` or `organization_id`. It is identity-defining: changing it
means destroying and recreating the device.
"""
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping, Optional, Union

from .base import Resource, ResourceKind
from .fields import FieldValue

SNMP_VERSIONS = ("1", "2c", "3")
SNMPV3_SECURITY_LEVELS = ("noAuthNoPriv", "authNoPriv", "authPriv")
SNMPV3_AUTH_PROTOCOLS = ("MD5", "SHA", "SHA-224", "SHA-256", "SHA-384", "SHA-512")
SNMPV3_PRIV_PROTOCOLS = ("DES", "AES", "AES-192", "AES-256")

# Only meaningful when snmp_version == "3"
SNMPV3_ATTRIBUTES = (
    "snmpv3_security_level",
    "snmpv3_username",
    "snmpv3_auth_protocol",
    "snmpv3_auth_password",
    "snmpv3_priv_protocol",
    "snmpv3_priv_password",
)

DEVICE_DEFAULTS: dict[str, Any] = {
    "monitoring_enabled": True,
    "snmp_enabled": True,
    "snmp_version": "2c",
    "snmp_port": 161,
}


@dataclass(frozen=True)
class SiteParent:
    """Device owned by a site."""
    id: str
    wire_key: ClassVar[str] = "site_id"


@dataclass(frozen=True)
class OrganizationParent:
    """Device owned directly by an organization."""
    id: str
    wire_key: ClassVar[str] = "organization_id"


ParentRef = Union[SiteParent, OrganizationParent]

PARENT_KEYS = (SiteParent.wire_key, OrganizationParent.wire_key)


@dataclass
class Device(Resource):
    """A TowerOps device."""
    kind: ClassVar[ResourceKind] = ResourceKind.DEVICE
    ATTRIBUTES: ClassVar[tuple[str, ...]] = (
        "parent",
        "name",
        "ip_address",
        "description",
        "monitoring_enabled",
        "snmp_enabled",
        "snmp_version",
        "snmp_port",
    ) + SNMPV3_ATTRIBUTES
    SENSITIVE: ClassVar[frozenset[str]] = frozenset({
        "snmpv3_auth_password",
        "snmpv3_priv_password",
    })
    IMMUTABLE: ClassVar[frozenset[str]] = frozenset({"parent"})

    parent: FieldValue[ParentRef] = field(default_factory=FieldValue.absent)
    name: FieldValue[str] = field(default_factory=FieldValue.absent)
    ip_address: FieldValue[str] = field(default_factory=FieldValue.absent)
    description: FieldValue[str] = field(default_factory=FieldValue.absent)
    monitoring_enabled: FieldValue[bool] = field(default_factory=FieldValue.absent)
    snmp_enabled: FieldValue[bool] = field(default_factory=FieldValue.absent)
    snmp_version: FieldValue[str] = field(default_factory=FieldValue.absent)
    snmp_port: FieldValue[int] = field(default_factory=FieldValue.absent)
    # SNMPv3
    snmpv3_security_level: FieldValue[str] = field(default_factory=FieldValue.absent)
    snmpv3_username: FieldValue[str] = field(default_factory=FieldValue.absent)
    snmpv3_auth_protocol: FieldValue[str] = field(default_factory=FieldValue.absent)
    snmpv3_auth_password: FieldValue[str] = field(default_factory=FieldValue.absent, repr=False)
    snmpv3_priv_protocol: FieldValue[str] = field(default_factory=FieldValue.absent)
    snmpv3_priv_password: FieldValue[str] = field(default_factory=FieldValue.absent, repr=False)

    @property
    def site_id(self) -> Optional[str]:
        parent = self.parent.get()
        return parent.id if isinstance(parent, SiteParent) else None

    @property
    def organization_id(self) -> Optional[str]:
        parent = self.parent.get()
        return parent.id if isinstance(parent, OrganizationParent) else None

    @property
    def effective_snmp_version(self) -> str:
        """SNMP version in force, falling back to the default."""
        return self.snmp_version.get(DEVICE_DEFAULTS["snmp_version"])

    @property
    def uses_snmpv3(self) -> bool:
        return self.effective_snmp_version == "3"

    def _encode(self, name: str, value: FieldValue, payload: dict[str, Any]) -> None:
        if name == "parent":
            # A parent cannot be cleared, only replaced
            if value.is_set:
                payload[value.value.wire_key] = value.value.id
            return
        super()._encode(name, value, payload)

    def _plain(self, name: str, value: FieldValue) -> Any:
        if name == "parent":
            if value.is_set:
                return {value.value.wire_key: value.value.id}
            return None
        return super()._plain(name, value)

    @classmethod
    def _decode(cls, data: Mapping[str, Any], name: str) -> FieldValue:
        if name == "parent":
            return parent_from_mapping(data)
        return super()._decode(data, name)


def parent_from_mapping(data: Mapping[str, Any]) -> FieldValue:
    """Resolve `site_id` / `organization_id` keys into a parent reference.

    A non-null site_id wins over organization_id; callers that must reject
    both being set check that before calling this.
    """
    site_id = data.get(SiteParent.wire_key)
    if site_id is not None:
        return FieldValue.of(SiteParent(str(site_id)))

    organization_id = data.get(OrganizationParent.wire_key)
    if organization_id is not None:
        return FieldValue.of(OrganizationParent(str(organization_id)))

    if any(key in data for key in PARENT_KEYS):
        return FieldValue.null()
    return FieldValue.absent()
