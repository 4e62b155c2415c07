"""Pre-flight validation and default application for declared resources.

Catches every local problem before any remote call and turns the declared
mapping into a normalized Resource whose outgoing payload is fully
determined.
"""
import logging
from typing import Any, Callable, Mapping, Optional, Union

from ..resources import (
    DEVICE_DEFAULTS,
    Device,
    FieldValue,
    Resource,
    ResourceKind,
    Site,
    resource_class,
)
from ..resources.device import (
    PARENT_KEYS,
    SNMP_VERSIONS,
    SNMPV3_ATTRIBUTES,
    SNMPV3_AUTH_PROTOCOLS,
    SNMPV3_PRIV_PROTOCOLS,
    SNMPV3_SECURITY_LEVELS,
    parent_from_mapping,
)
from ..resources.site import SITE_NAME_MAX_LENGTH, SITE_NAME_MIN_LENGTH
from .schema import FieldError, ValidationResult

logger = logging.getLogger(__name__)

REQUIRED = {
    ResourceKind.SITE: ("name",),
    ResourceKind.DEVICE: ("ip_address",),
}

# Security levels that need authentication / privacy settings
AUTH_LEVELS = ("authNoPriv", "authPriv")
PRIV_LEVELS = ("authPriv",)


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# Attribute -> (type check, type name) for scalar attributes
TYPE_CHECKS: dict[str, tuple[Callable[[Any], bool], str]] = {
    "name": (_is_str, "a string"),
    "location": (_is_str, "a string"),
    "snmp_community": (_is_str, "a string"),
    "ip_address": (_is_str, "a string"),
    "description": (_is_str, "a string"),
    "monitoring_enabled": (_is_bool, "a boolean"),
    "snmp_enabled": (_is_bool, "a boolean"),
    "snmp_version": (_is_str, "a string"),
    "snmp_port": (_is_int, "an integer"),
    "snmpv3_security_level": (_is_str, "a string"),
    "snmpv3_username": (_is_str, "a string"),
    "snmpv3_auth_protocol": (_is_str, "a string"),
    "snmpv3_auth_password": (_is_str, "a string"),
    "snmpv3_priv_protocol": (_is_str, "a string"),
    "snmpv3_priv_password": (_is_str, "a string"),
}

CHOICES: dict[str, tuple[str, ...]] = {
    "snmp_version": SNMP_VERSIONS,
    "snmpv3_security_level": SNMPV3_SECURITY_LEVELS,
    "snmpv3_auth_protocol": SNMPV3_AUTH_PROTOCOLS,
    "snmpv3_priv_protocol": SNMPV3_PRIV_PROTOCOLS,
}


class SchemaValidator:
    """Validate declared configuration and apply defaults."""

    def validate_and_default(
        self,
        kind: Union[ResourceKind, str],
        declared: Mapping[str, Any],
    ) -> ValidationResult:
        """
        Validate a declared configuration for one resource.

        Performs pre-flight checks:
        - Unknown and server-computed attributes
        - Required attributes
        - Types, enumerations and ranges
        - Device parent exclusivity
        - SNMPv3 conditional group

        All problems are collected; nothing fails fast.

        Args:
            kind: Resource kind of the declaration
            declared: Attribute name -> value; a missing key means absent,
                None means explicitly null

        Returns:
            ValidationResult with the normalized resource when valid
        """
        kind = ResourceKind(kind)
        cls = resource_class(kind)
        errors: list[FieldError] = []
        warnings: list[str] = []

        self._check_keys(cls, declared, errors)
        self._check_required(kind, declared, errors)
        self._check_types(declared, errors)

        if kind == ResourceKind.SITE:
            self._check_site(declared, errors)
        else:
            self._check_parent(declared, errors)
            self._check_snmp(declared, errors, warnings)

        if errors:
            logger.debug(f"Declared {kind.value} rejected: {'; '.join(map(str, errors))}")
            return ValidationResult(valid=False, errors=errors, warnings=warnings)

        resource = self._build(kind, declared)
        return ValidationResult(valid=True, warnings=warnings, resource=resource)

    def _check_keys(
        self,
        cls: type[Resource],
        declared: Mapping[str, Any],
        errors: list[FieldError],
    ) -> None:
        allowed = set(cls.ATTRIBUTES)
        if cls is Device:
            allowed = (allowed - {"parent"}) | set(PARENT_KEYS)

        for key in declared:
            if key in cls.COMPUTED:
                errors.append(FieldError(key, "is computed by the server and cannot be set"))
            elif key not in allowed:
                errors.append(FieldError(key, f"unknown {cls.kind.value} attribute"))

    def _check_required(
        self,
        kind: ResourceKind,
        declared: Mapping[str, Any],
        errors: list[FieldError],
    ) -> None:
        for name in REQUIRED[kind]:
            value = declared.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(FieldError(name, "is required"))

    def _check_types(self, declared: Mapping[str, Any], errors: list[FieldError]) -> None:
        for name, value in declared.items():
            if value is None or name not in TYPE_CHECKS:
                continue
            check, type_name = TYPE_CHECKS[name]
            if not check(value):
                errors.append(FieldError(name, f"must be {type_name}, got {type(value).__name__}"))
                continue
            choices = CHOICES.get(name)
            if choices and value not in choices:
                errors.append(FieldError(name, f"must be one of {', '.join(choices)}, got {value!r}"))

    def _check_site(self, declared: Mapping[str, Any], errors: list[FieldError]) -> None:
        name = declared.get("name")
        if isinstance(name, str) and name.strip():
            if not SITE_NAME_MIN_LENGTH <= len(name) <= SITE_NAME_MAX_LENGTH:
                errors.append(FieldError(
                    "name",
                    f"must be between {SITE_NAME_MIN_LENGTH} and "
                    f"{SITE_NAME_MAX_LENGTH} characters, got {len(name)}",
                ))

    def _check_parent(self, declared: Mapping[str, Any], errors: list[FieldError]) -> None:
        supplied = [key for key in PARENT_KEYS if declared.get(key) is not None]
        if len(supplied) > 1:
            errors.append(FieldError(
                "organization_id",
                "conflicts with site_id: a device belongs to a site or an organization, not both",
            ))

        for key in supplied:
            value = declared[key]
            if not isinstance(value, str) or not value.strip():
                errors.append(FieldError(key, "must be a non-empty string"))

    def _check_snmp(
        self,
        declared: Mapping[str, Any],
        errors: list[FieldError],
        warnings: list[str],
    ) -> None:
        port = declared.get("snmp_port")
        if _is_int(port) and not 1 <= port <= 65535:
            errors.append(FieldError("snmp_port", f"must be between 1 and 65535, got {port}"))

        version = declared.get("snmp_version")
        if version is None:
            version = DEVICE_DEFAULTS["snmp_version"]

        v3_declared = [name for name in SNMPV3_ATTRIBUTES if declared.get(name) is not None]
        if version != "3":
            if v3_declared:
                warnings.append(
                    f"{', '.join(v3_declared)} ignored: only used when snmp_version is '3'"
                )
            return

        if declared.get("snmpv3_username") is None:
            errors.append(FieldError("snmpv3_username", "is required when snmp_version is '3'"))

        level = declared.get("snmpv3_security_level")
        if level in AUTH_LEVELS:
            for name in ("snmpv3_auth_protocol", "snmpv3_auth_password"):
                if declared.get(name) is None:
                    errors.append(FieldError(name, f"is required for security level {level}"))
        if level in PRIV_LEVELS:
            for name in ("snmpv3_priv_protocol", "snmpv3_priv_password"):
                if declared.get(name) is None:
                    errors.append(FieldError(name, f"is required for security level {level}"))

    def _build(self, kind: ResourceKind, declared: Mapping[str, Any]) -> Resource:
        """Build the normalized resource, filling defaults for absent or null attributes."""
        if kind == ResourceKind.SITE:
            return Site(**{name: FieldValue.from_mapping(declared, name) for name in Site.ATTRIBUTES})

        values: dict[str, FieldValue] = {}
        for name in Device.ATTRIBUTES:
            if name == "parent":
                values[name] = parent_from_mapping(declared)
            else:
                values[name] = FieldValue.from_mapping(declared, name)

        defaulted = set()
        for name, default in DEVICE_DEFAULTS.items():
            # A null cannot clear an attribute that has a default
            if not values[name].is_set:
                values[name] = FieldValue.of(default)
                defaulted.add(name)

        return Device(defaulted=frozenset(defaulted), **values)


def validate_and_default(
    kind: Union[ResourceKind, str],
    declared: Mapping[str, Any],
    validator: Optional[SchemaValidator] = None,
) -> ValidationResult:
    """Module-level shortcut for SchemaValidator().validate_and_default."""
    return (validator or SchemaValidator()).validate_and_default(kind, declared)
