"""Resource model: sites, devices and their lifecycle."""
from typing import Union

from .base import (
    LifecycleState,
    Resource,
    ResourceInstance,
    ResourceKind,
)
from .device import (
    DEVICE_DEFAULTS,
    Device,
    OrganizationParent,
    ParentRef,
    SiteParent,
)
from .fields import FieldValue, Presence
from .site import Site

__all__ = [
    "FieldValue",
    "Presence",
    "Resource",
    "ResourceKind",
    "ResourceInstance",
    "LifecycleState",
    "Site",
    "Device",
    "SiteParent",
    "OrganizationParent",
    "ParentRef",
    "DEVICE_DEFAULTS",
    "RESOURCE_TYPES",
    "resource_class",
]

# Resource kind registry
RESOURCE_TYPES: dict[ResourceKind, type[Resource]] = {
    ResourceKind.SITE: Site,
    ResourceKind.DEVICE: Device,
}


def resource_class(kind: Union[ResourceKind, str]) -> type[Resource]:
    """Look up the resource class for a kind."""
    try:
        return RESOURCE_TYPES[ResourceKind(kind)]
    except ValueError:
        raise ValueError(f"Unknown resource kind: {kind}") from None
