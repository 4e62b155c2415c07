"""Site resource: a physical location that contains devices."""
from dataclasses import dataclass, field
from typing import ClassVar

from .base import Resource, ResourceKind
from .fields import FieldValue

SITE_NAME_MIN_LENGTH = 2
SITE_NAME_MAX_LENGTH = 200


@dataclass
class Site(Resource):
    """A TowerOps site."""
    kind: ClassVar[ResourceKind] = ResourceKind.SITE
    ATTRIBUTES: ClassVar[tuple[str, ...]] = ("name", "location", "snmp_community")
    SENSITIVE: ClassVar[frozenset[str]] = frozenset({"snmp_community"})

    name: FieldValue[str] = field(default_factory=FieldValue.absent)
    location: FieldValue[str] = field(default_factory=FieldValue.absent)
    # Default SNMP community for devices at this site
    snmp_community: FieldValue[str] = field(default_factory=FieldValue.absent, repr=False)
