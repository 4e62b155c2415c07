"""Base resource abstraction shared by sites and devices."""
import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional

from .fields import FieldValue


REDACTED = "***"


class ResourceKind(str, Enum):
    """Kinds of remote objects the engine manages."""
    SITE = "site"
    DEVICE = "device"

    @property
    def collection(self) -> str:
        """Plural name used in API paths."""
        return f"{self.value}s"


class LifecycleState(str, Enum):
    """Lifecycle of a resource instance relative to its remote counterpart."""
    UNBOUND = "unbound"       # Declared, no remote object yet
    BOUND = "bound"           # Linked to a server-assigned id
    ORPHANED = "orphaned"     # Remote object vanished out-of-band
    DESTROYED = "destroyed"   # Deleted, terminal


@dataclass
class Resource:
    """Canonical in-memory representation of a remote object.

    Subclasses declare their attributes as FieldValue dataclass fields and
    list them in ATTRIBUTES. `id` and `inserted_at` are server-assigned and
    never sent in a payload.
    """
    kind: ClassVar[ResourceKind]
    ATTRIBUTES: ClassVar[tuple[str, ...]] = ()
    SENSITIVE: ClassVar[frozenset[str]] = frozenset()
    IMMUTABLE: ClassVar[frozenset[str]] = frozenset()
    COMPUTED: ClassVar[tuple[str, ...]] = ("id", "inserted_at")

    id: Optional[str] = None
    inserted_at: Optional[str] = None
    # Attributes filled by the default applier rather than declared
    defaulted: frozenset[str] = field(default_factory=frozenset)

    def get(self, name: str) -> FieldValue:
        """Get an attribute's tri-state value."""
        if name not in self.ATTRIBUTES:
            raise KeyError(f"Unknown {self.kind.value} attribute: {name}")
        return getattr(self, name)

    def to_payload(
        self,
        include_defaults: bool = True,
        include_immutable: bool = True,
    ) -> dict[str, Any]:
        """Build the request body fields.

        Absent attributes are omitted, explicit nulls are sent as None so
        the server clears them.

        Args:
            include_defaults: Include attributes filled by the default applier
            include_immutable: Include identity-defining attributes
        """
        payload: dict[str, Any] = {}
        for name in self.ATTRIBUTES:
            value = self.get(name)
            if value.is_absent:
                continue
            if not include_defaults and name in self.defaulted:
                continue
            if not include_immutable and name in self.IMMUTABLE:
                continue
            self._encode(name, value, payload)
        return payload

    def _encode(self, name: str, value: FieldValue, payload: dict[str, Any]) -> None:
        payload[name] = value.value

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "Resource":
        """Build a resource from a decoded API response body."""
        values = {name: cls._decode(data, name) for name in cls.ATTRIBUTES}
        return cls(
            id=_optional_str(data.get("id")),
            inserted_at=_optional_str(data.get("inserted_at")),
            **values,
        )

    @classmethod
    def _decode(cls, data: Mapping[str, Any], name: str) -> FieldValue:
        return FieldValue.from_mapping(data, name)

    def merged_with(self, remote: "Resource", keep_id: bool = True) -> "Resource":
        """Overlay everything the server reported onto this resource.

        Attributes the server returned (value or explicit null) win;
        attributes it omitted keep their current value.

        Args:
            remote: Resource decoded from the server response
            keep_id: Keep this resource's id instead of the server's
        """
        changes: dict[str, Any] = {}
        for name in self.ATTRIBUTES:
            reported = remote.get(name)
            if not reported.is_absent:
                changes[name] = reported

        changes["id"] = self.id if keep_id and self.id else remote.id
        changes["inserted_at"] = remote.inserted_at or self.inserted_at
        return dataclasses.replace(self, **changes)

    def to_dict(self, redact: bool = True) -> dict[str, Any]:
        """Plain dict of id, timestamps and non-absent attributes."""
        result: dict[str, Any] = {}
        if self.id is not None:
            result["id"] = self.id
        for name in self.ATTRIBUTES:
            value = self.get(name)
            if value.is_absent:
                continue
            if redact and name in self.SENSITIVE and value.is_set:
                result[name] = REDACTED
            else:
                result[name] = self._plain(name, value)
        if self.inserted_at is not None:
            result["inserted_at"] = self.inserted_at
        return result

    def plain_value(self, name: str) -> Any:
        """JSON-friendly value of an attribute (None when absent or null)."""
        return self._plain(name, self.get(name))

    def _plain(self, name: str, value: FieldValue) -> Any:
        return value.value


@dataclass
class ResourceInstance:
    """A resource tracked across reconciliation passes.

    Only the Reconciler moves `state`; `resource` holds the canonical
    (last applied or observed) values.
    """
    kind: ResourceKind
    state: LifecycleState = LifecycleState.UNBOUND
    resource: Optional[Resource] = None

    @property
    def id(self) -> Optional[str]:
        return self.resource.id if self.resource else None

    @property
    def is_bound(self) -> bool:
        return self.state == LifecycleState.BOUND

    def __repr__(self) -> str:
        return f"ResourceInstance({self.kind.value}, {self.state.value}, id={self.id})"


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)
