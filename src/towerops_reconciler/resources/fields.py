"""Tri-state attribute values.

An optional attribute can be absent (the caller said nothing, the remote
default applies), explicitly null (the caller cleared it) or set to a
value. `None` alone cannot tell the first two apart, so every optional
attribute is carried as a FieldValue.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Mapping, Optional, TypeVar

T = TypeVar("T")


class Presence(str, Enum):
    """Presence of an attribute value."""
    ABSENT = "absent"
    NULL = "null"
    SET = "set"


@dataclass(frozen=True)
class FieldValue(Generic[T]):
    """A value tagged with its presence."""
    presence: Presence = Presence.ABSENT
    value: Optional[T] = None

    @classmethod
    def absent(cls) -> "FieldValue":
        return cls(Presence.ABSENT)

    @classmethod
    def null(cls) -> "FieldValue":
        return cls(Presence.NULL)

    @classmethod
    def of(cls, value: T) -> "FieldValue[T]":
        if value is None:
            return cls(Presence.NULL)
        return cls(Presence.SET, value)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], key: str) -> "FieldValue":
        """Missing key -> absent, None -> null, anything else -> set."""
        if key not in data:
            return cls.absent()
        return cls.of(data[key])

    @property
    def is_absent(self) -> bool:
        return self.presence == Presence.ABSENT

    @property
    def is_null(self) -> bool:
        return self.presence == Presence.NULL

    @property
    def is_set(self) -> bool:
        return self.presence == Presence.SET

    def get(self, default: Optional[T] = None) -> Optional[T]:
        """Return the value when set, otherwise `default`."""
        return self.value if self.is_set else default

    def same_value(self, other: "FieldValue") -> bool:
        """Compare values, treating absent and null as "no value"."""
        if not self.is_set and not other.is_set:
            return True
        return self.is_set and other.is_set and self.value == other.value

    def __str__(self) -> str:
        if self.is_set:
            return repr(self.value)
        return f"<{self.presence.value}>"
