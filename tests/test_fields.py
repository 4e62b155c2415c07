"""Tests for tri-state field values."""
import pytest

from towerops_reconciler.resources import FieldValue, Presence


class TestFieldValue:
    """Tests for FieldValue."""

    def test_default_is_absent(self):
        value = FieldValue()
        assert value.is_absent
        assert not value.is_null
        assert not value.is_set

    def test_of_none_is_null(self):
        """None means an explicit clear, not absence."""
        value = FieldValue.of(None)
        assert value.presence == Presence.NULL
        assert value.is_null

    def test_of_value(self):
        value = FieldValue.of(161)
        assert value.is_set
        assert value.value == 161

    @pytest.mark.parametrize("falsy", ["", 0, False])
    def test_falsy_values_are_set(self, falsy):
        """Empty string, zero and False are values, not absence."""
        value = FieldValue.of(falsy)
        assert value.is_set
        assert value.get("fallback") == falsy

    def test_from_mapping(self):
        data = {"name": "edge", "description": None}

        assert FieldValue.from_mapping(data, "name") == FieldValue.of("edge")
        assert FieldValue.from_mapping(data, "description").is_null
        assert FieldValue.from_mapping(data, "location").is_absent

    def test_get_default(self):
        assert FieldValue.absent().get("2c") == "2c"
        assert FieldValue.null().get("2c") == "2c"
        assert FieldValue.of("3").get("2c") == "3"

    def test_same_value(self):
        assert FieldValue.absent().same_value(FieldValue.null())
        assert FieldValue.of("a").same_value(FieldValue.of("a"))
        assert not FieldValue.of("a").same_value(FieldValue.of("b"))
        assert not FieldValue.of("a").same_value(FieldValue.null())

    def test_equality_distinguishes_presence(self):
        assert FieldValue.absent() != FieldValue.null()

    def test_immutable(self):
        value = FieldValue.of("x")
        with pytest.raises(AttributeError):
            value.value = "y"

    def test_str(self):
        assert str(FieldValue.of("edge")) == "'edge'"
        assert str(FieldValue.null()) == "<null>"
        assert str(FieldValue.absent()) == "<absent>"
