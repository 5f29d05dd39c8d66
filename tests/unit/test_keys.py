"""Tests for property identifier parsing and projection keys."""

import pytest

from propflow.core.exceptions import InvalidPropertyIdError, ValidationError
from propflow.core.keys import (
    PropertyKey,
    normalise,
    parse_property_id,
    partition_key,
    property_keys,
    sort_key,
)


class TestParsePropertyId:
    """Tests for parse_property_id."""

    def test_four_segments(self):
        """Test the four address segments are split in order."""
        address = parse_property_id("usa/anytown/main-street/111")
        assert address.country == "usa"
        assert address.city == "anytown"
        assert address.street == "main-street"
        assert address.number == "111"

    def test_extra_segments_ignored(self):
        """Test segments beyond the fourth are ignored."""
        address = parse_property_id("usa/anytown/main-street/111/unit-4")
        assert address.number == "111"

    @pytest.mark.parametrize("property_id", ["", "usa", "usa/anytown/main-street"])
    def test_too_few_segments(self, property_id):
        """Test identifiers with fewer than four segments are rejected."""
        with pytest.raises(InvalidPropertyIdError) as exc_info:
            parse_property_id(property_id)

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == f"Invalid propertyId {property_id}"


class TestPropertyKeys:
    """Tests for key derivation."""

    def test_property_keys(self):
        """Test PK and SK of a property identifier."""
        key = property_keys("usa/anytown/main-street/111")
        assert key == PropertyKey(pk="PROPERTY#usa#anytown", sk="main-street#111")

    def test_segments_are_normalised(self):
        """Test case and spaces are normalised."""
        key = property_keys("USA/Any Town/Main Street/111")
        assert key.pk == "PROPERTY#usa#any-town"
        assert key.sk == "main-street#111"

    def test_sort_key_prefix_without_number(self):
        """Test a street-only sort key is a prefix of the full key."""
        assert sort_key("main-street") == "main-street"
        assert sort_key("main-street", "222").startswith(sort_key("main-street"))

    def test_partition_key(self):
        assert partition_key("usa", "anytown") == "PROPERTY#usa#anytown"

    def test_normalise(self):
        assert normalise("  Main Street ") == "main-street"
