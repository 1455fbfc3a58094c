"""
Tests for extraction path parsing and auto column naming.
"""

import pytest

from fhir_flattener.errors import PathSyntaxError, SchemaError
from fhir_flattener.paths import ExtractionPath, column_name_from_path, parse_path, split_path


class TestParsePath:
    """Test path syntax validation."""

    def test_element_steps(self):
        """Test a plain element path."""
        path = parse_path("code/coding/system")
        assert path.steps == ("code", "coding", "system")
        assert path.attribute is None
        assert str(path) == "code/coding/system"

    def test_trailing_attribute(self):
        """Test a path ending in an attribute selector."""
        path = parse_path("extension/@url")
        assert path.steps == ("extension",)
        assert path.attribute == "url"
        assert str(path) == "extension/@url"

    def test_leading_dot_slash_is_dropped(self):
        """Test that './name/given' is the same path as 'name/given'."""
        assert parse_path("./name/given") == parse_path("name/given")

    def test_existing_path_is_returned(self):
        """Test that parsing an ExtractionPath is a no-op."""
        path = ExtractionPath(("gender",))
        assert parse_path(path) is path

    @pytest.mark.parametrize("bad", [
        "",
        "   ",
        "name//given",
        "/name",
        "name/",
        "@value/name",
        "name/@",
        "name[1]/given",
        "na me",
        "*",
        "@url",
    ])
    def test_malformed_paths(self, bad):
        """Test that malformed paths raise a descriptive error."""
        with pytest.raises(PathSyntaxError):
            parse_path(bad)

    def test_path_error_is_schema_error(self):
        """Test the error hierarchy for path errors."""
        with pytest.raises(SchemaError):
            parse_path("a//b")

    def test_non_string(self):
        """Test that non-string paths are rejected."""
        with pytest.raises(PathSyntaxError):
            parse_path(42)


class TestColumnNames:
    """Test auto-generated column names."""

    def test_slashes_become_dots(self):
        assert column_name_from_path("code/coding/system") == "code.coding.system"

    def test_attribute_at_is_dropped(self):
        assert column_name_from_path("extension/@url") == "extension.url"

    def test_keep_at(self):
        assert column_name_from_path("extension/@url", keep_at=True) == "extension.@url"

    def test_property(self):
        assert parse_path("name/given").column_name == "name.given"


def test_split_path():
    assert split_path("./a/b/@c") == ["a", "b", "@c"]
    assert split_path(None) == []
