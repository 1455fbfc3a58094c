"""
Tests for the path extractor.
"""

from fhir_flattener.accessors import extract_values, local_name, node_value
from fhir_flattener.indices import IndexedValue
from fhir_flattener.io_utils import parse_bundle


class TestExtractValues:
    """Test value extraction and index trails."""

    def test_single_value_has_no_trail(self, patient):
        assert extract_values(patient, "gender") == [IndexedValue((), "female")]

    def test_repeating_leaf(self, patient):
        """Test two givens below a single name."""
        assert extract_values(patient, "name/given") == [
            IndexedValue((1,), "Anna"),
            IndexedValue((2,), "Maria"),
        ]

    def test_unambiguous_path(self, patient):
        assert extract_values(patient, "name/family") == [IndexedValue((), "Smith")]

    def test_nested_multiplicity(self, nested_patient):
        """Test repeating names where only the first repeats given."""
        assert extract_values(nested_patient, "name/given") == [
            IndexedValue((1, 1), "Ann"),
            IndexedValue((1, 2), "Beth"),
            IndexedValue((2, 1), "Clara"),
        ]
        assert extract_values(nested_patient, "name/family") == [
            IndexedValue((1,), "Doe"),
            IndexedValue((2,), "Roe"),
        ]

    def test_single_child_per_parent_adds_no_level(self, patient_bundle):
        """Test repeating names with one given each: only the name step is indexed."""
        bob = patient_bundle.findall('.//{http://hl7.org/fhir}Patient')[1]
        assert extract_values(bob, "name/given") == [
            IndexedValue((1,), "Bob"),
            IndexedValue((2,), "Robert"),
        ]

    def test_no_match(self, patient):
        assert extract_values(patient, "birthDate") == []
        assert extract_values(patient, "name/prefix") == []

    def test_attribute(self, nested_patient):
        assert extract_values(nested_patient, "extension/@url") == [
            IndexedValue((), "http://example.org/birthPlace"),
        ]

    def test_missing_attribute(self, patient):
        assert extract_values(patient, "gender/@url") == []

    def test_value_attribute_explicitly(self, patient):
        assert extract_values(patient, "gender/@value") == [IndexedValue((), "female")]

    def test_text_content(self):
        """Test elements without value attribute return their text."""
        doc = parse_bundle("<Note><line>first</line><line> second </line><empty/></Note>")
        assert extract_values(doc, "line") == [
            IndexedValue((1,), "first"),
            IndexedValue((2,), "second"),
        ]
        assert extract_values(doc, "empty") == []

    def test_comments_are_ignored(self):
        doc = parse_bundle("<Patient><!-- note --><gender value='other'/></Patient>")
        assert extract_values(doc, "gender") == [IndexedValue((), "other")]

    def test_values_are_strings(self):
        doc = parse_bundle("<Observation><valueInteger value='42'/><flag value='true'/></Observation>")
        assert extract_values(doc, "valueInteger")[0].value == "42"
        assert extract_values(doc, "flag")[0].value == "true"


class TestHelpers:
    """Test element helpers."""

    def test_local_name_strips_namespace(self, patient):
        assert local_name(patient) == "Patient"

    def test_node_value_prefers_value_attribute(self):
        doc = parse_bundle("<a value='x'>text</a>")
        assert node_value(doc) == "x"
