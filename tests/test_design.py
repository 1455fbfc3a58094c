"""
Tests for the schema model: Style, Columns, TableDescription and Design.
"""

import dataclasses
import os

import pytest

from fhir_flattener.design import Columns, Design, Style, TableDescription
from fhir_flattener.errors import PathSyntaxError, SchemaError


class TestStyle:
    """Test style validation."""

    def test_defaults(self):
        style = Style()
        assert style.separator == ":::"
        assert style.brackets == ("[", "]")
        assert style.drop_empty_columns is False
        assert style.indexed

    def test_brackets_list_becomes_tuple(self):
        assert Style(brackets=["<", ">"]).brackets == ("<", ">")

    def test_no_brackets(self):
        style = Style(brackets=None)
        assert style.brackets is None
        assert not style.indexed

    @pytest.mark.parametrize("brackets", [
        ("[", "["),
        ("[",),
        ("[", "]", ")"),
        ("", "]"),
        ("1", "]"),
        ("[", "."),
        "[]",
        ("[", 1),
    ])
    def test_invalid_brackets(self, brackets):
        """Test that ambiguous bracket configurations are rejected."""
        with pytest.raises(SchemaError):
            Style(brackets=brackets)

    @pytest.mark.parametrize("separator", ["", "1", "..", "2.", None])
    def test_invalid_separator(self, separator):
        with pytest.raises(SchemaError):
            Style(separator=separator)

    def test_separator_colliding_with_bracket(self):
        with pytest.raises(SchemaError):
            Style(separator="[", brackets=("[", "]"))

    def test_drop_empty_columns_must_be_bool(self):
        with pytest.raises(SchemaError):
            Style(drop_empty_columns="yes")

    def test_immutable(self):
        style = Style()
        with pytest.raises(dataclasses.FrozenInstanceError):
            style.separator = "|"


class TestColumns:
    """Test column mapping construction."""

    def test_mapping_keeps_order(self):
        cols = Columns({"given": "name/given", "family": "name/family"})
        assert list(cols) == ["given", "family"]
        assert str(cols["family"]) == "name/family"

    def test_list_of_paths_is_auto_named(self):
        cols = Columns(["code/coding/system", "code/coding/code"])
        assert list(cols) == ["code.coding.system", "code.coding.code"]

    def test_duplicate_names(self):
        with pytest.raises(SchemaError):
            Columns(["name/given", "name/given"])

    def test_malformed_path_names_the_column(self):
        with pytest.raises(PathSyntaxError, match="given"):
            Columns({"given": "name//given"})

    def test_empty(self):
        assert len(Columns()) == 0
        assert len(Columns(None)) == 0

    def test_wrong_type(self):
        with pytest.raises(SchemaError):
            Columns("name/given")

    def test_equality(self):
        assert Columns(["gender"]) == Columns({"gender": "gender"})


class TestTableDescription:
    """Test resource type validation and defaults."""

    def test_known_type(self):
        desc = TableDescription("Patient", {"gender": "gender"})
        assert desc.resource == "Patient"
        assert isinstance(desc.columns, Columns)
        assert desc.style == Style()

    def test_case_is_corrected(self):
        assert TableDescription("medicationrequest").resource == "MedicationRequest"

    def test_xpath_decoration_is_stripped(self):
        assert TableDescription("//Patient").resource == "Patient"

    def test_unknown_type_warns(self):
        """Test that unknown resource types only warn."""
        with pytest.warns(UserWarning, match="Hospital"):
            desc = TableDescription("Hospital")
        assert desc.resource == "Hospital"

    def test_unknown_type_warning_points_at_caller(self):
        with pytest.warns(UserWarning, match="Hospital") as record:
            TableDescription("Hospital")
        assert os.path.basename(record[0].filename) == os.path.basename(__file__)

    @pytest.mark.parametrize("bad", ["Patient/name", "Pat ient", "", "Patient1", "Patient[1]"])
    def test_invalid_selector(self, bad):
        with pytest.raises(SchemaError):
            TableDescription(bad)

    def test_style_from_mapping(self):
        desc = TableDescription("Patient", style={"separator": " ", "brackets": ("<", ">")})
        assert desc.style == Style(separator=" ", brackets=("<", ">"))

    def test_bad_path_fails_at_construction(self):
        with pytest.raises(PathSyntaxError):
            TableDescription("Patient", {"x": "name/"})

    def test_describe(self):
        text = TableDescription("Patient", {"gender": "gender"}).describe()
        assert "Resource type: Patient" in text
        assert "gender" in text


class TestDesign:
    """Test design construction."""

    def test_keeps_order(self):
        design = Design({
            "Patients": TableDescription("Patient"),
            "Observations": TableDescription("Observation"),
        })
        assert list(design) == ["Patients", "Observations"]
        assert design["Observations"].resource == "Observation"

    def test_rejects_non_descriptions(self):
        with pytest.raises(SchemaError):
            Design({"Patients": {"resource": "Patient"}})

    def test_from_dict(self):
        """Test building a design from a plain nested dict."""
        old = {
            "Patients": {
                "resource": "//Patient",
                "cols": {"name": "name/family", "gender": "gender"},
                "style": {"sep": "||", "brackets": ["[", "]"], "rm_empty_cols": True},
            },
            "Observations": {"resource": "//Observation"},
        }
        with pytest.warns(DeprecationWarning):
            design = Design.from_dict(old)

        patients = design["Patients"]
        assert patients.resource == "Patient"
        assert list(patients.columns) == ["name", "gender"]
        assert patients.style == Style(separator="||", brackets=("[", "]"), drop_empty_columns=True)
        assert len(design["Observations"].columns) == 0

    def test_from_dict_without_resource(self):
        with pytest.warns(DeprecationWarning):
            with pytest.raises(SchemaError):
                Design.from_dict({"Patients": {"cols": {}}})

    def test_describe(self):
        design = Design({"Patients": TableDescription("Patient")})
        text = design.describe()
        assert "A design with 1 table descriptions" in text
        assert "Name: Patients" in text
        assert Design().describe() == "An empty design"
