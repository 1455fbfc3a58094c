from __future__ import annotations


class FhirFlattenerError(ValueError):
    """Base class for errors raised by fhir_flattener."""


class InputShapeError(FhirFlattenerError):
    """An argument is not the kind of object the operation works on."""


class ColumnNotFoundError(InputShapeError):
    pass


class SchemaError(FhirFlattenerError):
    """A table description, style or design is malformed."""


class PathSyntaxError(SchemaError):
    pass
