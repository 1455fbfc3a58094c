"""Schema model: what to extract from which resources and how to render it.

A :class:`Design` maps output table names to :class:`TableDescription` objects.
Each description names one resource type, the columns to extract (name -> path)
and the :class:`Style` used to render multi-valued cells.
"""
from __future__ import annotations

import re
import warnings
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .constants import (
    DEFAULT_BRACKETS,
    DEFAULT_DROP_EMPTY_COLUMNS,
    DEFAULT_SEPARATOR,
)
from .errors import PathSyntaxError, SchemaError
from .paths import ExtractionPath, column_name_from_path, parse_path
from .resource_types import canonical_resource_type

_TYPE_NAME_RE = re.compile(r'[A-Za-z]+\Z')
_DIGITS_OR_DOTS_RE = re.compile(r'[0-9.]+\Z')


def validate_brackets(brackets, separator: Optional[str] = None) -> Tuple[str, str]:
    if isinstance(brackets, str) or not isinstance(brackets, (list, tuple)) or len(brackets) != 2:
        raise SchemaError(f"brackets must be a pair of strings, got {brackets!r}.")
    opening, closing = brackets
    if not isinstance(opening, str) or not isinstance(closing, str) or not opening or not closing:
        raise SchemaError(f"brackets must be two non-empty strings, got {brackets!r}.")
    if opening == closing:
        raise SchemaError(f"Opening and closing bracket must differ, got {brackets!r}.")
    for b in (opening, closing):
        if re.search(r'[0-9.]', b):
            raise SchemaError(f"Bracket {b!r} must not contain digits or '.'.")
        if separator and (separator in b or b in separator):
            raise SchemaError(f"Bracket {b!r} collides with separator {separator!r}.")
    return opening, closing


def validate_separator(separator) -> str:
    if not isinstance(separator, str) or separator == '':
        raise SchemaError(f"separator must be a non-empty string, got {separator!r}.")
    if _DIGITS_OR_DOTS_RE.match(separator):
        raise SchemaError(f"separator {separator!r} would be confused with index digits.")
    return separator


def normalize_resource_type(resource, stacklevel: int = 2) -> str:
    """Strip XPath decoration ('//Patient'), check the name and fix its case.

    Unknown names only trigger a warning: new FHIR versions add resource types.
    ``stacklevel`` is passed on to the warning.
    """
    if not isinstance(resource, str):
        raise SchemaError(f"resource must be a string, got {type(resource).__name__}.")
    name = re.sub(r'^[/.]+', '', resource.strip())
    if not _TYPE_NAME_RE.match(name):
        raise SchemaError(
            f"resource must be a bare resource type name like 'Patient', got {resource!r}."
        )
    canonical = canonical_resource_type(name)
    if canonical is None:
        warnings.warn(
            f"'{name}' is not a known FHIR resource type. Extraction will still be attempted.",
            UserWarning,
            stacklevel=stacklevel,
        )
        return name
    return canonical


@dataclass(frozen=True)
class Style:
    separator: str = DEFAULT_SEPARATOR
    brackets: Optional[Tuple[str, str]] = DEFAULT_BRACKETS
    drop_empty_columns: bool = DEFAULT_DROP_EMPTY_COLUMNS

    def __post_init__(self):
        validate_separator(self.separator)
        if self.brackets is not None:
            object.__setattr__(self, 'brackets', validate_brackets(self.brackets, self.separator))
        if not isinstance(self.drop_empty_columns, bool):
            raise SchemaError("drop_empty_columns must be True or False.")

    @property
    def indexed(self) -> bool:
        return self.brackets is not None

    def describe(self) -> str:
        brackets = 'none' if self.brackets is None else f"'{self.brackets[0]}' '{self.brackets[1]}'"
        return (
            f"separator: '{self.separator}'\n"
            f"brackets: {brackets}\n"
            f"drop_empty_columns: {self.drop_empty_columns}"
        )


class Columns(Mapping):
    """Ordered, read-only mapping from column name to ExtractionPath.

    Accepts a mapping of name -> path or a plain list of paths, in which
    case the names are generated from the paths (``code/coding/system`` ->
    ``code.coding.system``).
    """

    def __init__(self, columns=None):
        if columns is None:
            columns = {}
        if isinstance(columns, Columns):
            items = list(columns.items())
        elif isinstance(columns, Mapping):
            items = list(columns.items())
        elif isinstance(columns, (list, tuple)):
            items = []
            for path in columns:
                try:
                    name = column_name_from_path(path)
                except PathSyntaxError as exc:
                    raise PathSyntaxError(f"Column path {path!r}: {exc}") from exc
                items.append((name, path))
        else:
            raise SchemaError(
                f"columns must be a mapping of name -> path or a list of paths, got {type(columns).__name__}."
            )

        parsed: Dict[str, ExtractionPath] = {}
        for name, path in items:
            if not isinstance(name, str) or not name:
                raise SchemaError(f"Column names must be non-empty strings, got {name!r}.")
            if name in parsed:
                raise SchemaError(f"Column name '{name}' is used more than once.")
            try:
                parsed[name] = parse_path(path)
            except PathSyntaxError as exc:
                raise PathSyntaxError(f"Column '{name}': {exc}") from exc
        self._columns = parsed

    def __getitem__(self, name: str) -> ExtractionPath:
        return self._columns[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __eq__(self, other):
        if isinstance(other, Columns):
            return list(self._columns.items()) == list(other._columns.items())
        return NotImplemented

    def __hash__(self):
        return hash(tuple(self._columns.items()))

    def __repr__(self):
        return f"Columns({ {k: str(v) for k, v in self._columns.items()} })"

    def describe(self) -> str:
        if not self._columns:
            return "(none: all available leaf paths)"
        width = max(len(name) for name in self._columns)
        return "\n".join(f"{name.ljust(width)}  {path}" for name, path in self._columns.items())


@dataclass(frozen=True)
class TableDescription:
    resource: str
    columns: Columns = field(default_factory=Columns)
    style: Style = field(default_factory=Style)

    def __post_init__(self):
        object.__setattr__(self, 'resource', normalize_resource_type(self.resource, stacklevel=4))
        if not isinstance(self.columns, Columns):
            object.__setattr__(self, 'columns', Columns(self.columns))
        if self.style is None:
            object.__setattr__(self, 'style', Style())
        elif isinstance(self.style, Mapping):
            object.__setattr__(self, 'style', Style(**self.style))
        elif not isinstance(self.style, Style):
            raise SchemaError(f"style must be a Style, got {type(self.style).__name__}.")

    def describe(self) -> str:
        return (
            f"Resource type: {self.resource}\n\n"
            f"Columns:\n{self.columns.describe()}\n\n"
            f"Style:\n{self.style.describe()}"
        )


class Design(Mapping):
    """Ordered mapping from table name to TableDescription."""

    def __init__(self, descriptions=None):
        if descriptions is None:
            descriptions = {}
        if not isinstance(descriptions, Mapping):
            raise SchemaError("A Design is built from a mapping of table name -> TableDescription.")
        entries: Dict[str, TableDescription] = {}
        for name, desc in descriptions.items():
            if not isinstance(name, str) or not name:
                raise SchemaError(f"Table names must be non-empty strings, got {name!r}.")
            if not isinstance(desc, TableDescription):
                raise SchemaError(f"Design entry '{name}' is not a TableDescription.")
            entries[name] = desc
        self._entries = entries

    @classmethod
    def from_dict(cls, old_design: Dict[str, Any]) -> "Design":
        """Build a Design from a plain nested dict.

        Expected shape::

            {"Patients": {"resource": "//Patient",
                          "cols": {"name": "name/family"},
                          "style": {"sep": "||", "brackets": ["[", "]"], "rm_empty_cols": False}}}

        ``cols`` may be omitted (auto-discovery) and ``style`` may be partial.
        """
        warnings.warn(
            "Plain dict designs will be deprecated; build Design objects from TableDescription instead.",
            DeprecationWarning,
            stacklevel=2,
        )
        if not isinstance(old_design, Mapping):
            raise SchemaError("A dict design must be a mapping of table name -> description dict.")
        entries: Dict[str, TableDescription] = {}
        for name, entry in old_design.items():
            if isinstance(entry, (list, tuple)) and entry:
                # positional form: [resource, cols?, style?]
                entry = dict(zip(('resource', 'cols', 'style'), entry))
            if not isinstance(entry, Mapping) or 'resource' not in entry:
                raise SchemaError(f"Design entry '{name}' needs at least a 'resource'.")
            entry_style = entry.get('style') or {}
            style_kwargs: Dict[str, Any] = {}
            if entry_style.get('sep') is not None:
                style_kwargs['separator'] = entry_style['sep']
            if 'brackets' in entry_style:
                brackets = entry_style['brackets']
                style_kwargs['brackets'] = tuple(brackets) if brackets else None
            if entry_style.get('rm_empty_cols') is not None:
                style_kwargs['drop_empty_columns'] = bool(entry_style['rm_empty_cols'])
            entries[name] = TableDescription(
                resource=entry['resource'],
                columns=Columns(entry.get('cols') or {}),
                style=Style(**style_kwargs),
            )
        return cls(entries)

    def __getitem__(self, name: str) -> TableDescription:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self):
        return f"Design({list(self._entries)})"

    def describe(self) -> str:
        if not self._entries:
            return "An empty design"
        blocks: List[str] = [f"A design with {len(self)} table descriptions:"]
        for name, desc in self._entries.items():
            blocks.append("=" * 53)
            blocks.append(f"Name: {name}\n\n{desc.describe()}\n")
        return "\n".join(blocks)
