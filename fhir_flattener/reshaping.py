"""Reshaping of cracked tables with indexed multi-valued cells.

All functions take the bracket/separator settings explicitly and return new
DataFrames; the input table is never modified.
"""
from __future__ import annotations

import logging
import re
import warnings
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .constants import (
    COLUMN_NAME_SEP,
    DEFAULT_BRACKETS,
    DEFAULT_ID_COLUMN,
    DEFAULT_SEPARATOR,
)
from .design import validate_brackets, validate_separator
from .errors import ColumnNotFoundError, InputShapeError
from .indices import IndexedValue, format_trail, has_index, parse_cell, strip_indices

logger = logging.getLogger(__name__)


def _check_table(table) -> None:
    if not isinstance(table, pd.DataFrame):
        raise InputShapeError(
            f"You need to supply a pandas DataFrame, the object you supplied is of type {type(table).__name__}."
        )


def _check_columns(table: pd.DataFrame, columns: Sequence[str]) -> List[str]:
    if isinstance(columns, str):
        columns = [columns]
    columns = list(columns)
    if not columns:
        raise InputShapeError("Select at least one column.")
    missing = [c for c in columns if c not in table.columns]
    if missing:
        raise ColumnNotFoundError(
            f"Not all column names you gave match the column names in the table: {missing}."
        )
    return columns


def find_columns_by_prefix(table: pd.DataFrame, prefix: str) -> List[str]:
    """Names of all columns equal to ``prefix`` or starting with ``prefix.``.

    Meant for auto-named columns like ``name.given`` / ``name.family``, to
    collect everything that belongs to one repeating element before melting.
    """
    _check_table(table)
    pattern = re.compile(f"^{re.escape(prefix)}($|{re.escape(COLUMN_NAME_SEP)}+)")
    hits = [c for c in table.columns if pattern.match(str(c))]
    if not hits:
        raise ColumnNotFoundError(f"The column prefix '{prefix}' doesn't appear in any of the column names.")
    return hits


def _join_group(fragments: List[IndexedValue], brackets, separator: str) -> Optional[str]:
    if not fragments:
        return None
    return separator.join(format_trail(f.trail, brackets) + f.value for f in fragments)


def melt_row(
    row: Dict[str, object],
    columns: List[str],
    brackets,
    separator: str,
) -> List[Dict[str, Optional[str]]]:
    """Explode one row into one record per distinct first-level index.

    Each record holds, per column, the fragments whose trail starts with that
    index, with the first level removed from their markers.
    """
    parsed = {c: parse_cell(row.get(c), brackets, separator) for c in columns}
    first_levels = sorted({f.trail[0] for frags in parsed.values() for f in frags})

    records = []
    for k in first_levels:
        rec: Dict[str, Optional[str]] = {}
        for c in columns:
            group = [IndexedValue(f.trail[1:], f.value) for f in parsed[c] if f.trail[0] == k]
            rec[c] = _join_group(group, brackets, separator)
        records.append(rec)
    return records


def melt(
    table: pd.DataFrame,
    columns: Sequence[str],
    brackets=DEFAULT_BRACKETS,
    separator: str = DEFAULT_SEPARATOR,
    id_column_name: str = DEFAULT_ID_COLUMN,
    keep_all_columns: bool = False,
) -> pd.DataFrame:
    """Divide indexed multiple entries into separate rows.

    Every row is turned into one row per distinct first-level index found in
    ``columns``. Other columns are dropped, or repeated in every new row when
    ``keep_all_columns`` is set. ``id_column_name`` holds the 1-based position
    of the row each new row came from. Only melt columns belonging to the same
    repeating element together.
    """
    _check_table(table)
    columns = _check_columns(table, columns)
    separator = validate_separator(separator)
    brackets = validate_brackets(brackets, separator)
    if not isinstance(id_column_name, str) or not id_column_name:
        raise InputShapeError("id_column_name must be a non-empty string.")

    if keep_all_columns:
        out_columns = list(table.columns)
    else:
        out_columns = list(columns)
    if id_column_name in out_columns:
        raise InputShapeError(f"Column '{id_column_name}' already exists; choose another id_column_name.")
    out_columns.append(id_column_name)

    constant_columns = [c for c in table.columns if c not in columns]
    out_rows: List[Dict[str, object]] = []
    for row_number, row in enumerate(table.to_dict(orient='records'), start=1):
        for rec in melt_row(row, columns, brackets, separator):
            if keep_all_columns:
                for c in constant_columns:
                    rec[c] = row[c]
            rec[id_column_name] = row_number
            out_rows.append(rec)

    if not out_rows:
        warnings.warn(
            "The brackets you specified don't seem to appear in the indices of the selected columns. "
            "Returning an empty table.",
            UserWarning,
            stacklevel=2,
        )
        return pd.DataFrame(columns=out_columns)

    logger.debug("Melted %d rows into %d rows on columns %s", len(table), len(out_rows), columns)
    result = pd.DataFrame(out_rows, columns=out_columns)
    result[id_column_name] = result[id_column_name].astype(int)
    return result


def remove_indices(
    table: pd.DataFrame,
    brackets=DEFAULT_BRACKETS,
    columns: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Remove the index markers in front of multiple entries.

    Only ``columns`` are touched (default: all). Warns and returns an
    unchanged copy when no marker is found, which usually means the
    brackets don't match the ones used for cracking.
    """
    _check_table(table)
    brackets = validate_brackets(brackets)
    columns = list(table.columns) if columns is None else _check_columns(table, columns)

    result = table.copy()
    if not any(has_index(result[c].tolist(), brackets) for c in columns):
        warnings.warn(
            "The brackets you specified don't seem to appear in the table.",
            UserWarning,
            stacklevel=2,
        )
        return result

    for c in columns:
        result[c] = result[c].map(lambda cell: strip_indices(cell, brackets))
    return result
