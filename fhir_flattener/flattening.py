from __future__ import annotations

import logging
import warnings
from typing import Any, Dict, List, Optional

import pandas as pd

from .accessors import extract_values
from .design import Columns, Design, TableDescription
from .errors import InputShapeError
from .indices import render_cell
from .paths import column_name_from_path
from .records import as_bundle_list, resources_in_bundle
from .schema_utils import discover_leaf_paths

logger = logging.getLogger(__name__)


def auto_columns(resources: List) -> Columns:
    """Columns for every leaf path found in ``resources``, named after their paths."""
    names: Dict[str, Any] = {}
    for path in discover_leaf_paths(resources):
        name = column_name_from_path(path)
        if name in names:
            name = column_name_from_path(path, keep_at=True)
        names[name] = path
    return Columns(names)


def crack_resources(resources: List, description: TableDescription) -> pd.DataFrame:
    """Flatten already selected resources into one row each."""
    columns = description.columns or auto_columns(resources)
    style = description.style

    rows: List[Dict[str, Optional[str]]] = []
    for resource in resources:
        row: Dict[str, Optional[str]] = {}
        for name, path in columns.items():
            values = extract_values(resource, path)
            row[name] = render_cell(values, style.separator, style.brackets)
        rows.append(row)

    df = pd.DataFrame(rows, columns=list(columns), dtype=object)

    if style.drop_empty_columns and len(df):
        empty = [
            name for name in df.columns
            if all(pd.isna(v) or v == '' for v in df[name].tolist())
        ]
        if empty:
            logger.debug("Dropping empty columns: %s", empty)
            df = df.drop(columns=empty)
    return df


def _crack_description(bundles: List, description: TableDescription, table_name: str) -> pd.DataFrame:
    resources = [
        resource
        for bundle in bundles
        for resource in resources_in_bundle(bundle, description.resource)
    ]
    if not resources:
        warnings.warn(
            f"No {description.resource} resources found in the bundles for table "
            f"'{table_name}'. Returning an empty table.",
            UserWarning,
            stacklevel=3,
        )
    df = crack_resources(resources, description)
    logger.debug(
        "Cracked table '%s': %d %s resources, %d columns",
        table_name, len(df), description.resource, df.shape[1],
    )
    return df


def crack(bundles: Any, design):
    """Flatten FHIR resources from a list of bundles into data frames.

    With a :class:`Design`, returns a dict of table name -> DataFrame in design
    order. With a single :class:`TableDescription`, returns one DataFrame.
    Cells holding several values are joined with the style's separator and,
    where an element repeats along the path, prefixed with bracketed indices
    like ``[1.2]``.
    """
    if not isinstance(design, (Design, TableDescription)):
        raise InputShapeError(
            f"design must be a Design or TableDescription, got {type(design).__name__}."
        )
    bundle_list = as_bundle_list(bundles)

    if isinstance(design, TableDescription):
        return _crack_description(bundle_list, design, design.resource)

    return {
        name: _crack_description(bundle_list, description, name)
        for name, description in design.items()
    }


def crack_preview(bundles: Any, description: TableDescription, limit: int = 3) -> pd.DataFrame:
    """First ``limit`` rows of a crack, for quick inspection."""
    return crack(bundles, description).head(max(1, int(limit))).reset_index(drop=True)

