from __future__ import annotations

import json
import os
import tempfile
import warnings
from typing import Any, Dict, List, Optional

import gradio as gr
import pandas as pd

from .constants import DEFAULT_SEPARATOR, PREVIEW_ROWS
from .design import Columns, Style, TableDescription
from .errors import FhirFlattenerError, SchemaError
from .flattening import crack, crack_preview
from .io_utils import read_bundles
from .paths import column_name_from_path
from .records import (
    as_bundle_list,
    resource_types_in_bundles,
    resources_in_bundle,
    select_resources,
)
from .resource_types import canonical_resource_type
from .schema_utils import discover_leaf_paths

MAPPING_HEADERS = ["Column Name", "Path"]


def parse_brackets_text(text: Optional[str]):
    """'[ ]' -> ('[', ']'); blank -> None (no indices)."""
    if text is None or not str(text).strip():
        return None
    parts = str(text).split()
    if len(parts) == 1 and len(parts[0]) == 2:
        parts = [parts[0][0], parts[0][1]]
    return tuple(parts)


def warning_messages(caught) -> str:
    return " ".join(str(w.message) for w in caught)


def prepare_bundles_payload(file_objs):
    if not file_objs:
        return None, "No file uploaded."

    try:
        bundles = read_bundles(file_objs)
    except (FhirFlattenerError, OSError) as e:
        return None, f"Error parsing XML: {str(e)}"

    return bundles, f"Successfully loaded {len(bundles)} bundle(s)."


def selected_resource_type(resource_type: str) -> str:
    """Dropdown text -> resource element name, case corrected where known."""
    name = str(resource_type).strip().lstrip('/.')
    return canonical_resource_type(name) or name


def compute_resource_count_text(bundles: Any, resource_type: str) -> str:
    if not bundles or not resource_type:
        return ""
    resource_type = selected_resource_type(resource_type)
    bundle_list = as_bundle_list(bundles)
    count = sum(len(resources_in_bundle(b, resource_type)) for b in bundle_list)
    return f"{resource_type} resources: {count} (bundles: {len(bundle_list)})"


def discover_paths_for_type(bundles: Any, resource_type: str) -> List[str]:
    if not bundles or not resource_type:
        return []
    return discover_leaf_paths(select_resources(bundles, selected_resource_type(resource_type)))


def load_bundles_with_summary(file_objs):
    bundles, message = prepare_bundles_payload(file_objs)
    if bundles is None:
        return None, [], [], message, gr.update(choices=[], value=None), [], None, ""

    types = resource_types_in_bundles(bundles)
    default_type = "Patient" if "Patient" in types else (types[0] if types else None)
    paths = discover_paths_for_type(bundles, default_type)
    count_text = compute_resource_count_text(bundles, default_type)
    type_dropdown = gr.update(choices=types, value=default_type)
    message = f"{message} Found resource types: {', '.join(types) or 'none'}."
    return bundles, paths, [], message, type_dropdown, [], None, count_text


def handle_resource_change(bundles: Any, resource_type: str):
    return (
        discover_paths_for_type(bundles, resource_type),
        [],
        compute_resource_count_text(bundles, resource_type),
        None,
    )


def update_mapping_table(selected_paths):
    if not selected_paths:
        return []
    rows = []
    names = set()
    for p in selected_paths:
        name = column_name_from_path(p)
        if name in names:
            name = column_name_from_path(p, keep_at=True)
        names.add(name)
        rows.append([name, p])
    return rows


def update_mapping_table_and_clear_preview(selected_paths):
    return update_mapping_table(selected_paths), None


def mapping_from_table(mapping_df) -> Dict[str, str]:
    """Column name -> path from the editable mapping table (DataFrame or rows).

    Raises SchemaError when two rows end up with the same column name.
    """
    if mapping_df is None:
        return {}
    if isinstance(mapping_df, pd.DataFrame):
        rows = mapping_df[MAPPING_HEADERS].values.tolist() if len(mapping_df) else []
    else:
        rows = list(mapping_df)
    mapping: Dict[str, str] = {}
    for row in rows:
        if len(row) < 2:
            continue
        name, path = row[0], row[1]
        if path is None or not str(path).strip():
            continue
        name = str(name).strip() if name is not None and str(name).strip() else column_name_from_path(str(path))
        if name in mapping:
            raise SchemaError(f"Column name '{name}' is used more than once in the mapping table.")
        mapping[name] = str(path).strip()
    return mapping


def build_table_description(resource_type, mapping_df, separator, brackets_text, drop_empty) -> TableDescription:
    style = Style(
        separator=separator if separator else DEFAULT_SEPARATOR,
        brackets=parse_brackets_text(brackets_text),
        drop_empty_columns=bool(drop_empty),
    )
    return TableDescription(
        resource=resource_type or "",
        columns=Columns(mapping_from_table(mapping_df)),
        style=style,
    )


def preview_crack_handler(bundles, resource_type, mapping_df, separator, brackets_text, drop_empty):
    if bundles is None:
        return None, "No bundles loaded."
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            description = build_table_description(resource_type, mapping_df, separator, brackets_text, drop_empty)
            df = crack_preview(bundles, description, limit=PREVIEW_ROWS)
        except FhirFlattenerError as e:
            return None, f"Error: {str(e)}"
    rows = df.to_dict(orient='records')
    status = warning_messages(caught) or f"Previewing {len(rows)} row(s)."
    return (rows if rows else None), status


def crack_table_handler(bundles, resource_type, mapping_df, separator, brackets_text, drop_empty):
    """Crack all bundles; returns (table, status, preview rows)."""
    if bundles is None:
        return None, "No bundles loaded.", None
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            description = build_table_description(resource_type, mapping_df, separator, brackets_text, drop_empty)
            df = crack(bundles, description)
        except FhirFlattenerError as e:
            return None, f"Error: {str(e)}", None
    status = f"Cracked {len(df)} {description.resource} resource(s) into {df.shape[1]} column(s)."
    notes = warning_messages(caught)
    if notes:
        status = f"{status} {notes}"
    preview = df.head(PREVIEW_ROWS).to_dict(orient='records')
    return df, status, (preview if preview else None)


def export_table_handler(table, output_format, file_name):
    if table is None:
        return None, "No table to export."

    if not file_name or not file_name.strip():
        file_name = "output"

    ext = f".{output_format.lower()}"
    if not file_name.lower().endswith(ext):
        file_name += ext

    temp_dir = tempfile.gettempdir()
    path = os.path.join(temp_dir, file_name)

    try:
        if output_format == "CSV":
            table.to_csv(path, index=False)
        else:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(table.to_dict(orient='records'), f, indent=2, ensure_ascii=False)

        return path, f"Export successful! Saved to {path}"
    except OSError as e:
        return None, f"Error during export: {str(e)}"
