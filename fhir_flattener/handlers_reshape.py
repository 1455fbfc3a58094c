from __future__ import annotations

import warnings

import gradio as gr

from .constants import DEFAULT_ID_COLUMN, DEFAULT_SEPARATOR, PREVIEW_ROWS
from .errors import FhirFlattenerError
from .handlers_single import parse_brackets_text, warning_messages
from .reshaping import find_columns_by_prefix, melt, remove_indices


def table_columns_update(table):
    if table is None:
        return gr.update(choices=[], value=[], interactive=False)
    choices = [str(c) for c in table.columns]
    return gr.update(choices=choices, value=[], interactive=bool(choices))


def preview_rows(table):
    if table is None or not len(table):
        return None
    return table.head(PREVIEW_ROWS).to_dict(orient='records')


def handle_table_change(table):
    return table_columns_update(table), preview_rows(table)


def select_columns_by_prefix_handler(table, prefix, current_selection):
    if table is None:
        return gr.update(), "Crack a table first."
    if not prefix or not prefix.strip():
        return gr.update(), "Enter a column prefix."

    try:
        hits = find_columns_by_prefix(table, prefix.strip())
    except FhirFlattenerError as exc:
        return gr.update(value=current_selection or []), str(exc)

    return gr.update(value=hits), f"Selected {len(hits)} column(s): {', '.join(str(h) for h in hits)}"


def melt_handler(table, columns, brackets_text, separator, id_column_name, keep_all_columns):
    """Melt the selected columns; returns (table, status, preview rows)."""
    if table is None:
        return None, "Crack a table first.", None
    if isinstance(columns, str):
        columns = [columns]
    if not columns:
        return table, "Select at least one column to melt.", preview_rows(table)

    brackets = parse_brackets_text(brackets_text)
    if brackets is None:
        return table, "Melting needs the brackets that were used for cracking.", preview_rows(table)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            result = melt(
                table,
                columns,
                brackets=brackets,
                separator=separator or DEFAULT_SEPARATOR,
                id_column_name=(id_column_name or DEFAULT_ID_COLUMN).strip(),
                keep_all_columns=bool(keep_all_columns),
            )
        except FhirFlattenerError as exc:
            return table, str(exc), preview_rows(table)

    if not len(result):
        return table, warning_messages(caught) or "Melt produced no rows.", preview_rows(table)

    summary = f"Melted {len(table)} row(s) into {len(result)} row(s)."
    return result, summary, preview_rows(result)


def remove_indices_handler(table, brackets_text, columns):
    """Strip index markers; returns (table, status, preview rows)."""
    if table is None:
        return None, "Crack a table first.", None

    brackets = parse_brackets_text(brackets_text)
    if brackets is None:
        return table, "Enter the brackets that were used for cracking.", preview_rows(table)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            result = remove_indices(table, brackets=brackets, columns=columns or None)
        except FhirFlattenerError as exc:
            return table, str(exc), preview_rows(table)

    status = warning_messages(caught) or "Indices removed."
    return result, status, preview_rows(result)
