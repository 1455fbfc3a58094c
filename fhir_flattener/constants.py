from __future__ import annotations

# -------- Style defaults --------
DEFAULT_SEPARATOR = ":::"
DEFAULT_BRACKETS = ("[", "]")
DEFAULT_DROP_EMPTY_COLUMNS = False

# -------- Naming --------
PATH_SEP = "/"
COLUMN_NAME_SEP = "."
DEFAULT_ID_COLUMN = "resource_identifier"

# Attribute holding the value of a FHIR primitive, e.g. <given value="Anna"/>
VALUE_ATTRIBUTE = "value"

# -------- UI --------
PREVIEW_ROWS = 5
