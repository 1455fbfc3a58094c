from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .constants import COLUMN_NAME_SEP, PATH_SEP
from .errors import PathSyntaxError

_NAME_RE = re.compile(r'[A-Za-z_][A-Za-z0-9_.\-]*\Z')


@dataclass(frozen=True)
class ExtractionPath:
    """A parsed extraction path such as ``name/given`` or ``extension/@url``.

    ``steps`` are the element names walked from the resource root;
    ``attribute`` is the trailing ``@name`` selector, if any.
    """

    steps: Tuple[str, ...]
    attribute: Optional[str] = None

    def __str__(self) -> str:
        parts = list(self.steps)
        if self.attribute is not None:
            parts.append('@' + self.attribute)
        return PATH_SEP.join(parts)

    @property
    def column_name(self) -> str:
        return column_name_from_path(self)


def split_path(path: str) -> List[str]:
    """Split a slash path into its raw steps, dropping a leading './'."""
    if path is None:
        return []
    if not isinstance(path, str):
        path = str(path)
    path = path.strip()
    if path.startswith('./'):
        path = path[2:]
    return path.split(PATH_SEP)


def parse_path(path) -> ExtractionPath:
    """Parse and validate a path string; raise PathSyntaxError on bad syntax."""
    if isinstance(path, ExtractionPath):
        return path
    if not isinstance(path, str) or not path.strip():
        raise PathSyntaxError(f"Extraction path must be a non-empty string, got {path!r}.")

    raw_steps = split_path(path)
    steps: List[str] = []
    attribute = None
    for pos, step in enumerate(raw_steps):
        if step == '':
            raise PathSyntaxError(
                f"Path {path!r} contains an empty step; use single '/' between element names."
            )
        if step.startswith('@'):
            if pos != len(raw_steps) - 1:
                raise PathSyntaxError(
                    f"Path {path!r}: attribute selector {step!r} may only be the last step."
                )
            if not _NAME_RE.match(step[1:]):
                raise PathSyntaxError(f"Path {path!r}: invalid attribute name {step!r}.")
            attribute = step[1:]
            continue
        if not _NAME_RE.match(step):
            raise PathSyntaxError(f"Path {path!r}: invalid element name {step!r}.")
        steps.append(step)

    if not steps:
        raise PathSyntaxError(f"Path {path!r} needs at least one element step.")
    return ExtractionPath(tuple(steps), attribute)


def column_name_from_path(path, keep_at: bool = False) -> str:
    """Auto-generated column name: steps joined with '.', e.g. code.coding.system."""
    path = parse_path(path)
    parts = list(path.steps)
    if path.attribute is not None:
        parts.append(('@' if keep_at else '') + path.attribute)
    return COLUMN_NAME_SEP.join(parts)
