"""Index trails and their bracket-string form.

While cracking, values travel as :class:`IndexedValue` objects carrying the
trail of sibling positions they were found at. Only when a cell is written
into a table are they rendered as ``[1.2]value`` strings; the reshaping
functions parse that form back with :func:`parse_cell`.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, List, NamedTuple, Optional, Pattern, Sequence, Tuple


class IndexedValue(NamedTuple):
    trail: Tuple[int, ...]
    value: str


def format_trail(trail: Sequence[int], brackets: Tuple[str, str]) -> str:
    if not trail:
        return ''
    return f"{brackets[0]}{'.'.join(str(i) for i in trail)}{brackets[1]}"


def render_cell(
    values: Sequence[IndexedValue],
    separator: str,
    brackets: Optional[Tuple[str, str]],
) -> Optional[str]:
    """Join extracted values into one cell string, None when there are none."""
    if not values:
        return None
    if brackets is None or all(not v.trail for v in values):
        return separator.join(v.value for v in values)
    return separator.join(format_trail(v.trail, brackets) + v.value for v in values)


@lru_cache(maxsize=32)
def index_pattern(brackets: Tuple[str, str], capture: bool = False) -> Pattern:
    """Regex matching one index marker, e.g. ``\\[(\\d+(?:\\.\\d+)*)\\]``."""
    opening, closing = (re.escape(b) for b in brackets)
    body = r'\d+(?:\.\d+)*'
    if capture:
        body = f'({body})'
    return re.compile(f'{opening}{body}{closing}')


def parse_cell(cell, brackets: Tuple[str, str], separator: str) -> List[IndexedValue]:
    """Split an indexed cell into (trail, fragment) pairs.

    The separator that joined a fragment to the next marker is removed from the
    fragment. Text in front of the first marker has no trail and is skipped.
    """
    if not isinstance(cell, str) or not cell:
        return []
    pattern = index_pattern(tuple(brackets), capture=True)
    matches = list(pattern.finditer(cell))
    out: List[IndexedValue] = []
    for pos, m in enumerate(matches):
        end = matches[pos + 1].start() if pos + 1 < len(matches) else len(cell)
        fragment = cell[m.end():end]
        if pos + 1 < len(matches) and separator and fragment.endswith(separator):
            fragment = fragment[: -len(separator)]
        trail = tuple(int(i) for i in m.group(1).split('.'))
        out.append(IndexedValue(trail, fragment))
    return out


def has_index(cells: Iterable, brackets: Tuple[str, str]) -> bool:
    pattern = index_pattern(tuple(brackets))
    return any(isinstance(c, str) and pattern.search(c) for c in cells)


def strip_indices(cell, brackets: Tuple[str, str]):
    if not isinstance(cell, str):
        return cell
    return index_pattern(tuple(brackets)).sub('', cell)
