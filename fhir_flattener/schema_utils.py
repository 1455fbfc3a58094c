from __future__ import annotations

from typing import Any, Dict, Iterable, List

from .accessors import child_elements, local_name
from .constants import PATH_SEP, VALUE_ATTRIBUTE
from .paths import split_path


def build_tree_from_keys(keys: List[str]) -> Dict[str, Any]:
    """Convert slash paths into a nested dictionary tree.

    Leaf nodes are strings (the full path).
    Branch nodes are dictionaries.
    If a node is both a leaf and a branch (e.g. 'code' and 'code/text'),
    the value for 'code' is stored in the dictionary under '__self__'.
    """
    tree: Dict[str, Any] = {}
    for key in keys:
        parts = split_path(key)
        if not parts:
            continue
        current = tree
        for part in parts[:-1]:
            if part not in current:
                current[part] = {}

            if isinstance(current[part], str):
                current[part] = {'__self__': current[part]}

            current = current[part]

        last_part = parts[-1]
        if last_part in current:
            if isinstance(current[last_part], dict):
                current[last_part]['__self__'] = key
        else:
            current[last_part] = key
    return tree


def extract_leaf_paths(element, parent_key: str = '') -> List[str]:
    """All value-carrying paths below ``element``, in document order, without duplicates.

    An element's ``value`` attribute is addressed by the element path itself
    (``name/given``); other attributes get an ``@`` step (``extension/@url``).
    Childless elements with text are addressed by their element path.
    """
    seen: Dict[str, None] = {}
    _collect_leaf_paths(element, parent_key, seen)
    return list(seen)


def _collect_leaf_paths(element, parent_key: str, seen: Dict[str, None]) -> None:
    for child in child_elements(element):
        current_key = f"{parent_key}{PATH_SEP}{local_name(child)}" if parent_key else local_name(child)
        for attr in child.attrib:
            if not isinstance(attr, str) or attr.startswith('{'):
                # namespaced attributes (xml:lang, xsi:...) are not addressable by name
                continue
            if attr == VALUE_ATTRIBUTE:
                seen.setdefault(current_key, None)
            else:
                seen.setdefault(f"{current_key}{PATH_SEP}@{attr}", None)
        grandchildren = child_elements(child)
        if grandchildren:
            _collect_leaf_paths(child, current_key, seen)
        elif VALUE_ATTRIBUTE not in child.attrib and (child.text or '').strip():
            seen.setdefault(current_key, None)


def discover_leaf_paths(resources: Iterable) -> List[str]:
    """Union of the leaf paths of several resources, in first-seen order."""
    seen: Dict[str, None] = {}
    for resource in resources:
        for key in extract_leaf_paths(resource):
            seen.setdefault(key, None)
    return list(seen)
