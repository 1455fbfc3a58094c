from __future__ import annotations

from typing import List, Optional, Tuple

from lxml import etree

from .constants import VALUE_ATTRIBUTE
from .indices import IndexedValue
from .paths import ExtractionPath, parse_path


def local_name(element) -> Optional[str]:
    """Tag name without namespace; None for comments and processing instructions."""
    if not isinstance(element.tag, str):
        return None
    return etree.QName(element).localname


def child_elements(element, name: Optional[str] = None) -> List:
    return [
        child for child in element
        if isinstance(child.tag, str) and (name is None or local_name(child) == name)
    ]


def node_value(element) -> Optional[str]:
    """Value of a leaf element: FHIR ``value`` attribute, else its stripped text."""
    value = element.get(VALUE_ATTRIBUTE)
    if value is not None:
        return value
    text = (element.text or '').strip()
    return text or None


def extract_values(resource, path) -> List[IndexedValue]:
    """Retrieve all values at ``path`` below ``resource`` in document order.

    A step at which some node has two or more matching children is a
    repeating step; for those steps each value records the 1-based position
    among its siblings in its trail. Steps that never repeat add nothing, so
    a path that is unambiguous at every level yields empty trails.
    """
    path: ExtractionPath = parse_path(path)
    contexts: List[Tuple[Tuple[int, ...], object]] = [((), resource)]

    for step in path.steps:
        matched = [(trail, child_elements(node, step)) for trail, node in contexts]
        repeating = any(len(children) > 1 for _, children in matched)
        contexts = []
        for trail, children in matched:
            for pos, child in enumerate(children, start=1):
                contexts.append((trail + (pos,) if repeating else trail, child))
        if not contexts:
            return []

    results: List[IndexedValue] = []
    for trail, node in contexts:
        if path.attribute is not None:
            value = node.get(path.attribute)
        else:
            value = node_value(node)
        if value is not None:
            results.append(IndexedValue(trail, value))
    return results
