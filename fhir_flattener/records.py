from __future__ import annotations

from typing import Any, List

from lxml import etree

from .accessors import child_elements, local_name
from .errors import InputShapeError
from .io_utils import parse_bundle


def as_bundle(bundle: Any):
    """Return the root element of a bundle given as element, tree or XML text."""
    if isinstance(bundle, etree._ElementTree):
        return bundle.getroot()
    if isinstance(bundle, etree._Element):
        return bundle
    if isinstance(bundle, (str, bytes, bytearray)):
        return parse_bundle(bundle)
    raise InputShapeError(
        f"A bundle must be an lxml element, element tree or XML text, got {type(bundle).__name__}."
    )


def as_bundle_list(bundles: Any) -> List:
    if isinstance(bundles, (str, bytes, bytearray, etree._Element, etree._ElementTree)):
        # a single bundle
        return [as_bundle(bundles)]
    try:
        items = list(bundles)
    except TypeError:
        raise InputShapeError(
            f"bundles must be a list of bundles, got {type(bundles).__name__}."
        ) from None
    return [as_bundle(b) for b in items]


def resources_in_bundle(bundle, resource_type: str) -> List:
    """Resources of ``resource_type`` in one bundle, in document order.

    Resources sit at ``Bundle/entry/resource/<Type>``. A bundle root that is
    itself a resource of the wanted type counts as one resource.
    """
    root = as_bundle(bundle)
    if local_name(root) == resource_type:
        return [root]
    found = []
    for entry in child_elements(root, 'entry'):
        for holder in child_elements(entry, 'resource'):
            found.extend(child_elements(holder, resource_type))
    return found


def select_resources(bundles: Any, resource_type: str) -> List:
    """All resources of ``resource_type`` across bundles, bundles in input order."""
    return [
        resource
        for bundle in as_bundle_list(bundles)
        for resource in resources_in_bundle(bundle, resource_type)
    ]


def resource_types_in_bundles(bundles: Any) -> List[str]:
    """Resource types present in the bundles, in first-seen order."""
    seen = {}
    for bundle in as_bundle_list(bundles):
        for entry in child_elements(bundle, 'entry'):
            for holder in child_elements(entry, 'resource'):
                for resource in child_elements(holder):
                    seen.setdefault(local_name(resource), None)
    return list(seen)
