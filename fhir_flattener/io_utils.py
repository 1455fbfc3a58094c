from __future__ import annotations

from typing import List

from lxml import etree

from .errors import InputShapeError


def _xml_parser() -> etree.XMLParser:
    return etree.XMLParser(remove_blank_text=True, resolve_entities=False, no_network=True)


def parse_bundle(content):
    """Parse XML text or bytes into an lxml element."""
    if isinstance(content, str):
        # lxml refuses str input that carries an encoding declaration
        content = content.encode('utf-8')
    if not isinstance(content, (bytes, bytearray)):
        raise InputShapeError(f"Expected XML text, got {type(content).__name__}.")
    try:
        return etree.fromstring(bytes(content), parser=_xml_parser())
    except etree.XMLSyntaxError as exc:
        raise InputShapeError(f"Bundle is not well-formed XML: {exc}") from exc


def read_bundle_content(file_obj):
    """Read one XML bundle from an uploaded file or file path."""
    if file_obj is None:
        raise InputShapeError("No file uploaded.")

    if hasattr(file_obj, 'read'):
        if hasattr(file_obj, 'seek'):
            file_obj.seek(0)
        return parse_bundle(file_obj.read())

    path = file_obj.name if hasattr(file_obj, 'name') else file_obj
    with open(path, 'rb') as f:
        return parse_bundle(f.read())


def read_bundles(file_objs) -> List:
    if file_objs is None:
        raise InputShapeError("No file uploaded.")
    if not isinstance(file_objs, (list, tuple)):
        file_objs = [file_objs]
    return [read_bundle_content(f) for f in file_objs]
