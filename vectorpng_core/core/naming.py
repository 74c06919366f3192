from __future__ import annotations

from typing import Optional


DEFAULT_OUTPUT_NAME = "converted.png"
SVG_CONTENT_TYPE = "image/svg+xml"


def output_filename(source_name: Optional[str]) -> str:
    """PNG name for a converted file: ``logo.svg`` becomes ``logo.png``."""
    if not source_name:
        return DEFAULT_OUTPUT_NAME
    if source_name.lower().endswith(".svg"):
        stem = source_name[:-4]
    else:
        stem = source_name
    if stem == "" or stem.endswith(("/", "\\")):
        return stem + DEFAULT_OUTPUT_NAME
    return f"{stem}.png"


def is_svg_source(filename: Optional[str], content_type: Optional[str] = None) -> bool:
    if content_type is not None and content_type.split(";", 1)[0].strip().lower() == SVG_CONTENT_TYPE:
        return True
    return bool(filename) and filename.lower().endswith(".svg")
