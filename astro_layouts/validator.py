import re
from typing import List

from pydantic import BaseModel, Field

from astro_layouts.markers import MARKUP, content_slot_regions, find_regions, region_by_name

EDITABLE_REGIONS = ("head", "pre-content", "post-content")

_DOCTYPE = re.compile(r"<!DOCTYPE html>", re.IGNORECASE)
_ROOT_TAGS = (
    ("html", re.compile(r"<html[\s>]", re.IGNORECASE)),
    ("head", re.compile(r"<head[\s>]", re.IGNORECASE)),
    ("body", re.compile(r"<body[\s>]", re.IGNORECASE)),
)
_SLOT = re.compile(r"<slot(?:\s[^>]*)?/>")
_STRUCTURAL_TAG = re.compile(r"</?(?:html|head|body)\b[^>]*>?", re.IGNORECASE)


class ValidationResult(BaseModel):
    ok: bool = Field(..., description="True when no check failed")
    errors: List[str] = Field(default_factory=list, description="Human-readable failures, in check order")


def validate_astro_layout(content: str) -> ValidationResult:
    """
    Check a layout file against the structural rules the editor relies on.

    Every check runs; failures are collected rather than raised, so the
    caller can show them all at once before refusing to save.

    Args:
        content: Layout file text, compiled or hand-edited

    Returns:
        ValidationResult with `ok` and the list of error messages
    """
    errors: List[str] = []

    if not _DOCTYPE.search(content):
        errors.append("Missing <!DOCTYPE html>.")
    for tag, pattern in _ROOT_TAGS:
        if not pattern.search(content):
            errors.append(f"Missing <{tag}>.")

    slot_count = len(_SLOT.findall(content))
    if slot_count != 1:
        errors.append(f"Layout must contain exactly one <slot /> (found {slot_count}).")

    regions = find_regions(content)

    # Structural tags pasted into an editable region would break the outer document
    for name in EDITABLE_REGIONS:
        region = region_by_name(regions, name)
        if region is None or region.style != MARKUP:
            continue
        match = _STRUCTURAL_TAG.search(region.inner)
        if match:
            errors.append(f'Forbidden tag {match.group(0)} detected inside editable region "{name}".')
            break

    if slot_count == 1:
        slot_blocks = [region for region in content_slot_regions(regions) if region.style == MARKUP]
        if not any(_SLOT.search(region.inner) for region in slot_blocks):
            errors.append("The <slot /> must be inside the editor:content-slot markers.")

    return ValidationResult(ok=not errors, errors=errors)
