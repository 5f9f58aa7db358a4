"""
Editor marker scanning.

Layout files carry region markers in two comment styles:

    /* editor:region name="imports" */ ... /* /editor:region */        (frontmatter)
    <!-- editor:region name="head" --> ... <!-- /editor:region -->    (markup)
    <!-- editor:content-slot name="Content" single --> ... <!-- /editor:content-slot -->

The scanner walks the text once, left to right, jumping from comment to
comment. Only comment delimiters are searched for across the document;
marker grammar is matched against a single comment at a time. When the
text has frontmatter, `/*` comments count only inside it and `<!--`
comments only after it.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

SCRIPT = "script"
MARKUP = "markup"

REGION = "region"
CONTENT_SLOT = "content-slot"

_COMMENT_DELIMITERS = {
    "/*": ("*/", SCRIPT),
    "<!--": ("-->", MARKUP),
}
_COMMENT_START = re.compile(r"/\*|<!--")
_FRONTMATTER_FENCE = re.compile(r"^---[ \t]*$", re.MULTILINE)
_MARKER_HEAD = re.compile(r"^\s*(/?)editor:(region|content-slot)\b(.*)$", re.DOTALL)
_MARKER_ATTR = re.compile(r'([A-Za-z_][\w-]*)(?:\s*=\s*"([^"]*)")?')


@dataclass
class MarkerToken:
    """One editor marker comment."""

    style: str
    kind: str
    closing: bool
    start: int
    end: int
    name: Optional[str] = None
    flags: Tuple[str, ...] = ()
    payload: str = ""


@dataclass
class Region:
    """A paired open/close marker and the text between them."""

    name: Optional[str]
    style: str
    kind: str
    start: int
    end: int
    inner_start: int
    inner_end: int
    inner: str
    payload: str = ""
    flags: Tuple[str, ...] = ()


def _parse_marker(body: str) -> Optional[Tuple[bool, str, Dict[str, str], Tuple[str, ...], str]]:
    first_line, _, payload = body.partition("\n")
    match = _MARKER_HEAD.match(first_line)
    if not match:
        return None
    closing, kind, rest = match.group(1) == "/", match.group(2), match.group(3)
    attrs: Dict[str, str] = {}
    flags: List[str] = []
    for attr in _MARKER_ATTR.finditer(rest):
        key, value = attr.group(1), attr.group(2)
        if value is None:
            flags.append(key)
        else:
            attrs[key] = value
    return closing, kind, attrs, tuple(flags), payload


def frontmatter_bounds(text: str) -> Optional[Tuple[int, int]]:
    """(start, end) of the frontmatter between the leading `---` fences, or None."""
    fences = _FRONTMATTER_FENCE.finditer(text)
    first = next(fences, None)
    second = next(fences, None)
    if first is None or second is None or text[: first.start()].strip():
        return None
    return first.end(), second.start()


def _in_own_section(style: str, offset: int, bounds: Optional[Tuple[int, int]]) -> bool:
    # script markers live in the frontmatter, markup markers after it
    if bounds is None:
        return True
    start, end = bounds
    if style == SCRIPT:
        return start <= offset < end
    return offset >= end


def scan_markers(text: str) -> List[MarkerToken]:
    """
    Return every editor marker comment in document order.

    A comment that is not a marker only advances the scan past its opener,
    so an opener inside a string literal cannot swallow a later marker.
    """
    tokens: List[MarkerToken] = []
    bounds = frontmatter_bounds(text)
    pos = 0
    while True:
        match = _COMMENT_START.search(text, pos)
        if not match:
            break
        opener = match.group(0)
        closer, style = _COMMENT_DELIMITERS[opener]
        body_start = match.end()
        if not _in_own_section(style, match.start(), bounds):
            pos = body_start
            continue
        body_end = text.find(closer, body_start)
        if body_end == -1:
            # unterminated comment, keep looking after the opener
            pos = body_start
            continue
        end = body_end + len(closer)
        parsed = _parse_marker(text[body_start:body_end])
        if parsed is None:
            pos = body_start
            continue
        closing, kind, attrs, flags, payload = parsed
        tokens.append(
            MarkerToken(
                style=style,
                kind=kind,
                closing=closing,
                start=match.start(),
                end=end,
                name=attrs.get("name"),
                flags=flags,
                payload=payload,
            )
        )
        pos = end
    return tokens


def find_regions(text: str, tokens: Optional[List[MarkerToken]] = None) -> List[Region]:
    """
    Pair open markers with the next close marker of the same style and kind.

    An open marker with no matching close is dropped, and so is a stray
    close marker.
    """
    if tokens is None:
        tokens = scan_markers(text)
    regions: List[Region] = []
    pending: Optional[MarkerToken] = None
    for token in tokens:
        if not token.closing:
            pending = token
            continue
        if pending is None or pending.style != token.style or pending.kind != token.kind:
            continue
        regions.append(
            Region(
                name=pending.name,
                style=pending.style,
                kind=pending.kind,
                start=pending.start,
                end=token.end,
                inner_start=pending.end,
                inner_end=token.start,
                inner=text[pending.end:token.start],
                payload=pending.payload,
                flags=pending.flags,
            )
        )
        pending = None
    return regions


def region_by_name(regions: List[Region], name: str, kind: str = REGION) -> Optional[Region]:
    """First region of `kind` called `name`, or None."""
    for region in regions:
        if region.kind == kind and region.name == name:
            return region
    return None


def content_slot_regions(regions: List[Region]) -> List[Region]:
    return [region for region in regions if region.kind == CONTENT_SLOT]
