"""
Astro layout text -> Blueprint.

`parse_astro_to_blueprint` is tolerant: anything that carries exactly one
well-formed content slot block is treated as a layout, and every other
region degrades to empty when missing or unreadable. Text without the slot
block is not a layout and yields None.
"""

import json
import logging
import re
import textwrap
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from astro_layouts.blueprint import (
    BodyNode,
    ComponentNode,
    ContentSlot,
    HeadNode,
    ImportSpec,
    LayoutBlueprint,
    MetaNode,
    PropSpec,
    RawNode,
    TitleNode,
    is_identifier,
)
from astro_layouts.markers import (
    MARKUP,
    SCRIPT,
    Region,
    content_slot_regions,
    find_regions,
    region_by_name,
)

logger = logging.getLogger("astro_layouts.parser")

UNKNOWN_LAYOUT_NAME = "Unknown"
DEFAULT_SLOT_NAME = "Content"

_SLOT_TAG = re.compile(r"^\s*<slot(?:\s[^>]*)?/>\s*$")
_IMPORT_LINE = re.compile(r"""^import\s+([A-Za-z_$][\w$]*)\s+from\s+["']([^"']+)["'];?$""", re.ASCII)
_FRONTMATTER_FENCE = re.compile(r"^---[ \t]*$", re.MULTILINE)
_DESTRUCTURE = re.compile(r"const\s*\{([^}]*)\}\s*=\s*Astro\.props\s*;")
_DESTRUCTURE_ENTRY = re.compile(r"^([A-Za-z_$][\w$]*)\s*(?:=\s*(.+))?$", re.DOTALL | re.ASCII)
_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?$")
_HTML_OPEN = re.compile(r"<html\b([^>]*)>")
_TAG_ATTR = re.compile(r"""([^\s=]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'))?""")

_COMPONENT_LINE = re.compile(r"^<([A-Z][\w$]*)(\s.*)?/>$", re.ASCII)
_COMPONENT_PROP = re.compile(r"\s+([A-Za-z_$][\w$-]*)=\{")
_META_LINE = re.compile(r"^<meta((?:\s+[\w:-]+=\"[^\"]*\")+)\s*/>$")
_TITLE_FROM_PROP = re.compile(r"^<title>\{Astro\.props\.([A-Za-z_$][\w$]*)\}</title>$")
_TITLE_TEXT = re.compile(r"^<title>([^<{]*)</title>$")


def unescape_backticks(value: str) -> str:
    return value.replace("\\`", "`")


# ---------------------------------------------------------------------------
# Content slot gate
# ---------------------------------------------------------------------------


def _well_formed_slots(regions: List[Region]) -> List[Region]:
    return [
        region
        for region in content_slot_regions(regions)
        if region.style == MARKUP and _SLOT_TAG.match(region.inner)
    ]


def _parse_content_slot(region: Region) -> ContentSlot:
    if region.name is None:
        return ContentSlot(name=DEFAULT_SLOT_NAME, single=True)
    return ContentSlot(name=region.name, single=True if "single" in region.flags else None)


# ---------------------------------------------------------------------------
# Frontmatter: imports and props
# ---------------------------------------------------------------------------


def parse_imports(block: Optional[str]) -> List[ImportSpec]:
    if not block:
        return []
    imports = []
    for line in block.split("\n"):
        match = _IMPORT_LINE.match(line.strip())
        if match:
            imports.append(ImportSpec(as_=match.group(1), from_=match.group(2)))
    return imports


def _props_json_text(regions: List[Region]) -> Optional[str]:
    region = region_by_name(regions, "props")
    if region is None or region.style != SCRIPT:
        return None
    # Current format keeps the JSON inside the opening comment; older files
    # put it between the two markers.
    text = region.payload.strip() or region.inner.strip()
    return text or None


def parse_props_json(text: Optional[str]) -> Dict[str, PropSpec]:
    """Props from the JSON marker. Unreadable JSON is treated as absent."""
    if not text:
        return {}
    try:
        data = json.loads(unescape_backticks(text))
    except json.JSONDecodeError as exc:
        logger.debug(f"Ignoring unreadable props marker: {exc}")
        return {}
    if not isinstance(data, dict):
        logger.debug("Ignoring props marker that is not a JSON object")
        return {}
    props: Dict[str, PropSpec] = {}
    for name, spec in data.items():
        if not is_identifier(name):
            logger.debug(f"Skipping prop '{name}' from props marker: not an identifier")
            continue
        try:
            props[name] = PropSpec.model_validate(spec)
        except ValidationError as exc:
            logger.debug(f"Skipping prop '{name}' from props marker: {exc.error_count()} error(s)")
    return props


def frontmatter_text(content: str) -> str:
    """Text between the first two `---` fences, or the whole text without them."""
    fences = list(_FRONTMATTER_FENCE.finditer(content))
    if len(fences) < 2:
        return content
    return content[fences[0].end():fences[1].start()]


def split_top_level(text: str, separator: str = ",") -> List[str]:
    """Split on `separator` outside of quoted strings."""
    parts: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    escaped = False
    for char in text:
        if quote:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in "\"'`":
            quote = char
            current.append(char)
        elif char == separator:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]


def infer_prop_spec(raw_default: str) -> PropSpec:
    """PropSpec from the literal type of a destructuring default."""
    value = raw_default.strip().rstrip(",").strip()
    if not value:
        return PropSpec(type="string", default=None)
    if len(value) >= 2 and value[0] in "\"'`" and value[-1] == value[0]:
        if value[0] == '"':
            try:
                decoded = json.loads(value)
            except json.JSONDecodeError:
                decoded = value[1:-1]
            return PropSpec(type="string", default=decoded)
        return PropSpec(type="string", default=value[1:-1])
    if value.lower() in ("true", "false"):
        return PropSpec(type="boolean", default=value.lower() == "true")
    if _NUMBER.match(value):
        number = float(value) if "." in value else int(value)
        return PropSpec(type="number", default=number)
    # null or an expression the editor cannot represent
    return PropSpec(type="string", default=None)


def parse_props_from_destructure(content: str) -> Dict[str, PropSpec]:
    match = _DESTRUCTURE.search(frontmatter_text(content))
    if not match:
        return {}
    props: Dict[str, PropSpec] = {}
    for part in split_top_level(match.group(1)):
        entry = _DESTRUCTURE_ENTRY.match(part)
        if not entry:
            continue
        props[entry.group(1)] = infer_prop_spec(entry.group(2) or "")
    return props


def merge_props(primary: Dict[str, PropSpec], fallback: Dict[str, PropSpec]) -> Dict[str, PropSpec]:
    """`primary` wins on conflicts; keys only in `fallback` are appended."""
    merged = dict(primary)
    for name, spec in fallback.items():
        merged.setdefault(name, spec)
    return merged


# ---------------------------------------------------------------------------
# Markup: html attributes and region nodes
# ---------------------------------------------------------------------------


def parse_tag_attrs(raw: str) -> Dict[str, str]:
    attrs: Dict[str, str] = {}
    for match in _TAG_ATTR.finditer(raw):
        key = match.group(1)
        value = match.group(2) if match.group(2) is not None else match.group(3)
        attrs[key] = unescape_backticks(value) if value is not None else ""
    return attrs


def parse_html_attrs(content: str) -> Dict[str, str]:
    match = _HTML_OPEN.search(content)
    if not match:
        return {}
    return parse_tag_attrs(match.group(1).rstrip("/"))


def _skip_space(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _parse_component_props(raw: str) -> Optional[Dict[str, Any]]:
    """Decode ` key={json} key2={json}`; None when any value is not JSON."""
    props: Dict[str, Any] = {}
    decoder = json.JSONDecoder()
    pos = 0
    while pos < len(raw):
        match = _COMPONENT_PROP.match(raw, pos)
        if not match:
            return None
        try:
            value, end = decoder.raw_decode(raw, _skip_space(raw, match.end()))
        except json.JSONDecodeError:
            return None
        end = _skip_space(raw, end)
        if end >= len(raw) or raw[end] != "}":
            return None
        props[match.group(1)] = value
        pos = end + 1
    return props


def _component_node(line: str) -> Optional[ComponentNode]:
    match = _COMPONENT_LINE.match(line)
    if not match:
        return None
    props = _parse_component_props((match.group(2) or "").rstrip())
    if props is None:
        return None
    return ComponentNode(name=match.group(1), props=props or None)


def _head_node(line: str) -> Optional[HeadNode]:
    match = _META_LINE.match(line)
    if match:
        return MetaNode(attrs=parse_tag_attrs(match.group(1)))
    match = _TITLE_FROM_PROP.match(line)
    if match:
        return TitleNode(content_from_prop=match.group(1))
    match = _TITLE_TEXT.match(line)
    if match:
        return TitleNode(text=unescape_backticks(match.group(1)))
    return None


def parse_region_nodes(block: str, head: bool = False) -> List[Any]:
    """
    Split a region into nodes.

    Lines that are a single recognised tag become structured nodes; runs of
    anything else are kept together as one raw node.
    """
    if not block.strip():
        return []
    nodes: List[Any] = []
    raw_lines: List[str] = []

    def flush_raw():
        while raw_lines and not raw_lines[-1].strip():
            raw_lines.pop()
        if raw_lines:
            nodes.append(RawNode(html="\n".join(raw_lines)))
        raw_lines.clear()

    for line in textwrap.dedent(block).split("\n"):
        stripped = line.strip()
        node = None
        if stripped and line == stripped:
            node = _head_node(stripped) if head else _component_node(stripped)
        if node is not None:
            flush_raw()
            nodes.append(node)
        elif stripped or raw_lines:
            raw_lines.append(line.rstrip())
    flush_raw()
    return nodes


def _markup_region(regions: List[Region], name: str) -> str:
    region = region_by_name(regions, name)
    if region is None or region.style != MARKUP:
        return ""
    return region.inner


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def parse_astro_to_blueprint(content: str) -> Optional[LayoutBlueprint]:
    """
    Rebuild a blueprint from layout text.

    Returns None when the text has no content slot block, or more than one.
    """
    regions = find_regions(content)
    slots = _well_formed_slots(regions)
    if len(slots) != 1:
        return None

    imports_region = region_by_name(regions, "imports")
    imports = parse_imports(imports_region.inner if imports_region and imports_region.style == SCRIPT else None)

    props = merge_props(
        parse_props_json(_props_json_text(regions)),
        parse_props_from_destructure(content),
    )

    head: List[HeadNode] = parse_region_nodes(_markup_region(regions, "head"), head=True)
    pre_content: List[BodyNode] = parse_region_nodes(_markup_region(regions, "pre-content"))
    post_content: List[BodyNode] = parse_region_nodes(_markup_region(regions, "post-content"))

    return LayoutBlueprint(
        name=UNKNOWN_LAYOUT_NAME,
        html_attrs=parse_html_attrs(content),
        imports=imports,
        props=props,
        head=head,
        pre_content=pre_content,
        content_slot=_parse_content_slot(slots[0]),
        post_content=post_content,
    )
