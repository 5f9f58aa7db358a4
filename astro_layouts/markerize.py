"""
Add editor markers to a legacy Astro layout.

Layouts written by hand have no region markers, so the parser rejects them.
`markerize_astro` wraps the existing frontmatter imports, props, head content,
slot and the body content around it in markers without rewriting any of it,
and reports what it added. Regions that already carry markers are left
untouched, so running it twice changes nothing the second time.
"""

import logging
import re
import textwrap
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from astro_layouts.compiler import render_props_json
from astro_layouts.markers import CONTENT_SLOT, find_regions, scan_markers
from astro_layouts.parser import parse_props_from_destructure

logger = logging.getLogger("astro_layouts.markerize")

DEFAULT_INDENT = "    "

_FENCE = re.compile(r"^---[ \t]*$", re.MULTILINE)
_IMPORT_LINE = re.compile(r"""^\s*import\s+.*from\s+['"][^'"]+['"]\s*;?\s*$""")
_DESTRUCTURE = re.compile(r"const\s*\{[^}]*\}\s*=\s*Astro\.props\s*;")
_HEAD = re.compile(r"<head(\s[^>]*)?>(.*?)</head>", re.DOTALL)
_BODY = re.compile(r"<body(\s[^>]*)?>(.*?)</body>", re.DOTALL)
_SLOT = re.compile(r"<slot(?:\s[^>]*)?/>")
_FULL_DOCUMENT = (
    re.compile(r"<!DOCTYPE html>", re.IGNORECASE),
    re.compile(r"<html[\s>]", re.IGNORECASE),
    re.compile(r"<head[\s>]", re.IGNORECASE),
    re.compile(r"<body[\s>]", re.IGNORECASE),
)


class MarkersAdded(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    imports: bool = False
    props: bool = False
    head: bool = False
    content_slot: bool = Field(default=False, alias="contentSlot")
    pre_content: bool = Field(default=False, alias="preContent")
    post_content: bool = Field(default=False, alias="postContent")

    def any_added(self) -> bool:
        return any(self.model_dump().values())


class MarkerizeReport(BaseModel):
    changed: bool = False
    added: MarkersAdded = Field(default_factory=MarkersAdded)
    warnings: List[str] = Field(default_factory=list)


class MarkerizeResult(BaseModel):
    content: str
    report: MarkerizeReport


def _has_marker(text: str, name: str) -> bool:
    return any(token.name == name and not token.closing for token in scan_markers(text))


def _line_indent(text: str, index: int) -> str:
    line_start = text.rfind("\n", 0, index) + 1
    line = text[line_start:index]
    return line[: len(line) - len(line.lstrip(" \t"))]


def _first_indent(block: str) -> str:
    for line in block.split("\n"):
        if line.strip():
            return line[: len(line) - len(line.lstrip(" \t"))]
    return ""


def _reindent(block: str, indent: str) -> str:
    """Dedent, drop surrounding blank lines and indent every line."""
    body = textwrap.dedent(block).strip("\n").rstrip()
    lines = [line.rstrip() for line in body.split("\n")]
    while lines and not lines[0].strip():
        lines.pop(0)
    return "\n".join(f"{indent}{line}" if line else "" for line in lines)


def _markup_region(name: str, block: str, indent: str) -> str:
    inner = _reindent(block, indent)
    opening = f'{indent}<!-- editor:region name="{name}" -->'
    closing = f"{indent}<!-- /editor:region -->"
    if not inner:
        return f"{opening}\n{closing}"
    return f"{opening}\n{inner}\n{closing}"


# ---------------------------------------------------------------------------
# Frontmatter
# ---------------------------------------------------------------------------


def _split_frontmatter(content: str) -> Optional[Tuple[str, str, str, str, str]]:
    """(before, opening fence, inner, closing fence, after), or None."""
    fences = list(_FENCE.finditer(content))
    if len(fences) < 2:
        return None
    first, second = fences[0], fences[1]
    return (
        content[: first.start()],
        first.group(0),
        content[first.end():second.start()],
        second.group(0),
        content[second.end():],
    )


def _wrap_imports(inner: str) -> Optional[str]:
    lines = inner.strip("\n").split("\n")
    import_lines = [index for index, line in enumerate(lines) if _IMPORT_LINE.match(line)]
    if not import_lines:
        return None
    first, last = import_lines[0], import_lines[-1]
    wrapped = (
        lines[:first]
        + ['/* editor:region name="imports" */']
        + lines[first:last + 1]
        + ["/* /editor:region */"]
        + lines[last + 1:]
    )
    return "\n" + "\n".join(wrapped) + "\n"


def _props_block(props_json: str) -> str:
    return f'/* editor:region name="props"\n{props_json}\n*/\n/* /editor:region */'


def _insert_props(inner: str, warnings: List[str]) -> str:
    destructure = _DESTRUCTURE.search(inner)
    if destructure is None:
        warnings.append("No Astro.props destructuring found; inserting empty props region.")
        return inner.rstrip("\n") + "\n" + _props_block("{}") + "\n"

    props = parse_props_from_destructure(inner)
    props_json = render_props_json(props)
    insert_at = destructure.end()
    return inner[:insert_at] + "\n" + _props_block(props_json) + inner[insert_at:]


# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------


def _wrap_head(markup: str, added: MarkersAdded) -> str:
    match = _HEAD.search(markup)
    if match is None:
        return markup
    attrs, inner = match.group(1) or "", match.group(2)
    indent = _first_indent(inner) or DEFAULT_INDENT
    closing_indent = _line_indent(markup, match.start())
    replacement = (
        f"<head{attrs}>\n"
        f"{_markup_region('head', inner, indent)}\n"
        f"{closing_indent}</head>"
    )
    added.head = True
    return markup[: match.start()] + replacement + markup[match.end():]


def _wrap_slot(markup: str, added: MarkersAdded, warnings: List[str]) -> str:
    match = _SLOT.search(markup)
    if match is None:
        warnings.append("No <slot /> found to wrap with editor:content-slot.")
        return markup
    indent = _line_indent(markup, match.start())
    line_start = markup.rfind("\n", 0, match.start()) + 1
    alone_on_line = not markup[line_start:match.start()].strip()
    start = line_start if alone_on_line else match.start()
    first_indent = indent if alone_on_line else ""
    wrapped = (
        f'{first_indent}<!-- editor:content-slot name="Content" single -->\n'
        f"{indent}{match.group(0)}\n"
        f"{indent}<!-- /editor:content-slot -->"
    )
    added.content_slot = True
    return markup[:start] + wrapped + markup[match.end():]


def _wrap_body_regions(markup: str, added: MarkersAdded, warnings: List[str]) -> str:
    body = _BODY.search(markup)
    if body is None:
        warnings.append("No <body> element found.")
        return markup
    attrs, inner = body.group(1) or "", body.group(2)

    slot_blocks = [region for region in find_regions(inner) if region.kind == CONTENT_SLOT]
    if not slot_blocks:
        warnings.append("Could not locate the editor:content-slot block inside <body>.")
        return markup
    slot_block = slot_blocks[0]

    indent = _line_indent(inner, slot_block.start) or DEFAULT_INDENT
    line_start = inner.rfind("\n", 0, slot_block.start) + 1
    split_at = line_start if not inner[line_start:slot_block.start].strip() else slot_block.start

    pre, block, post = inner[:split_at], inner[split_at:slot_block.end], inner[slot_block.end:]

    if not _has_marker(pre, "pre-content"):
        pre = "\n" + _markup_region("pre-content", pre, indent) + "\n\n"
        added.pre_content = True
    if not _has_marker(post, "post-content"):
        tail = post[post.rfind("\n") + 1:]
        closing_indent = tail if not tail.strip() else ""
        post = "\n\n" + _markup_region("post-content", post, indent) + "\n" + closing_indent
        added.post_content = True

    replacement = f"<body{attrs}>{pre}{block}{post}</body>"
    return markup[: body.start()] + replacement + markup[body.end():]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def markerize_astro(content: str) -> MarkerizeResult:
    """
    Add any missing editor markers to `content`.

    Args:
        content: Text of an Astro layout, with or without markers

    Returns:
        MarkerizeResult with the new text and a report of added regions and warnings
    """
    warnings: List[str] = []
    added = MarkersAdded()

    if not all(pattern.search(content) for pattern in _FULL_DOCUMENT):
        warnings.append(
            "File does not appear to be a full HTML document with <!DOCTYPE>, <html>, <head>, and <body>."
        )

    parts = _split_frontmatter(content)
    if parts is None:
        warnings.append("No frontmatter found; imports and props regions were not added.")
        prefix, markup = "", content
    else:
        before, opening, inner, closing, markup = parts
        if not _has_marker(inner, "imports"):
            wrapped = _wrap_imports(inner)
            if wrapped is not None:
                inner = wrapped
                added.imports = True
        if not _has_marker(inner, "props"):
            inner = _insert_props(inner, warnings)
            added.props = True
        prefix = f"{before}{opening}{inner}{closing}"

    if not _has_marker(markup, "head"):
        markup = _wrap_head(markup, added)

    if not any(token.kind == CONTENT_SLOT for token in scan_markers(markup)):
        markup = _wrap_slot(markup, added, warnings)

    markup = _wrap_body_regions(markup, added, warnings)

    for warning in warnings:
        logger.debug(f"markerize: {warning}")

    return MarkerizeResult(
        content=prefix + markup,
        report=MarkerizeReport(changed=added.any_added(), added=added, warnings=warnings),
    )
