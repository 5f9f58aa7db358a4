"""
Blueprint -> Astro layout text.

The output is deterministic: an equal blueprint always compiles to the same
bytes, so stored layouts diff cleanly. All five regions and the content slot
are emitted even when empty so the parser and validator can always find them.
"""

import json
from typing import Any, Dict, List

from astro_layouts.blueprint import (
    BodyNode,
    ComponentNode,
    HeadNode,
    LayoutBlueprint,
    MetaNode,
    PropSpec,
    TitleNode,
)

PROPS_SOURCE = "Astro.props"
REGION_INDENT = "    "
DEFAULT_HTML_ATTRS = {"lang": "en"}


def escape_backticks(value: str) -> str:
    return value.replace("`", "\\`")


def _js_value(value: Any) -> Any:
    # JSON.stringify writes 3.0 as 3
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {key: _js_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_js_value(item) for item in value]
    return value


def to_json_literal(value: Any) -> str:
    """Compact JSON, as the editor writes it."""
    return json.dumps(_js_value(value), ensure_ascii=False, separators=(",", ":"))


def render_attrs(attrs: Dict[str, str]) -> str:
    return " ".join(f'{key}="{escape_backticks(str(value))}"' for key, value in attrs.items())


def _indent_lines(html: str, indent: str) -> str:
    return "\n".join(f"{indent}{line}" for line in html.split("\n"))


def render_head(head: List[HeadNode], props_var: str = PROPS_SOURCE) -> str:
    lines = []
    for node in head:
        if isinstance(node, MetaNode):
            lines.append(f"{REGION_INDENT}<meta {render_attrs(node.attrs)} />")
        elif isinstance(node, TitleNode):
            if node.content_from_prop:
                lines.append(f"{REGION_INDENT}<title>{{{props_var}.{node.content_from_prop}}}</title>")
            else:
                lines.append(f"{REGION_INDENT}<title>{escape_backticks(node.text or '')}</title>")
        else:
            lines.append(_indent_lines(node.html, REGION_INDENT))
    return "\n".join(lines)


def render_body(nodes: List[BodyNode], indent: str = REGION_INDENT) -> str:
    lines = []
    for node in nodes:
        if isinstance(node, ComponentNode):
            props = ""
            if node.props:
                props = " " + " ".join(f"{key}={{{to_json_literal(value)}}}" for key, value in node.props.items())
            lines.append(f"{indent}<{node.name}{props} />")
        else:
            lines.append(_indent_lines(node.html, indent))
    return "\n".join(lines)


def render_props_line(blueprint: LayoutBlueprint) -> str:
    """`const { a = "x", b = 1 } = Astro.props;` or an empty string without props."""
    prop_init = ", ".join(f"{name} = {to_json_literal(spec.default)}" for name, spec in blueprint.props.items())
    if not prop_init:
        return ""
    return f"const {{ {prop_init} }} = {PROPS_SOURCE};"


def render_props_json(props: Dict[str, PropSpec]) -> str:
    data = {name: spec.model_dump(mode="json") for name, spec in props.items()}
    return escape_backticks(to_json_literal(data))


def compile_astro(blueprint: LayoutBlueprint) -> str:
    html_attrs = blueprint.html_attrs if blueprint.html_attrs is not None else DEFAULT_HTML_ATTRS
    rendered_attrs = render_attrs(html_attrs)
    html_open = f"<html {rendered_attrs}>" if rendered_attrs else "<html>"

    import_block = "\n".join(f'import {spec.as_} from "{spec.from_}";' for spec in blueprint.imports)
    prop_line = render_props_line(blueprint)
    props_json = render_props_json(blueprint.props)

    head = render_head(blueprint.head)
    pre = render_body(blueprint.pre_content)
    post = render_body(blueprint.post_content)

    slot = blueprint.content_slot
    single = " single" if slot.single else ""

    return f"""---
/* editor:region name="imports" */
{import_block}
/* /editor:region */

{prop_line}
/* editor:region name="props"
{props_json}
*/
/* /editor:region */
---

<!DOCTYPE html>
{html_open}
  <head>
    <!-- editor:region name="head" -->
{head}
    <!-- /editor:region -->
  </head>
  <body>
    <!-- editor:region name="pre-content" -->
{pre}
    <!-- /editor:region -->

    <!-- editor:content-slot name="{slot.name}"{single} -->
    <slot />
    <!-- /editor:content-slot -->

    <!-- editor:region name="post-content" -->
{post}
    <!-- /editor:region -->
  </body>
</html>
"""
