from astro_layouts.blueprint import ComponentNode, LayoutBlueprint, MetaNode, PropSpec
from astro_layouts.compiler import compile_astro
from astro_layouts.markers import (
    CONTENT_SLOT,
    MARKUP,
    REGION,
    SCRIPT,
    find_regions,
    frontmatter_bounds,
    region_by_name,
    scan_markers,
)

from tests.golden.fixtures import GOLDEN_LAYOUT


class TestScanMarkers:

    def test_golden_tokens_in_order(self):
        tokens = scan_markers(GOLDEN_LAYOUT)
        opened = [(token.style, token.name) for token in tokens if not token.closing]

        assert opened == [
            (SCRIPT, "imports"),
            (SCRIPT, "props"),
            (MARKUP, "head"),
            (MARKUP, "pre-content"),
            (MARKUP, "default"),
            (MARKUP, "post-content"),
        ]
        assert len(tokens) == 12

    def test_flags_and_payload(self):
        text = '<!-- editor:content-slot name="Content" single -->/* editor:region name="props"\n{"a":1}\n*/'
        slot, props = scan_markers(text)

        assert slot.kind == CONTENT_SLOT
        assert slot.flags == ("single",)
        assert props.kind == REGION
        assert props.payload.strip() == '{"a":1}'

    def test_other_comments_are_skipped(self):
        text = "<!-- just a note --> /* eslint-disable */ <!-- editor:region name=\"head\" -->"
        tokens = scan_markers(text)
        assert [token.name for token in tokens] == ["head"]

    def test_unterminated_comment(self):
        text = '<!-- editor:region name="head" --><!-- /editor:region'
        tokens = scan_markers(text)
        assert len(tokens) == 1
        assert find_regions(text) == []


class TestFindRegions:

    def test_inner_text(self):
        text = '<!-- editor:region name="head" -->X<!-- /editor:region -->'
        region = region_by_name(find_regions(text), "head")

        assert region.inner == "X"
        assert text[region.start:region.end] == text

    def test_mismatched_styles_do_not_pair(self):
        text = '<!-- editor:region name="head" -->X/* /editor:region */'
        assert find_regions(text) == []

    def test_golden_regions(self):
        regions = find_regions(GOLDEN_LAYOUT)
        assert region_by_name(regions, "pre-content").inner.strip() == "<Header />"
        assert region_by_name(regions, "default", kind=CONTENT_SLOT).inner.strip() == "<slot />"
        assert region_by_name(regions, "missing") is None


def comment_like_blueprint():
    return LayoutBlueprint(
        name="Comments",
        props={
            "pattern": PropSpec(type="string", default="src/*.md"),
            "note": PropSpec(type="string", default="<!-- hi"),
            "count": PropSpec(type="number"),
        },
        head=[MetaNode(attrs={"charset": "utf-8"})],
        pre_content=[ComponentNode(name="Hero", props={"text": "<!-- x", "glob": "/* y"})],
    )


class TestCommentOpenersInStrings:
    """Comment openers inside string literals must not hide the real markers."""

    def test_markers_survive_prop_defaults_and_component_strings(self):
        tokens = scan_markers(compile_astro(comment_like_blueprint()))
        opened = [token.name for token in tokens if not token.closing]

        assert opened == ["imports", "props", "head", "pre-content", "Content", "post-content"]

    def test_script_comments_in_markup_are_ignored(self):
        content = compile_astro(comment_like_blueprint()).replace(
            '<meta charset="utf-8" />', '<style>/* editor:region name="fake" */</style>'
        )
        names = [token.name for token in scan_markers(content)]
        assert "fake" not in names

    def test_markup_comments_in_frontmatter_are_ignored(self):
        content = '---\nconst s = "<!-- editor:region name=\\"head\\" -->";\n---\n<p></p>\n'
        assert scan_markers(content) == []

    def test_frontmatter_bounds(self):
        content = compile_astro(comment_like_blueprint())
        start, end = frontmatter_bounds(content)

        assert content[start:end].lstrip().startswith('/* editor:region name="imports" */')
        assert content[end:].startswith("---\n\n<!DOCTYPE html>")
        assert frontmatter_bounds("<p>\n---\n---\n") is None
