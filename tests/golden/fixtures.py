"""
Golden layout shared by the compiler, parser, validator and API tests.

GOLDEN_LAYOUT is the exact text the editor has always written for a simple
header/footer layout; any drift breaks stored layouts' diffs.
"""

from astro_layouts.blueprint import (
    ComponentNode,
    ContentSlot,
    ImportSpec,
    LayoutBlueprint,
    MetaNode,
    PropSpec,
)

GOLDEN_LAYOUT = """---
/* editor:region name="imports" */
import Header from "../../components/Header.astro";
import Footer from "../../components/Footer.astro";
/* /editor:region */

const { title = "My Awesome Site" } = Astro.props;
/* editor:region name="props"
{"title":{"type":"string","default":"My Awesome Site"}}
*/
/* /editor:region */
---

<!DOCTYPE html>
<html lang="en">
  <head>
    <!-- editor:region name="head" -->
    <meta charset="utf-8" />
    <!-- /editor:region -->
  </head>
  <body>
    <!-- editor:region name="pre-content" -->
    <Header />
    <!-- /editor:region -->

    <!-- editor:content-slot name="default" -->
    <slot />
    <!-- /editor:content-slot -->

    <!-- editor:region name="post-content" -->
    <Footer />
    <!-- /editor:region -->
  </body>
</html>
"""


def golden_blueprint() -> LayoutBlueprint:
    return LayoutBlueprint(
        name="Golden",
        html_attrs={"lang": "en"},
        imports=[
            ImportSpec(as_="Header", from_="../../components/Header.astro"),
            ImportSpec(as_="Footer", from_="../../components/Footer.astro"),
        ],
        props={"title": PropSpec(type="string", default="My Awesome Site")},
        head=[MetaNode(attrs={"charset": "utf-8"})],
        pre_content=[ComponentNode(name="Header")],
        content_slot=ContentSlot(name="default"),
        post_content=[ComponentNode(name="Footer")],
    )
