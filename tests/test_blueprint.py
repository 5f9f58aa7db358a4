import pytest
from pydantic import ValidationError

from astro_layouts.blueprint import (
    ComponentNode,
    ImportSpec,
    LayoutBlueprint,
    PropSpec,
    TitleNode,
    default_blueprint,
)


class TestPropSpec:

    @pytest.mark.parametrize("prop_type, default", [
        ("string", "x"),
        ("number", 2),
        ("number", 2.5),
        ("boolean", False),
        ("string", None),
    ])
    def test_matching_defaults(self, prop_type, default):
        assert PropSpec(type=prop_type, default=default).default == default

    @pytest.mark.parametrize("prop_type, default", [
        ("string", 1),
        ("number", True),
        ("number", "3"),
        ("boolean", "true"),
    ])
    def test_mismatched_defaults(self, prop_type, default):
        with pytest.raises(ValidationError):
            PropSpec(type=prop_type, default=default)

    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            PropSpec(type="date")


class TestIdentifiers:

    def test_import_binding(self):
        with pytest.raises(ValidationError):
            ImportSpec(as_="my-header", from_="./Header.astro")

    def test_component_name(self):
        with pytest.raises(ValidationError):
            ComponentNode(name="1Header")

    def test_prop_name(self):
        with pytest.raises(ValidationError):
            LayoutBlueprint(name="X", props={"not valid": PropSpec(type="string")})

    def test_dollar_and_underscore_are_allowed(self):
        assert ImportSpec(as_="$_Header1", from_="x").as_ == "$_Header1"


class TestWireForm:

    def test_camel_case_keys(self):
        data = default_blueprint().to_dict()
        assert set(data) == {
            "name", "htmlAttrs", "imports", "props", "head", "preContent", "contentSlot", "postContent",
        }
        assert data["head"][2] == {"type": "title", "contentFromProp": "title", "text": None}

    def test_nodes_are_picked_by_type(self):
        blueprint = LayoutBlueprint.from_dict({
            "name": "W",
            "head": [{"type": "title", "text": "Hi"}, {"type": "raw", "html": "<x>"}],
            "preContent": [{"type": "component", "name": "Nav", "props": {"a": 1}}],
        })
        assert isinstance(blueprint.head[0], TitleNode)
        assert blueprint.pre_content[0].props == {"a": 1}

    def test_unknown_node_type(self):
        with pytest.raises(ValidationError):
            LayoutBlueprint.from_dict({"name": "W", "head": [{"type": "component", "name": "Seo"}]})

    def test_default_blueprint_is_fresh(self):
        first = default_blueprint()
        first.props.clear()
        assert "title" in default_blueprint().props
