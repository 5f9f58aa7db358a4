import re
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_serializer,
    model_validator,
)

IDENTIFIER_PATTERN = r"^[A-Za-z_$][A-Za-z0-9_$]*$"

PropType = Literal["string", "number", "boolean"]


class _WireModel(BaseModel):
    """Accepts both the camelCase wire names and the Python attribute names."""

    model_config = ConfigDict(populate_by_name=True)


class ImportSpec(_WireModel):
    """A default import in the layout frontmatter: `import <as> from "<from>";`."""

    as_: str = Field(..., alias="as", pattern=IDENTIFIER_PATTERN, description="Local binding, e.g. 'Header'")
    from_: str = Field(..., alias="from", description="Module path, not checked for existence")


class PropSpec(_WireModel):
    """
    Type and optional default of a layout prop.

    A default that was never supplied is left out of serialized output, which
    is how the props marker tells "no default" apart from an explicit `null`.
    """

    type: PropType = Field(..., description="One of 'string', 'number' or 'boolean'")
    default: Any = Field(default=None, description="Default value, must match `type` unless null")

    @model_validator(mode="after")
    def _check_default_type(self) -> "PropSpec":
        value = self.default
        if value is None:
            return self
        if self.type == "string":
            ok = isinstance(value, str)
        elif self.type == "boolean":
            ok = isinstance(value, bool)
        else:
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        if not ok:
            raise ValueError(f"default {value!r} does not match prop type '{self.type}'")
        return self

    @model_serializer(mode="wrap")
    def _omit_unset_default(self, handler):
        data = handler(self)
        if "default" not in self.model_fields_set:
            data.pop("default", None)
        return data


# Head nodes


class MetaNode(_WireModel):
    type: Literal["meta"] = "meta"
    attrs: Dict[str, str] = Field(default_factory=dict)


class TitleNode(_WireModel):
    """Page title, either literal text or interpolated from a prop."""

    type: Literal["title"] = "title"
    content_from_prop: Optional[str] = Field(default=None, alias="contentFromProp")
    text: Optional[str] = None


class RawNode(_WireModel):
    """Opaque markup, emitted verbatim (re-indented only)."""

    type: Literal["raw"] = "raw"
    html: str = ""


# Body nodes


class ComponentNode(_WireModel):
    type: Literal["component"] = "component"
    name: str = Field(..., pattern=IDENTIFIER_PATTERN, description="Imported identifier to render")
    props: Optional[Dict[str, Any]] = None


HeadNode = Annotated[Union[MetaNode, TitleNode, RawNode], Field(discriminator="type")]
BodyNode = Annotated[Union[ComponentNode, RawNode], Field(discriminator="type")]


class ContentSlot(_WireModel):
    name: str = Field(default="Content", description="Marker name of the page content slot")
    single: Optional[bool] = Field(default=None, description="Slot accepts exactly one content block")


class LayoutBlueprint(_WireModel):
    """
    Structured form of an Astro layout file.

    Only the compiled text is ever persisted; a blueprint lives for one
    editing session. Dict fields keep insertion order, which the compiler
    relies on for byte-stable output.
    """

    name: str = Field(..., description="Human name of the layout, not stored in the compiled file")
    html_attrs: Optional[Dict[str, str]] = Field(default=None, alias="htmlAttrs")
    imports: List[ImportSpec] = Field(default_factory=list)
    props: Dict[str, PropSpec] = Field(default_factory=dict)
    head: List[HeadNode] = Field(default_factory=list)
    pre_content: List[BodyNode] = Field(default_factory=list, alias="preContent")
    content_slot: ContentSlot = Field(default_factory=ContentSlot, alias="contentSlot")
    post_content: List[BodyNode] = Field(default_factory=list, alias="postContent")

    @field_validator("props")
    @classmethod
    def _check_prop_names(cls, value: Dict[str, PropSpec]) -> Dict[str, PropSpec]:
        for prop_name in value:
            if not is_identifier(prop_name):
                raise ValueError(f"prop name '{prop_name}' is not a valid identifier")
        return value

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: dict) -> "LayoutBlueprint":
        return cls.model_validate(data)


def is_identifier(value: str) -> bool:
    return re.match(IDENTIFIER_PATTERN, value) is not None


def default_blueprint() -> LayoutBlueprint:
    """A fresh starter layout for the editor's "New Layout" action."""
    return LayoutBlueprint(
        name="New Layout",
        html_attrs={"lang": "en"},
        imports=[],
        props={
            "title": PropSpec(type="string", default="Site Title"),
            "description": PropSpec(type="string", default=""),
        },
        head=[
            MetaNode(attrs={"charset": "utf-8"}),
            MetaNode(attrs={"name": "viewport", "content": "width=device-width, initial-scale=1"}),
            TitleNode(content_from_prop="title"),
        ],
        pre_content=[],
        content_slot=ContentSlot(name="Content", single=True),
        post_content=[],
    )
