"""Syntax model for Rust item declarations rewritten by serde_option."""

from dataclasses import dataclass, field
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin


@dataclass
class Span(DataClassJsonMixin):
    """Source position of a syntax element (1-based lines and columns)."""

    line: int
    column: int
    end_line: int
    end_column: int


class ArgKind(StrEnum):
    """Kind of a generic argument inside angle brackets."""

    TYPE = auto()
    LIFETIME = auto()
    CONST = auto()
    BINDING = auto()  # Item = T
    CONSTRAINT = auto()  # Item: Bound


@dataclass
class RustType(DataClassJsonMixin):
    """Base class for type syntax."""


@dataclass
class GenericArgument(DataClassJsonMixin):
    """Represents one argument of an angle-bracketed generic list.

    - kind=TYPE: `type` holds the argument
    - kind=BINDING: `text` is the associated item name, `type` its value
    - otherwise: `text` holds the argument verbatim
    """

    kind: ArgKind
    type: RustType | None = None
    text: str | None = None


@dataclass
class PathSegment(DataClassJsonMixin):
    """One `::`-separated segment of a path.

    - arguments=None: no angle brackets (`Vec`)
    - arguments=[]: empty angle brackets (`Vec<>`)
    - inputs/output: parenthesized sugar (`Fn(A) -> B`)
    """

    ident: str
    arguments: list[GenericArgument] | None = None
    inputs: list[RustType] | None = None
    output: RustType | None = None


@dataclass
class TypePath(DataClassJsonMixin):
    """Represents a path such as `::std::option::Option<T>`."""

    segments: list[PathSegment]
    leading_colon: bool = False


@dataclass
class QSelf(DataClassJsonMixin):
    """The `<T as Trait>` prefix of a qualified path."""

    type: RustType
    as_trait: TypePath | None = None


@dataclass
class PathType(RustType):
    """A path type, optionally qualified (`<T as Trait>::Assoc`)."""

    path: TypePath
    qself: QSelf | None = None


@dataclass
class ParenType(RustType):
    """A parenthesized type: `(T)`."""

    elem: RustType


@dataclass
class GroupType(RustType):
    """An invisibly delimited type, as produced by macro expansion."""

    elem: RustType


@dataclass
class ReferenceType(RustType):
    elem: RustType
    lifetime: str | None = None
    mutable: bool = False


@dataclass
class PointerType(RustType):
    elem: RustType
    mutable: bool = False


@dataclass
class SliceType(RustType):
    elem: RustType


@dataclass
class ArrayType(RustType):
    elem: RustType
    length: str


@dataclass
class TupleType(RustType):
    elems: list[RustType]


@dataclass
class NeverType(RustType):
    pass


@dataclass
class InferType(RustType):
    pass


@dataclass
class OpaqueType(RustType):
    """Type syntax kept verbatim (trait objects, `impl Trait`, fn pointers)."""

    text: str


@dataclass
class RustAttribute(DataClassJsonMixin):
    """Represents an outer attribute or doc comment on an item, variant or field.

    `metas` lists the paths of the top-level nested meta items, so
    `#[serde(default = "f", skip)]` has metas ["default", "skip"].
    """

    path: str
    text: str
    tokens: str | None = None
    metas: list[str] = field(default_factory=list)
    span: Span | None = None


class FieldStyle(StrEnum):
    """How the fields of a struct or variant are declared."""

    NAMED = auto()
    TUPLE = auto()
    UNIT = auto()


@dataclass
class RustField(DataClassJsonMixin):
    """Represents a field of a struct or enum variant.

    Tuple fields have no name.
    """

    type: RustType
    attributes: list[RustAttribute]
    name: str | None = None
    visibility: str = ""
    span: Span | None = None


@dataclass
class RustVariant(DataClassJsonMixin):
    """Represents an enum variant."""

    name: str
    style: FieldStyle
    fields: list[RustField]
    attributes: list[RustAttribute]
    discriminant: str | None = None
    span: Span | None = None


@dataclass
class RustStruct(DataClassJsonMixin):
    """Represents a struct definition."""

    name: str
    style: FieldStyle
    fields: list[RustField]
    attributes: list[RustAttribute]
    visibility: str = ""
    generics: str = ""
    where_clause: str = ""
    span: Span | None = None


@dataclass
class RustEnum(DataClassJsonMixin):
    """Represents an enum definition."""

    name: str
    variants: list[RustVariant]
    attributes: list[RustAttribute]
    visibility: str = ""
    generics: str = ""
    where_clause: str = ""
    span: Span | None = None


@dataclass
class RustOtherItem(DataClassJsonMixin):
    """Any item that is not a struct or enum (fn, type alias, union, ...)."""

    keyword: str
    attributes: list[RustAttribute]
    visibility: str = ""
    span: Span | None = None


RustItem = RustStruct | RustEnum | RustOtherItem


@dataclass(frozen=True)
class ExpandOptions(DataClassJsonMixin):
    """Options controlling the emitted directives.

    schema: also emit utoipa `#[schema(...)]` hints.
    """

    schema: bool = False


ITEM_KIND_NAMES = {
    "fn": "function",
    "async": "function",
    "type": "type alias",
    "union": "union",
    "trait": "trait",
    "impl": "impl block",
    "const": "constant",
    "static": "static",
    "mod": "module",
    "use": "use declaration",
    "extern": "extern block",
    "unsafe": "unsafe item",
    "macro_rules": "macro definition",
}


def item_kind_name(keyword: str) -> str:
    """Return a human readable name for an item keyword."""
    return ITEM_KIND_NAMES.get(keyword, keyword)
