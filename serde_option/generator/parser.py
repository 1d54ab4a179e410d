"""Rust item parser using Lark."""

import os
from dataclasses import dataclass
from typing import Any, TypeVar

from lark import Lark, Token
from lark.exceptions import UnexpectedInput
from lark.tree import Meta
from lark.visitors import Transformer, v_args

from .errors import Diagnostic, DiagnosticKind, ExpansionError, ValidationError
from .types import (
    ArgKind,
    ArrayType,
    FieldStyle,
    GenericArgument,
    InferType,
    NeverType,
    OpaqueType,
    ParenType,
    PathSegment,
    PathType,
    PointerType,
    QSelf,
    ReferenceType,
    RustAttribute,
    RustEnum,
    RustField,
    RustItem,
    RustOtherItem,
    RustStruct,
    RustType,
    RustVariant,
    SliceType,
    Span,
    TupleType,
    TypePath,
)

_g_parser: Lark | None = None


@dataclass
class _Name:
    value: str


@dataclass
class _Attributes:
    value: list[RustAttribute]


@dataclass
class _AttrPath:
    value: str


@dataclass
class _TokenTree:
    items: list[Any]
    text: str


@dataclass
class _Visibility:
    value: str


@dataclass
class _Generics:
    value: str


@dataclass
class _WhereClause:
    value: str


@dataclass
class _Discriminant:
    value: str


@dataclass
class _Fields:
    style: FieldStyle
    fields: list[RustField]


@dataclass
class _LeadingColon:
    pass


@dataclass
class _GenericArgs:
    value: list[GenericArgument]


@dataclass
class _Output:
    value: RustType


@dataclass
class _ParenArgs:
    inputs: list[RustType]
    output: RustType | None


TFilter = TypeVar("TFilter", bound=object)


def _filter(args: list[Any], class_type: type[TFilter]) -> list[TFilter]:
    return [v for v in args if isinstance(v, class_type)]


def _find_one(args: list[Any], class_type: type[object]) -> Any:
    filtered = _filter(args, class_type)
    if len(filtered) == 0:
        return None
    if len(filtered) > 1:
        raise RuntimeError(f"Found more than one {class_type}")

    if hasattr(filtered[0], "value"):
        return filtered[0].value
    return filtered[0]


TMany = TypeVar("TMany")


def _find_many(args: list[Any], class_type: type[TMany]) -> list[TMany]:
    return _filter(args, class_type)


def _span(meta: Meta) -> Span | None:
    if meta.empty:
        return None
    return Span(meta.line, meta.column, meta.end_line, meta.end_column)


def _token_span(token: Token) -> Span:
    return Span(token.line, token.column, token.end_line, token.end_column)


def _is_punct(item: Any, char: str) -> bool:
    return isinstance(item, Token) and item.type == "TT_PUNCT" and item == char


def _leading_path(chunk: list[Any]) -> str:
    """Return the path a nested meta item starts with (`with`, `a::b`)."""
    parts: list[str] = []
    for item in chunk:
        if isinstance(item, Token) and item.type == "IDENT":
            parts.append(str(item))
        elif _is_punct(item, ":") and parts:
            parts.append(":")
        else:
            break
    return "".join(parts).rstrip(":")


def _meta_paths(tree: _TokenTree) -> list[str]:
    """Split a parenthesized token tree on top-level commas and collect meta paths."""
    paths: list[str] = []
    chunk: list[Any] = []
    for item in tree.items:
        if _is_punct(item, ","):
            paths.append(_leading_path(chunk))
            chunk = []
        else:
            chunk.append(item)
    if chunk:
        paths.append(_leading_path(chunk))
    return [path for path in paths if path]


class TreeTransformer(Transformer):
    """Transform parse tree into the Rust syntax model."""

    def __init__(self, source: str):
        super().__init__()
        self._source = source

    def _text(self, meta: Meta) -> str:
        if meta.empty:
            return ""
        return self._source[meta.start_pos : meta.end_pos]

    # Attributes

    def attrs(self, args: list[Any]) -> _Attributes:
        return _Attributes(value=_find_many(args, RustAttribute))

    def attr_path(self, args: list[Any]) -> _AttrPath:
        return _AttrPath(value="::".join(str(arg) for arg in args))

    @v_args(meta=True)
    def delim_tt(self, meta: Meta, args: list[Any]) -> _TokenTree:
        return _TokenTree(items=list(args), text=self._text(meta))

    @v_args(meta=True)
    def eq_input(self, meta: Meta, args: list[Any]) -> _TokenTree:
        return _TokenTree(items=list(args), text=self._text(meta))

    @v_args(meta=True)
    def attribute(self, meta: Meta, args: list[Any]) -> RustAttribute:
        tokens = _find_one(args, _TokenTree)
        metas = _meta_paths(tokens) if tokens and tokens.text.startswith("(") else []
        return RustAttribute(
            path=_find_one(args, _AttrPath),
            text=self._text(meta),
            tokens=tokens.text if tokens else None,
            metas=metas,
            span=_span(meta),
        )

    def doc_comment(self, args: list[Any]) -> RustAttribute:
        return RustAttribute(path="doc", text=str(args[0]).rstrip(), span=_token_span(args[0]))

    @v_args(meta=True)
    def visibility(self, meta: Meta, args: list[Any]) -> _Visibility:
        text = self._text(meta)
        return _Visibility(value=f"{text} " if text else "")

    # Items

    def start(self, args: list[Any]) -> RustItem:
        items = [v for v in args if isinstance(v, RustStruct | RustEnum | RustOtherItem)]
        item = items[0]
        item.attributes = _find_one(args, _Attributes)
        item.visibility = _find_one(args, _Visibility)
        return item

    def name(self, args: list[Any]) -> _Name:
        return _Name(value=str(args[0]))

    @v_args(meta=True)
    def generics(self, meta: Meta, args: list[Any]) -> _Generics:
        return _Generics(value=self._text(meta))

    @v_args(meta=True)
    def where_clause(self, meta: Meta, args: list[Any]) -> _WhereClause:
        return _WhereClause(value=self._text(meta))

    def _struct(self, meta: Meta, args: list[Any]) -> RustStruct:
        fields = _find_one(args, _Fields)
        return RustStruct(
            name=_find_one(args, _Name),
            style=fields.style if fields else FieldStyle.UNIT,
            fields=fields.fields if fields else [],
            attributes=[],
            generics=_find_one(args, _Generics) or "",
            where_clause=_find_one(args, _WhereClause) or "",
            span=_span(meta),
        )

    @v_args(meta=True)
    def named_struct(self, meta: Meta, args: list[Any]) -> RustStruct:
        return self._struct(meta, args)

    @v_args(meta=True)
    def tuple_struct(self, meta: Meta, args: list[Any]) -> RustStruct:
        return self._struct(meta, args)

    @v_args(meta=True)
    def unit_struct(self, meta: Meta, args: list[Any]) -> RustStruct:
        return self._struct(meta, args)

    @v_args(meta=True)
    def enum_def(self, meta: Meta, args: list[Any]) -> RustEnum:
        return RustEnum(
            name=_find_one(args, _Name),
            variants=_find_many(args, RustVariant),
            attributes=[],
            generics=_find_one(args, _Generics) or "",
            where_clause=_find_one(args, _WhereClause) or "",
            span=_span(meta),
        )

    def other_def(self, args: list[Any]) -> RustOtherItem:
        return RustOtherItem(keyword=str(args[0]), attributes=[], span=_token_span(args[0]))

    @v_args(meta=True)
    def variant(self, meta: Meta, args: list[Any]) -> RustVariant:
        fields = _find_one(args, _Fields)
        return RustVariant(
            name=_find_one(args, _Name),
            style=fields.style if fields else FieldStyle.UNIT,
            fields=fields.fields if fields else [],
            attributes=_find_one(args, _Attributes),
            discriminant=_find_one(args, _Discriminant),
            span=_span(meta),
        )

    def discriminant(self, args: list[Any]) -> _Discriminant:
        return _Discriminant(value=str(args[0]).strip())

    def named_fields(self, args: list[Any]) -> _Fields:
        return _Fields(style=FieldStyle.NAMED, fields=_find_many(args, RustField))

    def tuple_fields(self, args: list[Any]) -> _Fields:
        return _Fields(style=FieldStyle.TUPLE, fields=_find_many(args, RustField))

    @v_args(meta=True)
    def named_field(self, meta: Meta, args: list[Any]) -> RustField:
        return RustField(
            type=_find_one(args, RustType),
            attributes=_find_one(args, _Attributes),
            name=_find_one(args, _Name),
            visibility=_find_one(args, _Visibility),
            span=_span(meta),
        )

    @v_args(meta=True)
    def tuple_field(self, meta: Meta, args: list[Any]) -> RustField:
        return RustField(
            type=_find_one(args, RustType),
            attributes=_find_one(args, _Attributes),
            visibility=_find_one(args, _Visibility),
            span=_span(meta),
        )

    # Types

    def leading_colon(self, args: list[Any]) -> _LeadingColon:
        return _LeadingColon()

    def generic_args(self, args: list[Any]) -> _GenericArgs:
        return _GenericArgs(value=_find_many(args, GenericArgument))

    def type_arg(self, args: list[Any]) -> GenericArgument:
        return GenericArgument(kind=ArgKind.TYPE, type=args[0])

    def lifetime_arg(self, args: list[Any]) -> GenericArgument:
        return GenericArgument(kind=ArgKind.LIFETIME, text=str(args[0]))

    def binding_arg(self, args: list[Any]) -> GenericArgument:
        return GenericArgument(kind=ArgKind.BINDING, text=str(args[0]), type=args[1])

    @v_args(meta=True)
    def constraint_arg(self, meta: Meta, args: list[Any]) -> GenericArgument:
        return GenericArgument(kind=ArgKind.CONSTRAINT, text=self._text(meta))

    @v_args(meta=True)
    def const_arg(self, meta: Meta, args: list[Any]) -> GenericArgument:
        return GenericArgument(kind=ArgKind.CONST, text=self._text(meta))

    def fn_output(self, args: list[Any]) -> _Output:
        return _Output(value=args[0])

    def paren_args(self, args: list[Any]) -> _ParenArgs:
        return _ParenArgs(inputs=_find_many(args, RustType), output=_find_one(args, _Output))

    def path_segment(self, args: list[Any]) -> PathSegment:
        paren = _find_one(args, _ParenArgs)
        return PathSegment(
            ident=str(args[0]),
            arguments=_find_one(args, _GenericArgs),
            inputs=paren.inputs if paren else None,
            output=paren.output if paren else None,
        )

    def type_path(self, args: list[Any]) -> TypePath:
        return TypePath(
            segments=_find_many(args, PathSegment),
            leading_colon=bool(_filter(args, _LeadingColon)),
        )

    def path_type(self, args: list[Any]) -> PathType:
        return PathType(path=args[0])

    def qself_type(self, args: list[Any]) -> PathType:
        return PathType(
            path=TypePath(segments=_find_many(args, PathSegment)),
            qself=QSelf(type=args[0], as_trait=_find_one(args, TypePath)),
        )

    def paren_type(self, args: list[Any]) -> ParenType:
        return ParenType(elem=args[0])

    def tuple_type(self, args: list[Any]) -> TupleType:
        return TupleType(elems=_find_many(args, RustType))

    def reference_type(self, args: list[Any]) -> ReferenceType:
        tokens = _find_many(args, Token)
        lifetimes = [str(t) for t in tokens if t.type == "LIFETIME"]
        return ReferenceType(
            elem=args[-1],
            lifetime=lifetimes[0] if lifetimes else None,
            mutable=any(t.type == "MUT" for t in tokens),
        )

    def pointer_type(self, args: list[Any]) -> PointerType:
        return PointerType(elem=args[1], mutable=str(args[0]) == "mut")

    def array_type(self, args: list[Any]) -> ArrayType:
        return ArrayType(elem=args[0], length=str(args[1]).strip())

    def slice_type(self, args: list[Any]) -> SliceType:
        return SliceType(elem=args[0])

    def never_type(self, args: list[Any]) -> NeverType:
        return NeverType()

    def infer_type(self, args: list[Any]) -> InferType:
        return InferType()

    @v_args(meta=True)
    def opaque_type(self, meta: Meta, args: list[Any]) -> OpaqueType:
        return OpaqueType(text=self._text(meta))


def _syntax_error(err: UnexpectedInput) -> ExpansionError:
    line = getattr(err, "line", -1)
    column = getattr(err, "column", -1)
    span = Span(line, column, line, column) if line > 0 else None
    detail = str(err).strip().splitlines()[0]
    return ExpansionError(
        [
            Diagnostic(
                kind=DiagnosticKind.INVALID_SYNTAX,
                message=f"Expected a struct or enum definition: {detail}",
                span=span,
            )
        ]
    )


def parse(text: str) -> RustItem:
    """Parse a single Rust item declaration."""
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/rustitem.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar, propagate_positions=True)

    try:
        tree = _g_parser.parse(text)
    except UnexpectedInput as err:
        raise _syntax_error(err) from err

    return TreeTransformer(text).transform(tree)


def parse_type(text: str) -> RustType:
    """Parse a standalone type, e.g. `::std::option::Option<u8>`."""
    item = parse(f"struct T({text});")
    if not isinstance(item, RustStruct) or len(item.fields) != 1:
        raise ValidationError(f"Expected a single type: {text}")
    return item.fields[0].type
