"""Render the Rust syntax model back to source text."""

from jinja2 import Environment, PackageLoader

from .types import (
    ArgKind,
    ArrayType,
    FieldStyle,
    GenericArgument,
    GroupType,
    InferType,
    NeverType,
    OpaqueType,
    ParenType,
    PathSegment,
    PathType,
    PointerType,
    ReferenceType,
    RustEnum,
    RustItem,
    RustStruct,
    RustType,
    RustVariant,
    SliceType,
    TupleType,
    TypePath,
)

env = Environment(
    loader=PackageLoader("serde_option.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("item.rs.j2")


def _render_argument(arg: GenericArgument) -> str:
    if arg.kind == ArgKind.TYPE and arg.type is not None:
        return render_type(arg.type)
    if arg.kind == ArgKind.BINDING and arg.type is not None:
        return f"{arg.text} = {render_type(arg.type)}"
    return arg.text or ""


def _render_segment(segment: PathSegment) -> str:
    text = segment.ident
    if segment.arguments is not None:
        text += "<" + ", ".join(_render_argument(a) for a in segment.arguments) + ">"
    if segment.inputs is not None:
        text += "(" + ", ".join(render_type(t) for t in segment.inputs) + ")"
        if segment.output is not None:
            text += f" -> {render_type(segment.output)}"
    return text


def render_path(path: TypePath) -> str:
    """Render a path such as `::std::option::Option<T>`."""
    prefix = "::" if path.leading_colon else ""
    return prefix + "::".join(_render_segment(s) for s in path.segments)


def render_type(ty: RustType) -> str:
    """Render type syntax to Rust source."""
    if isinstance(ty, PathType):
        if ty.qself is None:
            return render_path(ty.path)
        qself = render_type(ty.qself.type)
        if ty.qself.as_trait is not None:
            qself += f" as {render_path(ty.qself.as_trait)}"
        return f"<{qself}>::{render_path(ty.path)}"
    if isinstance(ty, ParenType):
        return f"({render_type(ty.elem)})"
    if isinstance(ty, GroupType):
        return render_type(ty.elem)
    if isinstance(ty, ReferenceType):
        lifetime = f"{ty.lifetime} " if ty.lifetime else ""
        mutable = "mut " if ty.mutable else ""
        return f"&{lifetime}{mutable}{render_type(ty.elem)}"
    if isinstance(ty, PointerType):
        return f"*{'mut' if ty.mutable else 'const'} {render_type(ty.elem)}"
    if isinstance(ty, SliceType):
        return f"[{render_type(ty.elem)}]"
    if isinstance(ty, ArrayType):
        return f"[{render_type(ty.elem)}; {ty.length}]"
    if isinstance(ty, TupleType):
        if len(ty.elems) == 1:
            return f"({render_type(ty.elems[0])},)"
        return "(" + ", ".join(render_type(t) for t in ty.elems) + ")"
    if isinstance(ty, NeverType):
        return "!"
    if isinstance(ty, InferType):
        return "_"
    if isinstance(ty, OpaqueType):
        return ty.text

    raise ValueError(f"Unknown type syntax: {type(ty).__name__}")


def _open_delim(style: FieldStyle) -> str:
    return " {" if style == FieldStyle.NAMED else "("


def _close_delim(style: FieldStyle) -> str:
    return "}" if style == FieldStyle.NAMED else ")"


def _struct_open(item: RustStruct) -> str:
    """Header suffix of a struct with fields: where clause and opening delimiter."""
    if item.style == FieldStyle.NAMED and item.where_clause:
        return f" {item.where_clause} {{"
    return _open_delim(item.style)


def _struct_close(item: RustStruct) -> str:
    """Closing line of a struct with fields."""
    if item.style == FieldStyle.NAMED:
        return "}"
    where = f" {item.where_clause}" if item.where_clause else ""
    return f"){where};"


def _where_suffix(where_clause: str) -> str:
    return f" {where_clause}" if where_clause else ""


def _discriminant(variant: RustVariant) -> str:
    return f" = {variant.discriminant}" if variant.discriminant else ""


def render(item: RustItem) -> str:
    """Render a struct or enum definition to Rust source code."""
    if isinstance(item, RustStruct):
        kind = "struct"
    elif isinstance(item, RustEnum):
        kind = "enum"
    else:
        raise ValueError(f"Cannot render a `{item.keyword}` item")

    return template.render(
        item=item,
        kind=kind,
        render_type=render_type,
        open_delim=_open_delim,
        close_delim=_close_delim,
        struct_open=_struct_open,
        struct_close=_struct_close,
        where_suffix=_where_suffix,
        discriminant=_discriminant,
    )
