"""Syntactic detection of `Option<T>` field types.

The expansion runs on declarations before any type checking, so the check is
purely structural. Two consequences are accepted as part of the contract:

- a type alias such as `type MyOption<T> = Option<T>;` is not recognised, so
  markers on a `MyOption<T>` field are rejected;
- an unrelated type that happens to be named `Option` (for instance
  `use std::vec::Vec as Option;`) is treated as the standard `Option`.
"""

from .types import ArgKind, GroupType, ParenType, PathSegment, PathType, RustType

OPTION_ROOTS = frozenset(["std", "core"])


def _option_segment(path_type: PathType) -> PathSegment | None:
    """Return the `Option` segment of an accepted path, or None."""
    path = path_type.path
    segments = path.segments

    if len(segments) == 1 and not path.leading_colon and segments[0].ident == "Option":
        return segments[0]

    # std::option::Option / core::option::Option, with or without leading `::`
    if (
        len(segments) == 3
        and segments[0].ident in OPTION_ROOTS
        and segments[1].ident == "option"
        and segments[2].ident == "Option"
    ):
        return segments[2]

    return None


def get_std_option(ty: RustType) -> RustType | None:
    """Return `T` when `ty` is written as `Option<T>`, otherwise None.

    Accepts `Option<T>` and `std::option::Option<T>` / `core::option::Option<T>`
    (leading `::` optional). Parenthesized, grouped and qualified-self types are
    unwrapped one layer at a time.
    """
    if isinstance(ty, ParenType | GroupType):
        return get_std_option(ty.elem)

    if not isinstance(ty, PathType):
        return None

    if ty.qself is not None:
        return get_std_option(ty.qself.type)

    segment = _option_segment(ty)
    if segment is None or segment.arguments is None or segment.inputs is not None:
        return None

    if len(segment.arguments) != 1:
        return None

    argument = segment.arguments[0]
    if argument.kind != ArgKind.TYPE:
        return None
    return argument.type
