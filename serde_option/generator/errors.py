"""Diagnostics produced while expanding `#[nullable]` and `#[not_required]`."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin

from .types import Span

RUST_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
}


def rust_string_literal(text: str) -> str:
    """Quote text as a Rust string literal; other control characters use `\\u{..}`."""
    escaped: list[str] = []
    for char in text:
        if char in RUST_ESCAPES:
            escaped.append(RUST_ESCAPES[char])
        elif ord(char) < 0x20 or 0x7F <= ord(char) < 0xA0:
            escaped.append(f"\\u{{{ord(char):x}}}")
        else:
            escaped.append(char)
    return '"' + "".join(escaped) + '"'


class DiagnosticKind(StrEnum):
    """Classification of expansion failures."""

    UNSUPPORTED_ITEM_KIND = auto()  # Not a struct or enum
    INVALID_MARKER_TARGET = auto()  # Marker on a field that is not Option<T>
    INCOMPATIBLE_WITH_SKIP = auto()  # Marker together with #[serde(skip)]
    INCOMPATIBLE_WITH_DEFAULT = auto()  # #[not_required] together with #[serde(default)]
    INVALID_SYNTAX = auto()  # Input could not be parsed at all


@dataclass(frozen=True)
class Diagnostic(DataClassJsonMixin):
    """A single failure anchored at a source position."""

    kind: DiagnosticKind
    message: str
    span: Span | None = None
    marker: str | None = None

    def format(self) -> str:
        if self.span is None:
            return self.message
        return f"{self.span.line}:{self.span.column}: {self.message}"


class ValidationError(RuntimeError):
    """Raised when a declaration cannot be expanded."""


class ExpansionError(ValidationError):
    """Every diagnostic found in one declaration, reported together."""

    def __init__(self, diagnostics: Iterable[Diagnostic]):
        self.diagnostics = list(diagnostics)
        super().__init__(self._summary())

    def _summary(self) -> str:
        return "\n".join(d.format() for d in self.diagnostics)

    def combine(self, other: "ExpansionError") -> None:
        """Append the diagnostics of another error to this one."""
        self.diagnostics.extend(other.diagnostics)
        self.args = (self._summary(),)

    def __len__(self) -> int:
        return len(self.diagnostics)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.diagnostics)

    def to_compile_error(self) -> str:
        """Render one `compile_error!` invocation per diagnostic."""
        return "\n".join(
            f"::core::compile_error! {{ {rust_string_literal(d.format())} }}"
            for d in self.diagnostics
        )
