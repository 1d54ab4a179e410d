"""Rewrite `#[nullable]` and `#[not_required]` markers on a single field.

The markers are replaced by `#[serde(...)]` directives for serde and
serde_with:

| skip  | nullable | not_required | default | outcome                        |
|-------|----------|--------------|---------|--------------------------------|
| true  | true     | any          | any     | error: nullable with skip      |
| true  | any      | true         | any     | error: not_required with skip  |
| false | any      | true         | true    | error: not_required + default  |
| false | false    | true         | false   | unwrap_or_skip                 |
| false | true     | false        | any     | with = "Option"                |
| false | true     | true         | false   | double_option                  |
"""

from dataclasses import dataclass, field
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin

from .errors import Diagnostic, DiagnosticKind
from .matcher import get_std_option
from .render import render_type
from .types import ExpandOptions, RustAttribute, RustField, Span

NULLABLE = "nullable"
NOT_REQUIRED = "not_required"
MARKERS = (NULLABLE, NOT_REQUIRED)

SERDE = "serde"
SCHEMA = "schema"


class Outcome(StrEnum):
    """What happened to a field."""

    UNCHANGED = auto()  # No markers present
    NOT_REQUIRED = auto()  # Directive set A
    NULLABLE = auto()  # Directive set B
    NULLABLE_NOT_REQUIRED = auto()  # Directive set C
    REJECTED = auto()


# Directive sets emitted for each outcome, as nested meta items
SERDE_DIRECTIVES: dict[Outcome, tuple[str, ...]] = {
    Outcome.NOT_REQUIRED: (
        "default",
        'skip_serializing_if = "Option::is_none"',
        'with = "serde_with::rust::unwrap_or_skip"',
    ),
    Outcome.NULLABLE: ('with = "Option"',),
    Outcome.NULLABLE_NOT_REQUIRED: (
        "default",
        'skip_serializing_if = "Option::is_none"',
        'with = "serde_with::rust::double_option"',
    ),
}

# utoipa hints, only emitted with ExpandOptions.schema
SCHEMA_DIRECTIVES: dict[Outcome, tuple[str, ...]] = {
    Outcome.NOT_REQUIRED: ("nullable = false",),
    Outcome.NULLABLE: ("required = true",),
}


@dataclass(frozen=True)
class FieldFlags:
    """The four booleans the rule table is keyed on."""

    skip: bool
    nullable: bool
    not_required: bool
    default: bool


@dataclass(frozen=True)
class Rule:
    """One row of the rule table; None matches any value."""

    skip: bool | None
    nullable: bool | None
    not_required: bool | None
    default: bool | None
    outcome: Outcome | None = None
    failure: DiagnosticKind | None = None
    marker: str | None = None

    def matches(self, flags: FieldFlags) -> bool:
        return all(
            expected is None or expected == actual
            for expected, actual in (
                (self.skip, flags.skip),
                (self.nullable, flags.nullable),
                (self.not_required, flags.not_required),
                (self.default, flags.default),
            )
        )


_SKIP = DiagnosticKind.INCOMPATIBLE_WITH_SKIP
_DEFAULT = DiagnosticKind.INCOMPATIBLE_WITH_DEFAULT

# Failure rows come first; the success rows cover every remaining combination
RULES: tuple[Rule, ...] = (
    Rule(True, True, None, None, failure=_SKIP, marker=NULLABLE),
    Rule(True, None, True, None, failure=_SKIP, marker=NOT_REQUIRED),
    Rule(False, None, True, True, failure=_DEFAULT, marker=NOT_REQUIRED),
    Rule(False, False, True, False, outcome=Outcome.NOT_REQUIRED),
    Rule(False, True, False, None, outcome=Outcome.NULLABLE),
    Rule(False, True, True, False, outcome=Outcome.NULLABLE_NOT_REQUIRED),
)


@dataclass
class FieldDecision(DataClassJsonMixin):
    """Result of processing one field."""

    owner: str
    label: str
    outcome: Outcome
    markers: list[str] = field(default_factory=list)
    inner_type: str | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    span: Span | None = None


def failure_message(kind: DiagnosticKind, marker: str) -> str:
    """Return the message for a failed rule or a misplaced marker."""
    if kind == DiagnosticKind.INVALID_MARKER_TARGET:
        return f"`#[{marker}]` may only be used on fields of type `Option<T>`."
    if kind == DiagnosticKind.INCOMPATIBLE_WITH_SKIP:
        return f"`#[{marker}]` cannot be used in combination with `#[{SERDE}(skip)]`"
    if kind == DiagnosticKind.INCOMPATIBLE_WITH_DEFAULT:
        return f"`#[{marker}]` cannot be used in combination with `#[{SERDE}(default)]`"
    raise ValueError(f"Not a field diagnostic: {kind}")


def decide(flags: FieldFlags) -> tuple[Outcome, list[Rule]]:
    """Look up the rule table.

    Every matching failure row is returned so that each incompatible marker is
    reported; success rows are only consulted when no failure row matches.
    """
    failures = [rule for rule in RULES if rule.failure is not None and rule.matches(flags)]
    if failures:
        return Outcome.REJECTED, failures

    for rule in RULES:
        if rule.outcome is not None and rule.matches(flags):
            return rule.outcome, []

    raise RuntimeError(f"No rule for {flags}")


def take_markers(field: RustField) -> list[str]:
    """Remove the marker attributes from a field and return the markers found."""
    found = [marker for marker in MARKERS if any(a.path == marker for a in field.attributes)]
    field.attributes[:] = [a for a in field.attributes if a.path not in MARKERS]
    return found


def has_directive(field: RustField, namespace: str, name: str) -> bool:
    """Check if a field has a `#[namespace(name ...)]` directive.

    Only the first attribute in the namespace is consulted, so
    `#[serde(rename = "x")] #[serde(skip)]` does not count as skipped.
    """
    for attr in field.attributes:
        if attr.path == namespace:
            return name in attr.metas
    return False


def directive(namespace: str, items: tuple[str, ...]) -> RustAttribute:
    """Build a `#[namespace(items...)]` attribute."""
    tokens = f"({', '.join(items)})"
    return RustAttribute(
        path=namespace,
        text=f"#[{namespace}{tokens}]",
        tokens=tokens,
        metas=[item.split("=")[0].strip() for item in items],
    )


def _label(field: RustField, index: int) -> str:
    return field.name if field.name is not None else str(index)


def process_field(
    field: RustField,
    options: ExpandOptions | None = None,
    owner: str = "",
    index: int = 0,
) -> FieldDecision:
    """Apply the marker rules to a field in place.

    Markers are always removed, whatever the outcome. On failure the field's
    other attributes are left untouched and the diagnostics are returned in the
    decision.
    """
    options = options or ExpandOptions()
    markers = take_markers(field)
    decision = FieldDecision(
        owner=owner,
        label=_label(field, index),
        outcome=Outcome.UNCHANGED,
        markers=markers,
        span=field.span,
    )
    if not markers:
        return decision

    inner = get_std_option(field.type)
    if inner is None:
        decision.outcome = Outcome.REJECTED
        decision.diagnostics = [
            Diagnostic(
                kind=DiagnosticKind.INVALID_MARKER_TARGET,
                message=failure_message(DiagnosticKind.INVALID_MARKER_TARGET, marker),
                span=field.span,
                marker=marker,
            )
            for marker in markers
        ]
        return decision

    decision.inner_type = render_type(inner)
    flags = FieldFlags(
        skip=has_directive(field, SERDE, "skip"),
        nullable=NULLABLE in markers,
        not_required=NOT_REQUIRED in markers,
        default=has_directive(field, SERDE, "default"),
    )
    outcome, failures = decide(flags)
    decision.outcome = outcome

    if failures:
        decision.diagnostics = [
            Diagnostic(
                kind=rule.failure,
                message=failure_message(rule.failure, rule.marker),
                span=field.span,
                marker=rule.marker,
            )
            for rule in failures
            if rule.failure is not None and rule.marker is not None
        ]
        return decision

    field.attributes.append(directive(SERDE, SERDE_DIRECTIVES[outcome]))
    if options.schema and outcome in SCHEMA_DIRECTIVES:
        field.attributes.append(directive(SCHEMA, SCHEMA_DIRECTIVES[outcome]))

    return decision
