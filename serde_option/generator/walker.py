"""Expand every field of a struct or enum declaration."""

import logging
from copy import deepcopy
from dataclasses import dataclass

import structlog

from .errors import Diagnostic, DiagnosticKind, ExpansionError
from .fields import FieldDecision, process_field
from .parser import parse
from .render import render
from .types import ExpandOptions, RustEnum, RustField, RustItem, RustStruct, item_kind_name

# Backed by stdlib logging: without configure_logging() debug events are dropped
log = structlog.wrap_logger(logging.getLogger(__name__))

# The invoking attribute itself, dropped from the expanded item
INVOCATION_PATHS = frozenset(["serde_option", "serde_option::serde_option"])


@dataclass
class ExpansionReport:
    """Outcome of walking one declaration.

    `item` is the rewritten copy, or None when any diagnostic was produced.
    """

    item: RustItem | None
    decisions: list[FieldDecision]
    diagnostics: list[Diagnostic]

    @property
    def ok(self) -> bool:
        return not self.diagnostics


def _process_fields(
    fields: list[RustField], options: ExpandOptions, owner: str
) -> list[FieldDecision]:
    decisions: list[FieldDecision] = []
    for index, field in enumerate(fields):
        decision = process_field(field, options, owner=owner, index=index)
        log.debug(
            "field.processed",
            owner=owner,
            field=decision.label,
            outcome=decision.outcome.value,
            diagnostics=len(decision.diagnostics),
        )
        decisions.append(decision)
    return decisions


def walk_item(item: RustItem, options: ExpandOptions | None = None) -> ExpansionReport:
    """Process every field of a struct, or of every enum variant, in declaration order.

    The caller's item is never modified: fields are rewritten on a copy, and the
    copy is only returned when no field failed.
    """
    options = options or ExpandOptions()

    if not isinstance(item, RustStruct | RustEnum):
        kind = item_kind_name(item.keyword)
        log.debug("item.rejected", kind=kind)
        diagnostic = Diagnostic(
            kind=DiagnosticKind.UNSUPPORTED_ITEM_KIND,
            message=(
                "`#[serde_option]` can only be applied to struct or enum definitions, "
                f"found {kind}."
            ),
            span=item.span,
        )
        return ExpansionReport(item=None, decisions=[], diagnostics=[diagnostic])

    item = deepcopy(item)
    item.attributes[:] = [a for a in item.attributes if a.path not in INVOCATION_PATHS]

    decisions: list[FieldDecision] = []
    if isinstance(item, RustStruct):
        decisions.extend(_process_fields(item.fields, options, owner=item.name))
    else:
        for variant in item.variants:
            owner = f"{item.name}::{variant.name}"
            decisions.extend(_process_fields(variant.fields, options, owner=owner))

    diagnostics = [d for decision in decisions for d in decision.diagnostics]
    log.debug("item.walked", name=item.name, fields=len(decisions), diagnostics=len(diagnostics))

    return ExpansionReport(
        item=None if diagnostics else item,
        decisions=decisions,
        diagnostics=diagnostics,
    )


def process_item(item: RustItem, options: ExpandOptions | None = None) -> RustItem:
    """Return the rewritten item, or raise ExpansionError with every diagnostic."""
    report = walk_item(item, options)
    if report.item is None:
        raise ExpansionError(report.diagnostics)
    return report.item


def expand(text: str, options: ExpandOptions | None = None) -> str:
    """Parse, rewrite and render a declaration."""
    return render(process_item(parse(text), options))


def check(text: str, options: ExpandOptions | None = None) -> ExpansionReport:
    """Parse and walk a declaration, reporting syntax errors as diagnostics."""
    try:
        item = parse(text)
    except ExpansionError as err:
        return ExpansionReport(item=None, decisions=[], diagnostics=err.diagnostics)
    return walk_item(item, options)
