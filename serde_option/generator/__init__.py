"""serde-option expansion engine."""

from .errors import Diagnostic as Diagnostic
from .errors import DiagnosticKind as DiagnosticKind
from .errors import ExpansionError as ExpansionError
from .errors import ValidationError as ValidationError
from .fields import FieldDecision as FieldDecision
from .fields import Outcome as Outcome
from .fields import process_field as process_field
from .matcher import get_std_option as get_std_option
from .parser import parse as parse
from .parser import parse_type as parse_type
from .render import render as render
from .render import render_type as render_type
from .types import *
from .walker import ExpansionReport as ExpansionReport
from .walker import check as check
from .walker import expand as expand
from .walker import process_item as process_item
from .walker import walk_item as walk_item
