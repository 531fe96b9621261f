"""Domain layer for the timegrid application.

The scheduler and the session depend on the database interface and are
imported from their modules directly.
"""

from timegrid.domain.business_config import DEFAULT_REFERENCE_DATA, ReferenceData
from timegrid.domain.entities import (
    CellEdit,
    MacroRow,
    SaveState,
    Selection,
    TimesheetRow,
    ValidationError,
)
from timegrid.domain.normalizer import apply_macro, normalize_row
from timegrid.domain.overlap import check_time_order, find_overlaps
from timegrid.domain.paste import ingest_paste, parse_pasted_block
from timegrid.domain.quarters import QuarterWindow, allowed_date_range
from timegrid.domain.reconciler import ChangeReconciler, ChangeSource, merge_errors
from timegrid.domain.validators import validate_field

__all__ = [
    "DEFAULT_REFERENCE_DATA",
    "ReferenceData",
    "CellEdit",
    "MacroRow",
    "SaveState",
    "Selection",
    "TimesheetRow",
    "ValidationError",
    "apply_macro",
    "normalize_row",
    "check_time_order",
    "find_overlaps",
    "ingest_paste",
    "parse_pasted_block",
    "QuarterWindow",
    "allowed_date_range",
    "ChangeReconciler",
    "ChangeSource",
    "merge_errors",
    "validate_field",
]
