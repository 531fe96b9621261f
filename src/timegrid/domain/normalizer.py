"""Project -> tool -> charge code cascade."""

from dataclasses import replace
from typing import Sequence

from timegrid.domain.business_config import ReferenceData
from timegrid.domain.entities import (
    NOT_APPLICABLE,
    UNSET,
    MacroRow,
    TimesheetRow,
)


def normalize_row(row: TimesheetRow, reference: ReferenceData) -> TimesheetRow:
    """Apply the cascade rules to a row.

    Tool and charge code become not-applicable when the project does not need
    tools; the charge code becomes not-applicable when the tool does not need
    one. The result is deterministic and normalizing it again is a no-op.

    Args:
        row: Row to normalize
        reference: Cascade rules

    Returns:
        Normalized row (the same object when nothing changes)
    """
    tool = row.tool
    charge_code = row.charge_code

    if not reference.project_needs_tools(row.project):
        tool = NOT_APPLICABLE
        charge_code = NOT_APPLICABLE
    elif tool.is_not_applicable:
        # Project switched to one that needs tools: reopen the choice
        tool = UNSET

    if not reference.tool_needs_charge_code(tool.as_text()):
        charge_code = NOT_APPLICABLE
    elif charge_code.is_not_applicable:
        charge_code = UNSET

    if tool == row.tool and charge_code == row.charge_code:
        return row
    return replace(row, tool=tool, charge_code=charge_code)


def changed_fields(before: TimesheetRow, after: TimesheetRow) -> list[str]:
    """List the selection fields the cascade rewrote."""
    changed = []
    if before.tool != after.tool:
        changed.append("tool")
    if before.charge_code != after.charge_code:
        changed.append("charge_code")
    return changed


def is_macro_empty(macro: MacroRow) -> bool:
    """Check if a macro has no data at all."""
    return not (
        macro.time_in
        or macro.time_out
        or macro.project
        or macro.tool.is_value
        or macro.charge_code.is_value
        or macro.task_description
    )


def is_macro_valid(macro: MacroRow) -> bool:
    """Check if a macro has the minimum data to be applied (project and description)."""
    return bool(macro.project and macro.task_description)


def apply_macro(
    rows: Sequence[TimesheetRow],
    target_index: int,
    macro: MacroRow,
    reference: ReferenceData,
) -> list[TimesheetRow]:
    """Fill a row from a macro and normalize it.

    The target row keeps its id and date. Blank rows are appended when the
    target index is past the end of the grid.

    Args:
        rows: Current rows
        target_index: Row to fill
        macro: Template to apply
        reference: Cascade rules

    Returns:
        New list of rows
    """
    result = list(rows)
    while len(result) <= target_index:
        result.append(TimesheetRow())

    target = result[target_index]
    filled = replace(
        target,
        time_in=macro.time_in,
        time_out=macro.time_out,
        project=macro.project,
        tool=macro.tool,
        charge_code=macro.charge_code,
        task_description=macro.task_description,
    )
    result[target_index] = normalize_row(filled, reference)
    return result
