"""Paste ingestion: map a rectangular block of cells onto new rows."""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from timegrid.domain.business_config import ReferenceData
from timegrid.domain.entities import (
    FIELDS,
    MAX_TASK_DESCRIPTION_LENGTH,
    Selection,
    TimesheetRow,
)
from timegrid.domain.normalizer import normalize_row
from timegrid.utils.date_parser import normalize_date_input
from timegrid.utils.time_parser import format_time_input


log = logging.getLogger("timegrid.paste")

PASTE_COLUMNS = FIELDS

HEADER_TOKENS = (
    "date",
    "time in",
    "timein",
    "time out",
    "timeout",
    "project",
    "tool",
    "charge",
    "task",
)

# A single cell mentioning "task" or "tool" is common in real descriptions
MIN_HEADER_MATCHES = 2


@dataclass(frozen=True)
class PasteResult:
    """Rows after a paste and the indexes of the rows it added."""

    rows: list[TimesheetRow]
    added: list[int] = field(default_factory=list)
    problems: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.problems


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def validate_pasted_data(data: Sequence[Sequence[Any]]) -> list[str]:
    """Return the reasons a pasted block cannot be ingested."""
    problems = []
    if not data:
        problems.append("Pasted data is empty")
        return problems
    if not any(len(raw) for raw in data):
        problems.append("Pasted data has no columns")
    widest = max(len(raw) for raw in data)
    if widest > len(PASTE_COLUMNS):
        log.warning(
            "Pasted data has %d columns; columns past %d are ignored",
            widest,
            len(PASTE_COLUMNS),
        )
    return problems


def detect_header(first_row: Sequence[Any]) -> bool:
    """Check whether the first pasted row is a header row."""
    matches = 0
    for value in first_row:
        text = _cell(value).lower().replace("_", " ")
        if text and any(token in text for token in HEADER_TOKENS):
            matches += 1
    return matches >= MIN_HEADER_MATCHES


def map_pasted_row(raw: Sequence[Any], columns: Sequence[str] = PASTE_COLUMNS) -> TimesheetRow:
    """Map one pasted row positionally onto a transient row."""
    values = {name: _cell(raw[i]) if i < len(raw) else "" for i, name in enumerate(columns)}
    return TimesheetRow(
        id=str(uuid.uuid4()),
        date=normalize_date_input(values.get("date", "")),
        time_in=format_time_input(values.get("time_in", "")),
        time_out=format_time_input(values.get("time_out", "")),
        project=values.get("project", ""),
        tool=Selection.of(values.get("tool")),
        charge_code=Selection.of(values.get("charge_code")),
        task_description=values.get("task_description", "")[:MAX_TASK_DESCRIPTION_LENGTH],
    )


def parse_pasted_block(
    data: Sequence[Sequence[Any]],
    columns: Sequence[str] = PASTE_COLUMNS,
    reference: Optional[ReferenceData] = None,
) -> list[TimesheetRow]:
    """Turn a pasted block into new rows.

    The header row (if detected) is skipped, as are rows with no date and no
    times. Each row gets a fresh transient id and, given ``reference``, is
    normalized.

    Args:
        data: Rectangular block of cell values
        columns: Field key for each pasted column
        reference: Cascade rules

    Returns:
        List of new rows, in pasted order
    """
    if not data:
        return []

    start = 1 if detect_header(data[0]) else 0
    rows = []
    for raw in data[start:]:
        if not raw:
            continue
        row = map_pasted_row(raw, columns)
        if not (row.date or row.time_in or row.time_out):
            continue
        if reference is not None:
            row = normalize_row(row, reference)
        rows.append(row)
    return rows


def ingest_paste(
    existing_rows: Sequence[TimesheetRow],
    data: Sequence[Sequence[Any]],
    reference: ReferenceData,
) -> PasteResult:
    """Append the rows of a pasted block to the existing rows."""
    problems = validate_pasted_data(data)
    if problems:
        log.warning("Invalid paste data: %s", "; ".join(problems))
        return PasteResult(rows=list(existing_rows), problems=problems)

    new_rows = parse_pasted_block(data, reference=reference)
    start = len(existing_rows)
    log.info("Pasted %d row(s)", len(new_rows))
    return PasteResult(
        rows=list(existing_rows) + new_rows,
        added=list(range(start, start + len(new_rows))),
    )
