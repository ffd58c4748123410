"""Roster CSV parsing for course imports.

The first row is a header. Columns are matched by name so exports from
different spreadsheet tools can be imported without reordering.
"""
from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import Optional

from ..core.exceptions import ValidationError

_HEADER_ALIASES = {
    "student_id": ("studentid", "student_id", "student id", "學號", "学号"),
    "name": ("name", "username", "student name", "姓名"),
    "department": ("department", "dept", "院系", "系所"),
    "class_name": ("class", "class_name", "班級", "班级"),
}


@dataclass(frozen=True)
class CsvRow:
    line_no: int
    student_id: str
    name: str
    department: str
    class_name: str


def _column_index(header: list[str]) -> dict[str, Optional[int]]:
    normalized = [h.strip().lower() for h in header]
    found: dict[str, Optional[int]] = {}
    for key, aliases in _HEADER_ALIASES.items():
        found[key] = next((i for i, h in enumerate(normalized) if h in aliases), None)
    return found


def parse_roster_csv(text: str) -> list[CsvRow]:
    """Parse CSV text into rows; requires a header and one data row.

    Without a recognised student id column the first column is used.
    """
    reader = csv.reader(io.StringIO((text or "").lstrip("\ufeff")))
    # number rows by their line in the file, before blank lines are dropped
    lines = [(reader.line_num, row) for row in reader if any(c.strip() for c in row)]
    if len(lines) < 2:
        raise ValidationError("CSV must contain a header and at least one data row")

    idx = _column_index(lines[0][1])
    if idx["student_id"] is None:
        idx["student_id"] = 0

    def cell(row: list[str], key: str) -> str:
        i = idx[key]
        if i is None or i >= len(row):
            return ""
        return row[i].strip()

    return [
        CsvRow(
            line_no=n,
            student_id=cell(row, "student_id"),
            name=cell(row, "name"),
            department=cell(row, "department"),
            class_name=cell(row, "class_name"),
        )
        for n, row in lines[1:]
    ]
