"""
Shared test fixtures for WagePlan.

- workbooks.py: xlsxwriter builders for roster workbooks
- roster.py: in-memory records and a stub ingestor
"""

from .workbooks import (
    DEFAULT_EMPLOYEES,
    ROSTER_HEADER,
    roster_bytes,
    roster_sheets,
    workbook_bytes,
    write_roster,
    write_workbook,
)
from .roster import StubIngestor, make_record, records_from_rows

__all__ = [
    "DEFAULT_EMPLOYEES",
    "ROSTER_HEADER",
    "roster_bytes",
    "roster_sheets",
    "workbook_bytes",
    "write_roster",
    "write_workbook",
    "StubIngestor",
    "make_record",
    "records_from_rows",
]
