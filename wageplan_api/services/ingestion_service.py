"""Workbook ingestion for employee rosters.

Reads every sheet of an Excel workbook with polars (calamine engine) and
decodes the roster sheet strictly into EmployeeRecord values. Two optional
key/value sheets ride along in the same workbook: the competitor increase
rate and the AI rate recommendation.
"""

import io
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import polars as pl

from ..config import AppSettings, get_settings
from ..constants import (
    COLUMN_ALIASES,
    COMPETITOR_RATE_LABELS,
    COMPETITOR_SHEET_NAMES,
    LABEL_COLUMNS,
    LEVELS,
    RATINGS,
    RECOMMENDATION_LABELS,
    REQUIRED_COLUMNS,
    ROSTER_SHEET_KEYWORDS,
    ROSTER_SHEET_NAMES,
    SETTINGS_SHEET_NAMES,
    VALUE_COLUMNS,
    Level,
    PerformanceRating,
)
from ..exceptions import (
    DataSourceError,
    DuplicateEmployeeError,
    InvalidEnumerationError,
    InvalidValueError,
    MissingFieldError,
)
from ..models.employee import EmployeeRecord
from ..models.wage import RateRecommendation
from .wage_calculator import round_half_away_from_zero

logger = logging.getLogger(__name__)

# Excel's day zero for serial dates (accounts for the 1900 leap year bug)
EXCEL_EPOCH = date(1899, 12, 30)

DATE_FORMATS = ("%Y-%m-%d", "%Y.%m.%d", "%Y/%m/%d", "%Y%m%d", "%Y-%m-%d %H:%M:%S", "%Y.%m.%d.")

WorkbookSource = Union[bytes, Path]


@dataclass
class IngestionResult:
    """Decoded contents of one workbook."""

    records: List[EmployeeRecord]
    source_path: str
    sheet_name: str
    skipped_rows: int = 0
    competitor_rate: Optional[float] = None
    recommendation: Optional[RateRecommendation] = None
    attempted_paths: List[Tuple[str, str]] = field(default_factory=list)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_text(value: Any) -> str:
    """Render a cell as text; integral floats lose their '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _parse_number(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, (int, float, Decimal)):
        return Decimal(str(value))
    text = str(value).strip().replace(",", "").replace("%", "").replace("₩", "").replace("원", "")
    try:
        return Decimal(text)
    except InvalidOperation:
        raise ValueError(f"not a number: {value!r}")


def coerce_salary(value: Any, row_number: Optional[int] = None) -> int:
    """Non-negative integer salary; fractional values round half away from zero."""
    if _is_blank(value):
        raise MissingFieldError("current_salary", row_number=row_number)
    try:
        amount = _parse_number(value)
    except ValueError as e:
        raise InvalidValueError(
            "Salary is not numeric", row_number=row_number, field_name="current_salary", value=value,
            original_exception=e,
        )
    if not amount.is_finite() or amount < 0:
        raise InvalidValueError(
            "Salary must be a non-negative number",
            row_number=row_number,
            field_name="current_salary",
            value=value,
        )
    return round_half_away_from_zero(amount)


def coerce_date(value: Any, row_number: Optional[int] = None) -> Optional[date]:
    """Hire date from a date cell, a string, or an Excel serial number."""
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # 20230101 typed as a number rather than a date cell
        if float(value).is_integer() and len(str(int(value))) == 8:
            try:
                return datetime.strptime(str(int(value)), "%Y%m%d").date()
            except ValueError:
                pass
        return _serial_date(value, value, row_number)

    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        serial = float(text)
    except ValueError:
        raise InvalidValueError(
            "Unrecognized hire date", row_number=row_number, field_name="hire_date", value=value
        )
    return _serial_date(serial, value, row_number)


def _serial_date(serial: float, value: Any, row_number: Optional[int]) -> date:
    try:
        return EXCEL_EPOCH + timedelta(days=int(serial))
    except (OverflowError, ValueError) as e:
        raise InvalidValueError(
            "Hire date is out of range", row_number=row_number, field_name="hire_date", value=value,
            original_exception=e,
        )


def coerce_level(value: Any, row_number: Optional[int] = None) -> Level:
    if _is_blank(value):
        raise MissingFieldError("level", row_number=row_number)
    text = str(value).strip()
    for level in LEVELS:
        if text.lower() == level.value.lower():
            return level
    raise InvalidEnumerationError("level", text, [lv.value for lv in LEVELS], row_number=row_number)


def coerce_rating(value: Any, row_number: Optional[int] = None) -> Optional[PerformanceRating]:
    if _is_blank(value):
        return None
    text = str(value).strip().upper()
    for rating in RATINGS:
        if text == rating.value:
            return rating
    raise InvalidEnumerationError(
        "performance_rating", str(value).strip(), [r.value for r in RATINGS], row_number=row_number
    )


class WorkbookIngestor:
    """Parses roster workbooks into EmployeeRecord values."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self.settings = settings or get_settings()

    # -------------------------------------------------------------------------
    # Workbook reading
    # -------------------------------------------------------------------------

    def read_sheets(self, source: WorkbookSource, source_label: str) -> Dict[str, pl.DataFrame]:
        """
        Read all sheets of a workbook.

        Raises:
            DataSourceError: If the workbook cannot be opened or parsed
        """
        try:
            payload = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
            sheets = pl.read_excel(payload, sheet_id=0, engine="calamine", raise_if_empty=False)
        except Exception as e:
            raise DataSourceError(
                f"Failed to read workbook: {source_label}",
                context={"source": source_label},
                original_exception=e,
            )
        logger.debug(f"Read {len(sheets)} sheet(s) from {source_label}: {list(sheets)}")
        return sheets

    @staticmethod
    def find_roster_sheet(sheet_names: Iterable[str]) -> Optional[str]:
        """Exact known name first, then the first sheet whose name mentions employees."""
        names = list(sheet_names)
        for candidate in ROSTER_SHEET_NAMES:
            if candidate in names:
                return candidate
        for name in names:
            lowered = name.lower()
            if any(keyword in lowered for keyword in ROSTER_SHEET_KEYWORDS):
                return name
        return None

    @staticmethod
    def _find_sheet(sheets: Dict[str, pl.DataFrame], candidates: Sequence[str]) -> Optional[pl.DataFrame]:
        for name in candidates:
            if name in sheets:
                return sheets[name]
        lowered = {name.lower(): df for name, df in sheets.items()}
        for name in candidates:
            if name.lower() in lowered:
                return lowered[name.lower()]
        return None

    @staticmethod
    def resolve_columns(columns: Sequence[str]) -> Dict[str, str]:
        """Map EmployeeRecord fields to the workbook's header names."""
        by_key = {str(col).strip().lower(): col for col in columns}
        resolved: Dict[str, str] = {}
        for field_name, aliases in COLUMN_ALIASES.items():
            for alias in aliases:
                column = by_key.get(alias.lower())
                if column is not None:
                    resolved[field_name] = column
                    break
        return resolved

    # -------------------------------------------------------------------------
    # Roster decoding
    # -------------------------------------------------------------------------

    def decode_roster(self, df: pl.DataFrame, source_label: str) -> Tuple[List[EmployeeRecord], int]:
        """
        Decode roster rows into records.

        Returns:
            Tuple of (records, skipped_rows)

        Raises:
            DataSourceError: If required columns are missing
            ValidationError: On the first malformed row
        """
        columns = self.resolve_columns(df.columns)
        missing = [name for name in REQUIRED_COLUMNS if name not in columns]
        if missing:
            raise DataSourceError(
                f"Roster is missing required column(s): {', '.join(missing)}",
                context={"source": source_label, "found_columns": list(df.columns)},
            )

        records: List[EmployeeRecord] = []
        seen: Dict[str, int] = {}
        skipped = 0

        # Header occupies worksheet row 1
        for index, row in enumerate(df.iter_rows(named=True)):
            row_number = index + 2

            def cell(field_name: str) -> Any:
                column = columns.get(field_name)
                return row.get(column) if column is not None else None

            raw_id = cell("employee_id")
            name = cell("name")
            if _is_blank(raw_id) or _is_blank(name):
                skipped += 1
                continue
            employee_id = _as_text(raw_id)

            if employee_id in seen:
                raise DuplicateEmployeeError(employee_id, row_number=row_number)
            seen[employee_id] = row_number

            position = cell("position")
            try:
                record = EmployeeRecord(
                    employee_id=employee_id,
                    name=_as_text(name),
                    department="" if _is_blank(cell("department")) else _as_text(cell("department")),
                    band="" if _is_blank(cell("band")) else _as_text(cell("band")),
                    level=coerce_level(cell("level"), row_number),
                    performance_rating=coerce_rating(cell("performance_rating"), row_number),
                    position=None if _is_blank(position) else _as_text(position),
                    current_salary=coerce_salary(cell("current_salary"), row_number),
                    hire_date=coerce_date(cell("hire_date"), row_number),
                )
            except ValueError as e:
                # pydantic rejected a value the coercers let through
                raise InvalidValueError(
                    "Row failed validation", row_number=row_number, original_exception=e
                )
            records.append(record)

        if skipped:
            logger.info(f"Skipped {skipped} row(s) without an employee id or name in {source_label}")
        return records, skipped

    # -------------------------------------------------------------------------
    # Key/value sheets
    # -------------------------------------------------------------------------

    @staticmethod
    def read_key_values(df: pl.DataFrame) -> Dict[str, Any]:
        """Label -> value pairs from a two-column sheet.

        Uses the 항목/값 (item/value) headers when present, else the first two
        columns. A headerless sheet contributes its header row as a pair too.
        """
        if df.width < 2:
            return {}
        header = {str(col).strip(): col for col in df.columns}
        label_col = next((header[c] for c in LABEL_COLUMNS if c in header), df.columns[0])
        value_col = next((header[c] for c in VALUE_COLUMNS if c in header), df.columns[1])

        pairs: Dict[str, Any] = {}
        if label_col == df.columns[0] and str(label_col).strip() not in LABEL_COLUMNS:
            pairs[str(df.columns[0]).strip()] = df.columns[1]
        for label, value in zip(df[label_col].to_list(), df[value_col].to_list()):
            if not _is_blank(label):
                pairs.setdefault(_as_text(label), value)
        return pairs

    @staticmethod
    def _to_float(label: str, value: Any) -> Optional[float]:
        if _is_blank(value):
            return None
        try:
            return float(_parse_number(value))
        except ValueError:
            logger.warning(f"Ignoring non-numeric value for '{label}': {value!r}")
            return None

    def parse_competitor_rate(self, sheets: Dict[str, pl.DataFrame]) -> Optional[float]:
        """Competitor increase rate, or None when the sheet or row is absent."""
        df = self._find_sheet(sheets, COMPETITOR_SHEET_NAMES)
        if df is None:
            return None
        pairs = self.read_key_values(df)
        for label in COMPETITOR_RATE_LABELS:
            if label in pairs:
                return self._to_float(label, pairs[label])
        return None

    def parse_recommendation(self, sheets: Dict[str, pl.DataFrame]) -> Optional[RateRecommendation]:
        """AI rate recommendation; missing rows fall back to configured defaults."""
        df = self._find_sheet(sheets, SETTINGS_SHEET_NAMES)
        if df is None:
            return None
        pairs = self.read_key_values(df)
        values: Dict[str, float] = {}
        for label, field_name in RECOMMENDATION_LABELS.items():
            if label in pairs:
                parsed = self._to_float(label, pairs[label])
                if parsed is not None:
                    values[field_name] = parsed

        s = self.settings
        base_up = values.get("base_up_percentage", s.default_base_up_percentage)
        merit = values.get("merit_increase_percentage", s.default_merit_increase_percentage)
        return RateRecommendation(
            base_up_percentage=base_up,
            merit_increase_percentage=merit,
            total_percentage=values.get("total_percentage", base_up + merit),
            min_range=values.get("min_range", s.default_min_range),
            max_range=values.get("max_range", s.default_max_range),
        )

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def parse_workbook(self, source: WorkbookSource, source_label: Optional[str] = None) -> IngestionResult:
        """
        Parse one workbook into roster records and side-channel scalars.

        Args:
            source: Workbook bytes or a path to the workbook
            source_label: Name used in logs and results (defaults to the path)

        Returns:
            IngestionResult

        Raises:
            DataSourceError: Unreadable workbook, no roster sheet, missing columns or no rows
            ValidationError: Malformed row (unknown level/rating, bad salary/date, duplicate id)
        """
        label = source_label or str(source if isinstance(source, Path) else "<upload>")
        sheets = self.read_sheets(source, label)

        sheet_name = self.find_roster_sheet(sheets.keys())
        if sheet_name is None:
            raise DataSourceError(
                "No employee roster sheet found",
                context={"source": label, "sheets": list(sheets.keys())},
            )
        logger.info(f"Using roster sheet '{sheet_name}' from {label}")

        records, skipped = self.decode_roster(sheets[sheet_name], label)
        if not records:
            raise DataSourceError("no employee rows", context={"source": label, "sheet": sheet_name})

        competitor_rate = self.parse_competitor_rate(sheets)
        recommendation = self.parse_recommendation(sheets)
        logger.info(
            f"Parsed {len(records)} employees from {label} "
            f"(skipped={skipped}, competitor_rate={competitor_rate}, "
            f"recommendation={'yes' if recommendation else 'no'})"
        )

        return IngestionResult(
            records=records,
            source_path=label,
            sheet_name=sheet_name,
            skipped_rows=skipped,
            competitor_rate=competitor_rate,
            recommendation=recommendation,
        )

    def load_first_available(self, candidates: Sequence[Path]) -> IngestionResult:
        """
        Load the first readable workbook among candidate paths.

        Missing or unreadable candidates are logged and skipped. A validation
        error in a readable workbook stops the search.

        Raises:
            DataSourceError: If every candidate failed (all attempts listed)
            ValidationError: If a readable workbook holds malformed rows
        """
        attempts: List[Tuple[str, str]] = []
        for path in candidates:
            logger.debug(f"Trying employee data source: {path}")
            if not path.is_file():
                attempts.append((str(path), "not found"))
                logger.info(f"Employee data source not found: {path}")
                continue
            try:
                result = self.parse_workbook(path, str(path))
            except DataSourceError as e:
                attempts.append((str(path), e.message))
                logger.warning(f"Employee data source unusable: {path}: {e.message}")
                continue
            result.attempted_paths = attempts
            logger.info(f"Loaded employee data from {path}")
            return result

        raise DataSourceError("No readable employee workbook found", attempted_paths=attempts)
