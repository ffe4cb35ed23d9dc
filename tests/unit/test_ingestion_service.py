"""Tests for workbook ingestion: sheet discovery, row decoding and candidate fallback."""

from datetime import date

import pytest

from tests.fixtures.workbooks import (
    DEFAULT_EMPLOYEES,
    roster_bytes,
    roster_sheets,
    workbook_bytes,
    write_roster,
)
from wageplan_api.constants import Level, PerformanceRating
from wageplan_api.exceptions import (
    DataSourceError,
    DuplicateEmployeeError,
    InvalidEnumerationError,
    InvalidValueError,
    MissingFieldError,
    ValidationError,
)
from wageplan_api.services.ingestion_service import (
    WorkbookIngestor,
    coerce_date,
    coerce_level,
    coerce_rating,
    coerce_salary,
)


@pytest.fixture
def ingestor(settings):
    return WorkbookIngestor(settings)


def employee(employee_id="E100", level="Lv.1", salary=50_000_000, rating="B", hire=date(2020, 1, 1)):
    return [employee_id, "홍길동", "생산팀", "생산", level, "사원", hire, salary, rating]


# =============================================================================
# Cell coercion
# =============================================================================


class TestCoercion:
    def test_salary_accepts_numbers_and_formatted_strings(self):
        assert coerce_salary(50_000_000) == 50_000_000
        assert coerce_salary(50_000_000.0) == 50_000_000
        assert coerce_salary("52,000,000") == 52_000_000
        assert coerce_salary(1234.5) == 1235

    def test_salary_rejects_garbage_and_negatives(self):
        with pytest.raises(InvalidValueError):
            coerce_salary("abc", row_number=3)
        with pytest.raises(InvalidValueError):
            coerce_salary(-1)

    def test_blank_salary_is_missing(self):
        with pytest.raises(MissingFieldError):
            coerce_salary("  ")

    @pytest.mark.parametrize(
        "value",
        ["2020-03-02", "2020.03.02", "2020/03/02", "2020-03-02 00:00:00", "20200302"],
    )
    def test_date_string_formats(self, value):
        assert coerce_date(value) == date(2020, 3, 2)

    def test_excel_serial_date(self):
        assert coerce_date(43891) == date(2020, 3, 1)
        assert coerce_date(43891.0) == date(2020, 3, 1)

    def test_yyyymmdd_typed_as_number(self):
        assert coerce_date(20230101) == date(2023, 1, 1)
        assert coerce_date(20230101.0) == date(2023, 1, 1)

    @pytest.mark.parametrize("value", [10**12, 99999999, "99999999999", float("inf")])
    def test_out_of_range_numeric_date(self, value):
        with pytest.raises(InvalidValueError) as exc_info:
            coerce_date(value, row_number=4)
        assert exc_info.value.field_name == "hire_date"
        assert exc_info.value.row_number == 4

    def test_blank_date_is_none(self):
        assert coerce_date(None) is None
        assert coerce_date("") is None

    def test_unparseable_date(self):
        with pytest.raises(InvalidValueError):
            coerce_date("next tuesday")

    def test_level_is_case_insensitive_but_closed(self):
        assert coerce_level("lv.2") is Level.LV2
        with pytest.raises(InvalidEnumerationError) as exc_info:
            coerce_level("Lv.9", row_number=5)
        assert exc_info.value.row_number == 5
        assert exc_info.value.field_name == "level"

    def test_rating_blank_is_unrated(self):
        assert coerce_rating(None) is None
        assert coerce_rating(" a ") is PerformanceRating.A
        with pytest.raises(InvalidEnumerationError):
            coerce_rating("D")


# =============================================================================
# Workbook parsing
# =============================================================================


class TestParseWorkbook:
    def test_standard_workbook(self, ingestor):
        result = ingestor.parse_workbook(roster_bytes(), "roster.xlsx")

        assert len(result.records) == len(DEFAULT_EMPLOYEES)
        assert result.sheet_name == "직원기본정보"
        assert result.skipped_rows == 0
        assert result.competitor_rate == pytest.approx(4.6)
        assert result.recommendation is None

        first = {r.employee_id: r for r in result.records}["E001"]
        assert first.name == "김민수"
        assert first.level is Level.LV1
        assert first.performance_rating is PerformanceRating.A
        assert first.current_salary == 50_000_000
        assert first.hire_date == date(2020, 3, 2)

    def test_blank_rating_is_kept_as_unrated(self, ingestor):
        result = ingestor.parse_workbook(roster_bytes(), "roster.xlsx")

        assert {r.employee_id: r for r in result.records}["E006"].performance_rating is None

    def test_reads_from_path(self, ingestor, tmp_path):
        path = write_roster(tmp_path / "roster.xlsx")

        result = ingestor.parse_workbook(path)

        assert result.source_path == str(path)
        assert len(result.records) == len(DEFAULT_EMPLOYEES)

    def test_english_sheet_and_headers(self, ingestor):
        header = ["Employee ID", "Name", "Department", "Band", "Level", "Position", "Hire Date", "Salary", "Rating"]
        content = roster_bytes(roster_sheet="Employees", header=header, competitor_rate=None)

        result = ingestor.parse_workbook(content, "roster.xlsx")

        assert result.sheet_name == "Employees"
        assert len(result.records) == len(DEFAULT_EMPLOYEES)
        assert result.competitor_rate is None

    def test_sheet_found_by_keyword(self, ingestor):
        content = roster_bytes(roster_sheet="2024 직원 명단")

        result = ingestor.parse_workbook(content, "roster.xlsx")

        assert result.sheet_name == "2024 직원 명단"

    def test_no_roster_sheet(self, ingestor):
        content = workbook_bytes({"Sheet1": [["a", "b"], [1, 2]]})

        with pytest.raises(DataSourceError, match="roster sheet"):
            ingestor.parse_workbook(content, "roster.xlsx")

    def test_missing_required_column(self, ingestor):
        header = ["사번", "이름", "부서", "직군", "직급", "직책", "입사일", "비고", "평가등급"]

        with pytest.raises(DataSourceError, match="current_salary"):
            ingestor.parse_workbook(roster_bytes(header=header), "roster.xlsx")

    def test_unreadable_bytes(self, ingestor):
        with pytest.raises(DataSourceError) as exc_info:
            ingestor.parse_workbook(b"this is not a workbook", "broken.xlsx")
        assert exc_info.value.original_exception is not None

    def test_rows_without_id_are_skipped_and_counted(self, ingestor):
        rows = [employee("E100"), employee(None), employee("E101"), employee("  ")]

        result = ingestor.parse_workbook(roster_bytes(employees=rows), "roster.xlsx")

        assert [r.employee_id for r in result.records] == ["E100", "E101"]
        assert result.skipped_rows == 2

    def test_rows_without_name_are_skipped_and_counted(self, ingestor):
        nameless = employee("E100")
        nameless[1] = None
        named = employee("E101")
        named[1] = "이"

        result = ingestor.parse_workbook(roster_bytes(employees=[nameless, named]), "roster.xlsx")

        assert [(r.employee_id, r.name) for r in result.records] == [("E101", "이")]
        assert result.skipped_rows == 1

    def test_numeric_yyyymmdd_hire_date(self, ingestor):
        rows = [employee("E100", hire=20230101)]

        result = ingestor.parse_workbook(roster_bytes(employees=rows), "roster.xlsx")

        assert result.records[0].hire_date == date(2023, 1, 1)

    def test_out_of_range_hire_date_is_a_validation_error(self, ingestor):
        rows = [employee("E100", hire=10**12)]

        with pytest.raises(InvalidValueError) as exc_info:
            ingestor.parse_workbook(roster_bytes(employees=rows), "roster.xlsx")

        assert exc_info.value.field_name == "hire_date"
        assert exc_info.value.row_number == 2

    def test_header_only_roster_is_a_data_source_error(self, ingestor):
        with pytest.raises(DataSourceError):
            ingestor.parse_workbook(roster_bytes(employees=[]), "roster.xlsx")

    def test_unknown_level_fails_whole_load(self, ingestor):
        rows = [employee("E100", level="Lv.9"), employee("E101")]

        with pytest.raises(InvalidEnumerationError) as exc_info:
            ingestor.parse_workbook(roster_bytes(employees=rows), "roster.xlsx")

        assert exc_info.value.row_number == 2
        assert exc_info.value.value == "Lv.9"

    def test_unknown_rating_fails_whole_load(self, ingestor):
        rows = [employee("E100"), employee("E101", rating="X")]

        with pytest.raises(InvalidEnumerationError) as exc_info:
            ingestor.parse_workbook(roster_bytes(employees=rows), "roster.xlsx")

        assert exc_info.value.field_name == "performance_rating"
        assert exc_info.value.row_number == 3

    def test_blank_level_is_missing_field(self, ingestor):
        rows = [employee("E100", level=None)]

        with pytest.raises(MissingFieldError):
            ingestor.parse_workbook(roster_bytes(employees=rows), "roster.xlsx")

    def test_duplicate_employee_id(self, ingestor):
        rows = [employee("E100"), employee("E100")]

        with pytest.raises(DuplicateEmployeeError) as exc_info:
            ingestor.parse_workbook(roster_bytes(employees=rows), "roster.xlsx")

        assert exc_info.value.row_number == 3

    def test_text_salaries_and_dates(self, ingestor):
        rows = [
            employee("E100", salary="52,000,000", hire="2019.04.01"),
            employee("E101", salary="48000000", hire="2021/07/15"),
        ]

        result = ingestor.parse_workbook(roster_bytes(employees=rows), "roster.xlsx")

        by_id = {r.employee_id: r for r in result.records}
        assert by_id["E100"].current_salary == 52_000_000
        assert by_id["E100"].hire_date == date(2019, 4, 1)
        assert by_id["E101"].hire_date == date(2021, 7, 15)

    def test_non_numeric_salary(self, ingestor):
        rows = [employee("E100", salary="미정")]

        with pytest.raises(InvalidValueError):
            ingestor.parse_workbook(roster_bytes(employees=rows), "roster.xlsx")

    def test_validation_errors_share_a_base_class(self, ingestor):
        rows = [employee("E100", level="Lv.0")]

        with pytest.raises(ValidationError):
            ingestor.parse_workbook(roster_bytes(employees=rows), "roster.xlsx")


class TestSideSheets:
    def test_recommendation_sheet(self, ingestor):
        content = roster_bytes(
            recommendation={
                "Base-up(%)": 3.0,
                "성과인상률(%)": 2.0,
                "총인상률(%)": 5.0,
                "최소범위(%)": 4.8,
                "최대범위(%)": 5.2,
            }
        )

        result = ingestor.parse_workbook(content, "roster.xlsx")

        rec = result.recommendation
        assert rec.base_up_percentage == 3.0
        assert rec.merit_increase_percentage == 2.0
        assert rec.total_percentage == 5.0
        assert rec.min_range == 4.8
        assert rec.max_range == 5.2

    def test_recommendation_missing_rows_use_defaults(self, ingestor, settings):
        content = roster_bytes(recommendation={"Base-up(%)": 4.0})

        rec = ingestor.parse_workbook(content, "roster.xlsx").recommendation

        assert rec.base_up_percentage == 4.0
        assert rec.merit_increase_percentage == settings.default_merit_increase_percentage
        assert rec.total_percentage == pytest.approx(4.0 + settings.default_merit_increase_percentage)
        assert rec.min_range == settings.default_min_range

    def test_competitor_sheet_without_rate_row(self, ingestor):
        sheets = roster_sheets(competitor_rate=None)
        sheets["C사인상률"] = [["항목", "값"], ["다른 항목", 1.0]]

        result = ingestor.parse_workbook(workbook_bytes(sheets), "roster.xlsx")

        assert result.competitor_rate is None


# =============================================================================
# Candidate fallback
# =============================================================================


class TestLoadFirstAvailable:
    def test_skips_missing_candidates(self, ingestor, tmp_path):
        missing = tmp_path / "missing.xlsx"
        present = write_roster(tmp_path / "present.xlsx")

        result = ingestor.load_first_available([missing, present])

        assert result.source_path == str(present)
        assert result.attempted_paths == [(str(missing), "not found")]

    def test_skips_unreadable_candidates(self, ingestor, tmp_path):
        broken = tmp_path / "broken.xlsx"
        broken.write_bytes(b"garbage")
        present = write_roster(tmp_path / "present.xlsx")

        result = ingestor.load_first_available([broken, present])

        assert result.source_path == str(present)
        assert result.attempted_paths[0][0] == str(broken)

    def test_first_readable_candidate_wins(self, ingestor, tmp_path):
        first = write_roster(tmp_path / "first.xlsx", employees=[employee("E100")])
        second = write_roster(tmp_path / "second.xlsx")

        result = ingestor.load_first_available([first, second])

        assert [r.employee_id for r in result.records] == ["E100"]

    def test_all_candidates_fail(self, ingestor, tmp_path):
        candidates = [tmp_path / "a.xlsx", tmp_path / "b.xlsx"]

        with pytest.raises(DataSourceError) as exc_info:
            ingestor.load_first_available(candidates)

        assert [path for path, _ in exc_info.value.attempted_paths] == [str(p) for p in candidates]

    def test_invalid_rows_are_not_masked_by_fallback(self, ingestor, tmp_path):
        corrupt = write_roster(tmp_path / "corrupt.xlsx", employees=[employee("E100", level="Lv.7")])
        valid = write_roster(tmp_path / "valid.xlsx")

        with pytest.raises(InvalidEnumerationError):
            ingestor.load_first_available([corrupt, valid])
