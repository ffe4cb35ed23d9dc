"""Closed enumerations and workbook vocabulary for WagePlan."""

from enum import Enum
from typing import Dict, Tuple


class Level(str, Enum):
    """Seniority tier, ordered from junior to senior."""

    LV1 = "Lv.1"
    LV2 = "Lv.2"
    LV3 = "Lv.3"
    LV4 = "Lv.4"


class PerformanceRating(str, Enum):
    """Performance rating, ordered from best to worst."""

    S = "S"
    A = "A"
    B = "B"
    C = "C"


# Declaration order is the canonical ordering everywhere
LEVELS: Tuple[Level, ...] = tuple(Level)
RATINGS: Tuple[PerformanceRating, ...] = tuple(PerformanceRating)

LEVEL_ORDER: Dict[Level, int] = {level: i for i, level in enumerate(LEVELS)}

# Job families in display order
DEFAULT_BANDS: Tuple[str, ...] = (
    "생산",
    "영업",
    "생산기술",
    "경영지원",
    "품질보증",
    "기획",
    "구매&물류",
    "Facility",
)

# Workbook sheets
ROSTER_SHEET_NAMES = ("직원기본정보", "Employees")
ROSTER_SHEET_KEYWORDS = ("직원", "employee")
COMPETITOR_SHEET_NAMES = ("C사인상률", "Competitor")
COMPETITOR_RATE_LABELS = ("C사 인상률(%)", "competitor_rate")
SETTINGS_SHEET_NAMES = ("AI설정", "AISettings")

# Label / value columns of the key-value sheets
LABEL_COLUMNS = ("항목", "item", "Item")
VALUE_COLUMNS = ("값", "value", "Value")

# AI settings sheet row labels -> RateRecommendation field
RECOMMENDATION_LABELS = {
    "Base-up(%)": "base_up_percentage",
    "성과인상률(%)": "merit_increase_percentage",
    "총인상률(%)": "total_percentage",
    "최소범위(%)": "min_range",
    "최대범위(%)": "max_range",
}

# Roster header aliases -> EmployeeRecord field
COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "employee_id": ("사번", "employee_id", "Employee ID", "EmployeeID", "ID"),
    "name": ("이름", "name", "Name"),
    "department": ("부서", "department", "Department"),
    "band": ("직군", "band", "Band"),
    "level": ("직급", "level", "Level"),
    "position": ("직책", "position", "Position"),
    "hire_date": ("입사일", "hire_date", "Hire Date"),
    "current_salary": ("현재연봉", "current_salary", "salary", "Salary"),
    "performance_rating": (
        "평가등급",
        "평가",
        "성과등급",
        "성과",
        "performance_rating",
        "Performance",
        "Rating",
    ),
}

REQUIRED_COLUMNS = ("employee_id", "name", "level", "current_salary")

# Label used for employees without a rating in distributions
UNRATED_LABEL = "unrated"
