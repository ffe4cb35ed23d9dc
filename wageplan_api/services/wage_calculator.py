"""Wage increase arithmetic.

Every salary is rounded half away from zero at the unit of currency before it
is summed. Budget totals are therefore sums of rounded per-employee salaries,
which can differ from rounding the exact total once:

    new_salary = round(current_salary * (1 + (base_up + merit) / 100))
    new_total  = Σ new_salary

All functions are pure and total over finite numeric input. Negative
percentages are valid decreases; range policy is enforced by the constraint
engine, not here.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..constants import LEVELS, PerformanceRating
from ..models.employee import EmployeeRecord
from ..models.wage import (
    BudgetCalculation,
    BudgetProjection,
    EmployeeSalaryCalculation,
    LevelBudget,
    RateProposal,
    WageIncreaseResult,
)

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]

_ONE = Decimal("1")
_HUNDRED = Decimal("100")


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps the shortest repr of a float, so 5.7 stays 5.7
    return Decimal(str(value))


def round_half_away_from_zero(value: Number) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(_to_decimal(value).quantize(_ONE, rounding=ROUND_HALF_UP))


def calculate_wage_increase(
    current_salary: Number,
    base_up_percentage: float,
    merit_increase_percentage: float,
) -> WageIncreaseResult:
    """
    Apply base-up and merit percentages to one salary.

    Args:
        current_salary: Salary before the increase
        base_up_percentage: Across-the-board increase (%)
        merit_increase_percentage: Performance-based increase (%)

    Returns:
        WageIncreaseResult with the total percentage, rounded new salary and delta
    """
    total_percentage = base_up_percentage + merit_increase_percentage
    rate = _to_decimal(base_up_percentage) + _to_decimal(merit_increase_percentage)
    salary = _to_decimal(current_salary)

    new_salary = round_half_away_from_zero(salary * (_ONE + rate / _HUNDRED))
    return WageIncreaseResult(
        total_percentage=total_percentage,
        new_salary=new_salary,
        increase_amount=new_salary - round_half_away_from_zero(salary),
    )


def _read(item: Any, name: str) -> Number:
    if isinstance(item, Mapping):
        return item[name]
    return getattr(item, name)


def calculate_total_budget(employees: Iterable[Any]) -> BudgetCalculation:
    """
    Sum current and suggested salaries across employees.

    Each item is a mapping or an object exposing ``current_salary`` and
    ``suggested_salary``. Values are rounded individually before summing.
    Empty input yields an all-zero result.
    """
    current_total = 0
    new_total = 0
    for employee in employees:
        current_total += round_half_away_from_zero(_read(employee, "current_salary"))
        new_total += round_half_away_from_zero(_read(employee, "suggested_salary"))

    difference = new_total - current_total
    percentage_increase = (difference / current_total * 100) if current_total else 0.0

    return BudgetCalculation(
        current_total=current_total,
        new_total=new_total,
        difference=difference,
        percentage_increase=percentage_increase,
    )


def weighted_merit(
    merit_increase_percentage: float,
    rating: Optional[PerformanceRating],
    weights: Optional[Mapping[PerformanceRating, float]] = None,
) -> float:
    """Merit scaled by the rating's weight; unrated employees get weight 1.0."""
    return merit_increase_percentage * performance_weight(rating, weights)


def performance_weight(
    rating: Optional[PerformanceRating],
    weights: Optional[Mapping[PerformanceRating, float]] = None,
) -> float:
    if rating is None or not weights:
        return 1.0
    return float(weights.get(rating, 1.0))


def calculate_employee_salary(
    record: EmployeeRecord,
    proposal: RateProposal,
    weights: Optional[Mapping[PerformanceRating, float]] = None,
) -> EmployeeSalaryCalculation:
    """Break one employee's increase into base-up and weighted merit amounts."""
    weight = performance_weight(record.performance_rating, weights)
    merit = proposal.merit_increase_percentage * weight
    result = calculate_wage_increase(record.current_salary, proposal.base_up_percentage, merit)

    base_up_amount = round_half_away_from_zero(
        _to_decimal(record.current_salary) * _to_decimal(proposal.base_up_percentage) / _HUNDRED
    )

    return EmployeeSalaryCalculation(
        employee_id=record.employee_id,
        name=record.name,
        level=record.level,
        performance_rating=record.performance_rating,
        current_salary=record.current_salary,
        base_up_percentage=proposal.base_up_percentage,
        merit_increase_percentage=merit,
        performance_weight=weight,
        total_percentage=result.total_percentage,
        base_up_amount=base_up_amount,
        merit_amount=result.increase_amount - base_up_amount,
        increase_amount=result.increase_amount,
        suggested_salary=result.new_salary,
    )


def project_budget(
    records: Iterable[EmployeeRecord],
    proposal: RateProposal,
    weights: Optional[Mapping[PerformanceRating, float]] = None,
) -> BudgetProjection:
    """Organization-wide and per-level budget for a proposal."""
    by_level: Dict[Any, List[EmployeeSalaryCalculation]] = {level: [] for level in LEVELS}
    everyone: List[EmployeeSalaryCalculation] = []

    for record in records:
        calc = calculate_employee_salary(record, proposal, weights)
        by_level[record.level].append(calc)
        everyone.append(calc)

    level_budgets = [
        LevelBudget(level=level, employee_count=len(calcs), budget=calculate_total_budget(calcs))
        for level, calcs in by_level.items()
        if calcs
    ]

    total = calculate_total_budget(everyone)
    logger.debug(
        f"Projected budget for {len(everyone)} employees: "
        f"{total.current_total} -> {total.new_total} ({total.percentage_increase:.2f}%)"
    )

    return BudgetProjection(
        base_up_percentage=proposal.base_up_percentage,
        merit_increase_percentage=proposal.merit_increase_percentage,
        total=total,
        by_level=level_budgets,
    )
