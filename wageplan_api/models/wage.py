"""Wage increase and budget models."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..constants import Level, PerformanceRating


class RateProposal(BaseModel):
    """Base-up and merit percentages applied to a salary.

    Values are unbounded here; range policy belongs to the constraint engine.
    """

    base_up_percentage: float = Field(..., description="Across-the-board increase (%)")
    merit_increase_percentage: float = Field(..., description="Performance-based increase (%)")


class RateRecommendation(BaseModel):
    """Recommended rates read from the workbook's AI settings sheet."""

    base_up_percentage: float = Field(..., description="Recommended base-up (%)")
    merit_increase_percentage: float = Field(..., description="Recommended merit increase (%)")
    total_percentage: float = Field(..., description="Recommended total increase (%)")
    min_range: float = Field(..., description="Lower bound of the recommended total (%)")
    max_range: float = Field(..., description="Upper bound of the recommended total (%)")

    def to_proposal(self) -> RateProposal:
        return RateProposal(
            base_up_percentage=self.base_up_percentage,
            merit_increase_percentage=self.merit_increase_percentage,
        )


class WageIncreaseResult(BaseModel):
    """Result of applying a rate proposal to one salary."""

    total_percentage: float
    new_salary: int
    increase_amount: int


class BudgetCalculation(BaseModel):
    """Aggregate of current and suggested salaries."""

    current_total: int = Field(default=0)
    new_total: int = Field(default=0)
    difference: int = Field(default=0)
    percentage_increase: float = Field(default=0.0, description="difference / current_total * 100")


class EmployeeSalaryCalculation(BaseModel):
    """Per-employee breakdown of a proposal."""

    employee_id: str
    name: str
    level: Level
    performance_rating: Optional[PerformanceRating] = None
    current_salary: int
    base_up_percentage: float
    merit_increase_percentage: float = Field(..., description="Merit after the rating weight")
    performance_weight: float
    total_percentage: float
    base_up_amount: int
    merit_amount: int
    increase_amount: int
    suggested_salary: int


class WeightedProposal(BaseModel):
    """Request body: a rate proposal with optional per-rating merit weights."""

    base_up_percentage: Optional[float] = Field(
        None, description="Base-up (%); recommendation used when omitted"
    )
    merit_increase_percentage: Optional[float] = Field(
        None, description="Merit (%); recommendation used when omitted"
    )
    performance_weights: Optional[Dict[PerformanceRating, float]] = Field(
        None, description="Merit multiplier per rating; configured weights used when omitted"
    )


class LevelBudget(BaseModel):
    """Budget figures for one level."""

    level: Level
    employee_count: int
    budget: BudgetCalculation


class BudgetProjection(BaseModel):
    """Organization-wide budget for a proposal with a per-level breakdown."""

    base_up_percentage: float
    merit_increase_percentage: float
    total: BudgetCalculation
    by_level: List[LevelBudget] = Field(default_factory=list)
