"""Pydantic models for the pay band (band x level) matrix.

Cells describe the pay of one job family at one level and carry the user's
in-progress base-up adjustment. The constraint engine validates a list of
cells and returns violations as data.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..constants import Level


class BandLevelCell(BaseModel):
    """One (band, level) cell of the adjustment matrix."""

    band: str = Field(..., description="Job family")
    level: Level = Field(..., description="Seniority level")
    headcount: int = Field(..., ge=0, description="Employees in the cell")
    mean_base_pay: float = Field(..., ge=0, description="Mean current salary")
    base_up_rate: float = Field(..., description="Current base-up rate (%)")
    adjusted_base_up_rate: Optional[float] = Field(
        None, description="Proposed base-up rate (%) while a user edits the matrix"
    )
    sbl_index: Optional[int] = Field(None, description="Competitiveness vs. SBL benchmark")
    ca_index: Optional[int] = Field(None, description="Competitiveness vs. CA benchmark")
    competitiveness: Optional[float] = Field(
        None, description="mean_base_pay / market median * 100"
    )
    min_salary: Optional[int] = None
    q1_salary: Optional[float] = None
    median_salary: Optional[float] = None
    q3_salary: Optional[float] = None
    max_salary: Optional[int] = None
    base_up_krw: Optional[int] = Field(None, description="round(mean_base_pay * base_up_rate / 100)")

    @property
    def effective_rate(self) -> float:
        """Adjusted rate when set, else the current rate."""
        if self.adjusted_base_up_rate is not None:
            return self.adjusted_base_up_rate
        return self.base_up_rate


class BandSummary(BaseModel):
    """Roll-up of a band's cells."""

    band: str
    total_headcount: int
    average_base_up_rate: float = Field(..., description="Headcount-weighted base-up rate (%)")
    average_sbl_index: float
    average_ca_index: float
    budget_impact: float = Field(..., description="Σ headcount x mean x rate / 100")


class BandMatrix(BaseModel):
    """Band x level matrix built from a roster snapshot."""

    generation: int = Field(..., description="Snapshot generation the matrix was built from")
    base_up_rate: float = Field(..., description="Rate applied to every cell (%)")
    bands: List[str] = Field(default_factory=list, description="Bands in display order")
    cells: List[BandLevelCell] = Field(default_factory=list)
    summaries: List[BandSummary] = Field(default_factory=list)


class SliderAdjustment(BaseModel):
    """A user's slider edit for one cell."""

    band: str
    level: Level
    adjusted_base_up_rate: float


class Constraints(BaseModel):
    """Policy bounds for a proposed adjustment."""

    slider_min: float = Field(default=-5.0, description="Lowest allowed adjusted rate (%)")
    slider_max: float = Field(default=10.0, description="Highest allowed adjusted rate (%)")
    budget_cap: Optional[float] = Field(None, description="Ceiling on total budget impact")
    level_gap_min: float = Field(
        default=0.05, ge=0, description="Minimum proportional gap between adjacent levels"
    )

    @field_validator("slider_max")
    @classmethod
    def max_not_below_min(cls, v: float, info) -> float:
        """Validate that slider_max is not below slider_min."""
        if "slider_min" in info.data and v < info.data["slider_min"]:
            raise ValueError("slider_max must be greater than or equal to slider_min")
        return v


ViolationType = Literal["budget_exceeded", "level_gap_violation", "slider_range"]
ViolationSeverity = Literal["warning", "error"]


class ConstraintViolation(BaseModel):
    """A policy violation, returned as data rather than raised."""

    type: ViolationType = Field(..., description="Which rule was violated")
    severity: ViolationSeverity = Field(..., description="error blocks apply; warning informs")
    message: str = Field(..., description="Human-readable explanation")
    details: Dict[str, Any] = Field(default_factory=dict, description="Band, level and values involved")


class CalculationResult(BaseModel):
    """Outcome of validating a matrix against constraints."""

    total_impact: float = Field(..., description="Σ headcount x mean x effective rate / 100")
    budget_usage: Optional[float] = Field(
        None, description="total_impact / budget_cap when a cap is set"
    )
    constraint_violations: List[ConstraintViolation] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(v.severity == "error" for v in self.constraint_violations)


class ValidateRequest(BaseModel):
    """Request body for validating a proposed matrix."""

    cells: List[BandLevelCell] = Field(..., description="Matrix cells, possibly with adjustments")
    adjustments: List[SliderAdjustment] = Field(
        default_factory=list, description="Slider edits applied on top of the cells"
    )
    constraints: Optional[Constraints] = Field(
        None, description="Overrides for the configured constraints"
    )


class ValidateResponse(BaseModel):
    """Validation outcome returned to the dashboard."""

    result: CalculationResult
    has_errors: bool
