"""Dashboard, statistics and upload models."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..constants import Level
from .wage import RateRecommendation


class LevelStatistics(BaseModel):
    """Salary and increase statistics for one level."""

    level: Level
    employee_count: int
    average_salary: int
    total_salary: int
    min_salary: int
    max_salary: int
    average_base_up_percentage: float
    average_merit_percentage: float = Field(..., description="Mean of rating-weighted merit")
    average_total_percentage: float


class DepartmentCount(BaseModel):
    department: str
    count: int


class RatingCount(BaseModel):
    rating: str = Field(..., description="S, A, B, C or 'unrated'")
    count: int


class IndustryComparison(BaseModel):
    """Our proposed total increase against external figures."""

    our_company: float = Field(..., description="Recommended total increase (%)")
    competitor: float = Field(..., description="Competitor increase rate (%)")
    industry_average: float = Field(..., description="Industry average increase rate (%)")


class BudgetOverview(BaseModel):
    """Payroll budget implied by the recommendation."""

    total_budget: int
    base_up_budget: int
    merit_budget: int
    used_budget: int = 0
    remaining_budget: int


class RosterSummary(BaseModel):
    total_employees: int
    average_salary: int
    total_payroll: int
    last_updated: Optional[datetime] = None


class DashboardSummary(BaseModel):
    """Everything the dashboard's overview page needs in one response."""

    summary: RosterSummary
    recommendation: RateRecommendation
    budget: BudgetOverview
    level_statistics: List[LevelStatistics] = Field(default_factory=list)
    department_distribution: List[DepartmentCount] = Field(default_factory=list)
    performance_distribution: List[RatingCount] = Field(default_factory=list)
    industry_comparison: IndustryComparison


class LevelCount(BaseModel):
    level: Level
    count: int


class MetadataResponse(BaseModel):
    """Filter vocabulary for the roster views."""

    departments: List[str] = Field(default_factory=list)
    bands: List[str] = Field(default_factory=list)
    levels: List[str] = Field(default_factory=list)
    ratings: List[str] = Field(default_factory=list)
    level_distribution: List[LevelCount] = Field(default_factory=list)
    rating_distribution: List[RatingCount] = Field(default_factory=list)


class UploadData(BaseModel):
    """Details of a successful load."""

    employee_count: int
    skipped_rows: int
    generation: int
    source: str
    competitor_rate: Optional[float] = None
    has_recommendation: bool = False


class UploadResult(BaseModel):
    """Upload outcome; failures are reported, never raised."""

    success: bool
    message: str
    data: Optional[UploadData] = None


class CompetitorRateResponse(BaseModel):
    competitor_increase_rate: float
    source: str = Field(..., description="'workbook' or 'default'")


class DeleteResponse(BaseModel):
    success: bool
    message: str
    generation: int


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    healthy: bool = Field(description="Whether the system is healthy")
    data_loaded: bool = Field(description="Whether a roster snapshot is published")
    generation: int = Field(description="Current cache generation")
    issues: List[str] = Field(default_factory=list, description="Blocking issues")
    warnings: List[str] = Field(default_factory=list, description="Non-blocking warnings")
