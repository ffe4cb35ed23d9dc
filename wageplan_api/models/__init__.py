"""Pydantic models for API request/response schemas."""

from .employee import (
    EmployeeQuery,
    EmployeeRecord,
    EmployeeSearchResult,
)
from .wage import (
    BudgetCalculation,
    BudgetProjection,
    EmployeeSalaryCalculation,
    LevelBudget,
    RateProposal,
    RateRecommendation,
    WageIncreaseResult,
    WeightedProposal,
)
from .bands import (
    BandLevelCell,
    BandMatrix,
    BandSummary,
    CalculationResult,
    Constraints,
    ConstraintViolation,
    SliderAdjustment,
    ValidateRequest,
    ValidateResponse,
)
from .dashboard import (
    BudgetOverview,
    CompetitorRateResponse,
    DashboardSummary,
    DeleteResponse,
    DepartmentCount,
    HealthResponse,
    IndustryComparison,
    LevelCount,
    LevelStatistics,
    MetadataResponse,
    RatingCount,
    RosterSummary,
    UploadData,
    UploadResult,
)

__all__ = [
    "EmployeeQuery",
    "EmployeeRecord",
    "EmployeeSearchResult",
    "BudgetCalculation",
    "BudgetProjection",
    "EmployeeSalaryCalculation",
    "LevelBudget",
    "RateProposal",
    "RateRecommendation",
    "WageIncreaseResult",
    "WeightedProposal",
    "BandLevelCell",
    "BandMatrix",
    "BandSummary",
    "CalculationResult",
    "Constraints",
    "ConstraintViolation",
    "SliderAdjustment",
    "ValidateRequest",
    "ValidateResponse",
    "BudgetOverview",
    "CompetitorRateResponse",
    "DashboardSummary",
    "DeleteResponse",
    "DepartmentCount",
    "HealthResponse",
    "IndustryComparison",
    "LevelCount",
    "LevelStatistics",
    "MetadataResponse",
    "RatingCount",
    "RosterSummary",
    "UploadData",
    "UploadResult",
]
