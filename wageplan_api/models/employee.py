"""Employee roster models."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..constants import Level, PerformanceRating


class EmployeeRecord(BaseModel):
    """One roster row, immutable once ingested."""

    model_config = ConfigDict(frozen=True)

    employee_id: str = Field(..., min_length=1, description="Unique employee identifier")
    name: str = Field(..., description="Employee name")
    department: str = Field(default="", description="Department label (free text)")
    band: str = Field(default="", description="Job family")
    level: Level = Field(..., description="Seniority level")
    performance_rating: Optional[PerformanceRating] = Field(
        None, description="Performance rating (None when not yet rated)"
    )
    position: Optional[str] = Field(None, description="Job title")
    current_salary: int = Field(..., ge=0, description="Current annual salary in KRW")
    hire_date: Optional[date] = Field(None, description="Hire date")


class EmployeeQuery(BaseModel):
    """Filter and pagination parameters for roster search."""

    page: int = Field(default=1, ge=1, description="1-indexed page number")
    limit: int = Field(default=20, ge=1, le=1000, description="Page size")
    level: Optional[Level] = Field(None, description="Exact level filter")
    department: Optional[str] = Field(None, description="Exact department filter")
    search: Optional[str] = Field(
        None, description="Case-insensitive substring of name or employee id"
    )


class EmployeeSearchResult(BaseModel):
    """One page of a roster search."""

    employees: List[EmployeeRecord] = Field(default_factory=list)
    page: int = Field(..., description="Requested page")
    limit: int = Field(..., description="Requested page size")
    total: int = Field(..., description="Number of employees matching the filters")
    total_pages: int = Field(..., description="ceil(total / limit)")
