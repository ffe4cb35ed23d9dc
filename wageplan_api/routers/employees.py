"""Employee search and per-employee calculation endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from ..constants import Level
from ..exceptions import WagePlanError
from ..models.employee import EmployeeQuery, EmployeeRecord, EmployeeSearchResult
from ..models.wage import EmployeeSalaryCalculation, WeightedProposal
from ..services.cache_service import EmployeeDataCache, get_employee_cache
from ..services.query_service import EmployeeQueryService
from .errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


def get_query_service(cache: EmployeeDataCache = Depends(get_employee_cache)) -> EmployeeQueryService:
    """Get query service bound to the process cache."""
    return EmployeeQueryService(cache)


@router.get("/employees", response_model=EmployeeSearchResult)
def search_employees(
    page: int = Query(1, ge=1, description="1-indexed page"),
    limit: int = Query(20, ge=1, le=1000, description="Page size"),
    level: Optional[Level] = Query(None, description="Level filter"),
    department: Optional[str] = Query(None, description="Department filter"),
    search: Optional[str] = Query(None, description="Name or id substring"),
    service: EmployeeQueryService = Depends(get_query_service),
) -> EmployeeSearchResult:
    """Search the roster with AND-combined filters."""
    query = EmployeeQuery(page=page, limit=limit, level=level, department=department, search=search)
    try:
        return service.search_employees(query)
    except WagePlanError as e:
        raise to_http_exception(e)


@router.get("/employees/{employee_id}", response_model=EmployeeRecord)
def get_employee(
    employee_id: str,
    service: EmployeeQueryService = Depends(get_query_service),
) -> EmployeeRecord:
    try:
        return service.get_employee(employee_id)
    except WagePlanError as e:
        raise to_http_exception(e)


@router.post("/employees/{employee_id}/calculate", response_model=EmployeeSalaryCalculation)
def calculate_employee_salary(
    employee_id: str,
    request: Optional[WeightedProposal] = Body(None),
    service: EmployeeQueryService = Depends(get_query_service),
) -> EmployeeSalaryCalculation:
    """
    Suggested salary for one employee.

    Omitted percentages come from the current recommendation and omitted
    weights from configuration.
    """
    request = request or WeightedProposal()
    try:
        proposal = service.resolve_proposal(
            request.base_up_percentage, request.merit_increase_percentage
        )
        return service.calculate_employee_salary(employee_id, proposal, request.performance_weights)
    except WagePlanError as e:
        raise to_http_exception(e)
