"""Dashboard, statistics and budget simulation endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends

from ..exceptions import WagePlanError
from ..models.dashboard import (
    CompetitorRateResponse,
    DashboardSummary,
    LevelStatistics,
    MetadataResponse,
)
from ..models.wage import BudgetProjection, WeightedProposal
from ..services.query_service import EmployeeQueryService
from .employees import get_query_service
from .errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/dashboard", response_model=DashboardSummary)
def get_dashboard(service: EmployeeQueryService = Depends(get_query_service)) -> DashboardSummary:
    """Overview figures for the dashboard landing page."""
    try:
        return service.get_dashboard_summary()
    except WagePlanError as e:
        raise to_http_exception(e)


@router.get("/statistics/level", response_model=List[LevelStatistics])
def get_level_statistics(service: EmployeeQueryService = Depends(get_query_service)) -> List[LevelStatistics]:
    try:
        return service.get_level_statistics()
    except WagePlanError as e:
        raise to_http_exception(e)


@router.get("/metadata", response_model=MetadataResponse)
def get_metadata(service: EmployeeQueryService = Depends(get_query_service)) -> MetadataResponse:
    try:
        return service.get_metadata()
    except WagePlanError as e:
        raise to_http_exception(e)


@router.get("/competitor-rate", response_model=CompetitorRateResponse)
def get_competitor_rate(service: EmployeeQueryService = Depends(get_query_service)) -> CompetitorRateResponse:
    """Competitor increase rate; falls back to the configured default."""
    rate, source = service.competitor_rate_with_source()
    return CompetitorRateResponse(competitor_increase_rate=rate, source=source)


@router.post("/simulation/budget", response_model=BudgetProjection)
def simulate_budget(
    request: Optional[WeightedProposal] = Body(None),
    service: EmployeeQueryService = Depends(get_query_service),
) -> BudgetProjection:
    """Organization-wide budget for a proposal, with a per-level breakdown."""
    request = request or WeightedProposal()
    try:
        proposal = service.resolve_proposal(
            request.base_up_percentage, request.merit_increase_percentage
        )
        return service.project_budget(proposal, request.performance_weights)
    except WagePlanError as e:
        raise to_http_exception(e)
