"""Pay band matrix endpoints.

The matrix is rebuilt from the current roster snapshot on request; edits
live with the caller and are sent back for validation.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..config import AppSettings, get_settings
from ..exceptions import WagePlanError
from ..models.bands import BandMatrix, ValidateRequest, ValidateResponse
from ..services.band_service import BandService
from ..services.cache_service import EmployeeDataCache, get_employee_cache
from ..services.constraint_service import PayBandConstraintEngine, load_constraints
from .errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


def get_band_service(settings: AppSettings = Depends(get_settings)) -> BandService:
    """Get band service instance."""
    return BandService(settings)


@router.get(
    "/bands",
    response_model=BandMatrix,
    summary="Get band x level matrix",
    description="Headcount, pay distribution and competitiveness per job family and level",
)
def get_band_matrix(
    base_up_rate: Optional[float] = Query(None, description="Rate for every cell (%)"),
    cache: EmployeeDataCache = Depends(get_employee_cache),
    service: BandService = Depends(get_band_service),
) -> BandMatrix:
    try:
        return service.build_matrix(cache.get_snapshot(), base_up_rate)
    except WagePlanError as e:
        raise to_http_exception(e)


@router.post(
    "/bands/validate",
    response_model=ValidateResponse,
    summary="Validate a proposed adjustment",
    description="""
Check a band x level adjustment against policy:
- adjusted rates within the slider range
- effective pay rising between adjacent levels by the minimum gap
- total budget impact within the cap
""",
)
def validate_adjustments(
    request: ValidateRequest,
    settings: AppSettings = Depends(get_settings),
) -> ValidateResponse:
    try:
        constraints = request.constraints or load_constraints(settings)
    except WagePlanError as e:
        raise to_http_exception(e)

    cells = BandService.apply_adjustments(request.cells, request.adjustments)
    result = PayBandConstraintEngine().validate(cells, constraints)
    return ValidateResponse(result=result, has_errors=result.has_errors)
