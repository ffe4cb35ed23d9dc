"""Roster upload and deletion endpoints."""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from ..exceptions import WagePlanError
from ..models.dashboard import DeleteResponse, UploadResult
from ..services.cache_service import EmployeeDataCache, get_employee_cache
from .errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/upload",
    response_model=UploadResult,
    summary="Upload employee workbook",
    description="Replace the cached roster with an uploaded Excel workbook (.xlsx or .xls)",
)
async def upload_employee_workbook(
    response: Response,
    file: UploadFile = File(..., description="Employee workbook"),
    cache: EmployeeDataCache = Depends(get_employee_cache),
) -> UploadResult:
    """Upload a roster; failures keep the previous data and return success=false."""
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No filename provided",
        )

    try:
        content = await file.read()
    except Exception as e:
        logger.error(f"Failed to read uploaded file: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to read uploaded file",
        )

    if len(content) > cache.settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {cache.settings.max_upload_bytes // (1024 * 1024)}MB limit",
        )

    # Parsing is blocking; keep it off the event loop
    result = await run_in_threadpool(cache.upload_employee_excel, content, file.filename)
    if not result.success:
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    return result


@router.delete("/data", response_model=DeleteResponse)
def delete_data(cache: EmployeeDataCache = Depends(get_employee_cache)) -> DeleteResponse:
    """Remove the uploaded roster and clear the cache."""
    try:
        removed = cache.delete_data()
    except WagePlanError as e:
        raise to_http_exception(e)
    message = "Uploaded data deleted" if removed else "No uploaded data; cache cleared"
    return DeleteResponse(success=True, message=message, generation=cache.generation)
