"""System health endpoint."""

from fastapi import APIRouter, Depends

from ..config import AppSettings, get_settings
from ..models.dashboard import HealthResponse
from ..services.cache_service import EmployeeDataCache, get_employee_cache

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: AppSettings = Depends(get_settings),
    cache: EmployeeDataCache = Depends(get_employee_cache),
) -> HealthResponse:
    """
    Check system health.

    Never loads data; reports whether a roster is published and which
    candidate files exist.
    """
    issues = []
    warnings = []

    if not settings.data_dir.exists():
        try:
            settings.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            issues.append(f"Cannot create data directory: {e}")

    if not any(path.is_file() for path in settings.data_source_candidates()):
        warnings.append("No employee workbook found. Upload one through /api/upload.")

    return HealthResponse(
        healthy=not issues,
        data_loaded=cache.peek() is not None,
        generation=cache.generation,
        issues=issues,
        warnings=warnings,
    )
