"""Business logic services."""

from .ingestion_service import IngestionResult, WorkbookIngestor
from .cache_service import EmployeeDataCache, EmployeeSnapshot, get_employee_cache
from .query_service import EmployeeQueryService, default_recommendation
from .band_service import BandService
from .constraint_service import PayBandConstraintEngine, load_constraints

__all__ = [
    "IngestionResult",
    "WorkbookIngestor",
    "EmployeeDataCache",
    "EmployeeSnapshot",
    "get_employee_cache",
    "EmployeeQueryService",
    "default_recommendation",
    "BandService",
    "PayBandConstraintEngine",
    "load_constraints",
]
