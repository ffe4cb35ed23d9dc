"""Employee roster cache.

The cache owns one immutable EmployeeSnapshot reference. Readers take the
reference without locking once it is published. Writers (cold load, upload,
clear, delete) are serialized by a single lock and swap the reference only
after the replacement snapshot is fully built.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple

import polars as pl

from ..config import AppSettings, get_settings
from ..constants import LEVEL_ORDER
from ..exceptions import DataSourceError, ValidationError, WagePlanError
from ..models.dashboard import UploadData, UploadResult
from ..models.employee import EmployeeRecord
from ..models.wage import RateRecommendation
from .ingestion_service import IngestionResult, WorkbookIngestor

logger = logging.getLogger(__name__)

FRAME_SCHEMA = {
    "employee_id": pl.Utf8,
    "name": pl.Utf8,
    "department": pl.Utf8,
    "band": pl.Utf8,
    "level": pl.Utf8,
    "performance_rating": pl.Utf8,
    "position": pl.Utf8,
    "current_salary": pl.Int64,
    "hire_date": pl.Date,
}


def build_frame(records: Sequence[EmployeeRecord]) -> pl.DataFrame:
    """Columnar copy of the roster for grouped aggregations."""
    return pl.DataFrame(
        {
            "employee_id": [r.employee_id for r in records],
            "name": [r.name for r in records],
            "department": [r.department for r in records],
            "band": [r.band for r in records],
            "level": [r.level.value for r in records],
            "performance_rating": [
                r.performance_rating.value if r.performance_rating else None for r in records
            ],
            "position": [r.position for r in records],
            "current_salary": [r.current_salary for r in records],
            "hire_date": [r.hire_date for r in records],
        },
        schema=FRAME_SCHEMA,
    )


@dataclass(frozen=True, eq=False)
class EmployeeSnapshot:
    """Fully loaded, read-only roster as of one successful ingestion."""

    generation: int
    records: Tuple[EmployeeRecord, ...]
    by_id: Mapping[str, EmployeeRecord]
    frame: pl.DataFrame
    source_path: str
    skipped_rows: int = 0
    competitor_rate: Optional[float] = None
    recommendation: Optional[RateRecommendation] = None
    loaded_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_ingestion(cls, result: IngestionResult, generation: int) -> "EmployeeSnapshot":
        records = tuple(
            sorted(result.records, key=lambda r: (LEVEL_ORDER[r.level], r.employee_id))
        )
        return cls(
            generation=generation,
            records=records,
            by_id=MappingProxyType({r.employee_id: r for r in records}),
            frame=build_frame(records),
            source_path=result.source_path,
            skipped_rows=result.skipped_rows,
            competitor_rate=result.competitor_rate,
            recommendation=result.recommendation,
        )

    @property
    def employee_count(self) -> int:
        return len(self.records)


class EmployeeDataCache:
    """Process-wide roster cache with lazy load and explicit invalidation."""

    def __init__(self, settings: Optional[AppSettings] = None, ingestor: Optional[WorkbookIngestor] = None):
        """
        Initialize the cache.

        Args:
            settings: Application settings (candidate paths, upload limits)
            ingestor: Workbook parser (override for testing)
        """
        self.settings = settings or get_settings()
        self.ingestor = ingestor or WorkbookIngestor(self.settings)
        self._lock = threading.Lock()
        self._snapshot: Optional[EmployeeSnapshot] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        """Bumped on every publish, clear and delete."""
        return self._generation

    def _publish(self, result: IngestionResult) -> EmployeeSnapshot:
        # Caller holds self._lock
        snapshot = EmployeeSnapshot.from_ingestion(result, self._generation + 1)
        self._generation = snapshot.generation
        self._snapshot = snapshot
        logger.info(
            f"Published employee snapshot generation {snapshot.generation} "
            f"({snapshot.employee_count} employees from {snapshot.source_path})"
        )
        return snapshot

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def peek(self) -> Optional[EmployeeSnapshot]:
        """Current snapshot, or None. Never triggers a load."""
        return self._snapshot

    def get_snapshot(self) -> EmployeeSnapshot:
        """
        Return the published snapshot, loading it on a cold cache.

        Concurrent cold callers wait for the single in-flight load.

        Raises:
            DataSourceError: If no candidate workbook could be read
            ValidationError: If the first readable workbook holds malformed rows
        """
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot

        with self._lock:
            if self._snapshot is not None:
                return self._snapshot
            candidates = self.settings.data_source_candidates()
            logger.info(f"Employee cache is cold; loading from {len(candidates)} candidate(s)")
            result = self.ingestor.load_first_available(candidates)
            return self._publish(result)

    def get_employee_data(self) -> Tuple[EmployeeRecord, ...]:
        return self.get_snapshot().records

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def clear_cache(self) -> None:
        """Drop the snapshot and its benchmark scalars."""
        with self._lock:
            self._snapshot = None
            self._generation += 1
            logger.info(f"Employee cache cleared (generation {self._generation})")

    def _validate_upload(self, content: bytes, filename: str) -> Optional[str]:
        suffix = Path(filename or "").suffix.lower()
        if suffix not in self.settings.supported_extensions:
            return (
                f"Unsupported file type: {suffix or '(none)'}. "
                f"Supported types: {', '.join(self.settings.supported_extensions)}"
            )
        if not content:
            return "Uploaded file is empty"
        if len(content) > self.settings.max_upload_bytes:
            return f"File exceeds maximum size of {self.settings.max_upload_bytes // (1024 * 1024)}MB"
        return None

    def _persist(self, content: bytes, filename: str) -> Path:
        # Readers pick the engine from the suffix, so keep the upload's format
        target = self.settings.upload_path_for(Path(filename).suffix)
        target.parent.mkdir(parents=True, exist_ok=True)
        staging = target.with_name(target.name + ".partial")
        staging.write_bytes(content)
        staging.replace(target)
        for stale in self.settings.uploaded_files():
            if stale != target:
                stale.unlink(missing_ok=True)
        return target

    def upload_employee_excel(self, content: bytes, filename: str) -> UploadResult:
        """
        Replace the roster with an uploaded workbook.

        On success the bytes are persisted to the upload path and a new snapshot
        generation is published. On failure the prior snapshot stays in place and
        a generic message is returned; the cause is logged.
        """
        problem = self._validate_upload(content, filename)
        if problem:
            logger.warning(f"Rejected upload '{filename}': {problem}")
            return UploadResult(success=False, message=problem)

        with self._lock:
            try:
                result = self.ingestor.parse_workbook(content, filename)
            except ValidationError as e:
                logger.error(f"Upload '{filename}' has invalid employee data:\n{e.format_diagnostic_message()}")
                return UploadResult(success=False, message="The uploaded file contains invalid employee data")
            except WagePlanError as e:
                logger.error(f"Upload '{filename}' could not be read:\n{e.format_diagnostic_message()}")
                return UploadResult(success=False, message="The uploaded file could not be read as an employee workbook")
            except Exception as e:
                logger.exception(f"Unexpected error while parsing upload '{filename}': {e}")
                return UploadResult(success=False, message="The uploaded file could not be processed")

            try:
                persisted = self._persist(content, filename)
            except OSError as e:
                logger.error(f"Failed to persist upload '{filename}': {e}")
                return UploadResult(success=False, message="Failed to store the uploaded file")

            result.source_path = str(persisted)
            snapshot = self._publish(result)

        return UploadResult(
            success=True,
            message=f"Loaded {snapshot.employee_count} employees from {filename}",
            data=UploadData(
                employee_count=snapshot.employee_count,
                skipped_rows=snapshot.skipped_rows,
                generation=snapshot.generation,
                source=filename,
                competitor_rate=snapshot.competitor_rate,
                has_recommendation=snapshot.recommendation is not None,
            ),
        )

    def delete_data(self) -> bool:
        """
        Remove the persisted upload and clear the cache.

        Returns:
            True if an uploaded file was removed
        """
        with self._lock:
            existed = False
            for target in self.settings.uploaded_files():
                try:
                    if target.exists():
                        target.unlink()
                        existed = True
                except OSError as e:
                    raise DataSourceError(
                        f"Failed to delete uploaded data: {target}", original_exception=e
                    )
            self._snapshot = None
            self._generation += 1
            logger.info(f"Deleted uploaded data (removed={existed}, generation {self._generation})")
        return existed


# Global cache instance
_employee_cache: Optional[EmployeeDataCache] = None


def get_employee_cache() -> EmployeeDataCache:
    """Get or create the global employee cache."""
    global _employee_cache
    if _employee_cache is None:
        _employee_cache = EmployeeDataCache()
    return _employee_cache
