"""
Pytest configuration for WagePlan.

Provides settings rooted in tmp_path and a factory for caches backed by a
stub ingestor, so query tests run without touching Excel files.
"""

from typing import List

import pytest

from tests.fixtures.roster import StubIngestor, records_from_rows
from tests.fixtures.workbooks import DEFAULT_EMPLOYEES
from wageplan_api.config import AppSettings
from wageplan_api.models.employee import EmployeeRecord
from wageplan_api.services.cache_service import EmployeeDataCache


def pytest_configure(config):
    """Configure pytest with custom markers."""
    # Markers are defined in pyproject.toml
    pass


def pytest_collection_modifyitems(config, items):
    """Automatically add markers based on test location."""
    for item in items:
        if "/unit/" in item.nodeid:
            item.add_marker(pytest.mark.unit)
            item.add_marker(pytest.mark.fast)
        elif "/api/" in item.nodeid:
            item.add_marker(pytest.mark.api)

        if "concurrent" in item.nodeid.lower() or "threading" in item.nodeid.lower():
            item.add_marker(pytest.mark.threading)


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    """Settings whose data directory lives under tmp_path."""
    return AppSettings(data_dir=tmp_path / "data")


@pytest.fixture
def default_records() -> List[EmployeeRecord]:
    return records_from_rows(DEFAULT_EMPLOYEES)


@pytest.fixture
def make_cache(settings):
    """Factory for caches backed by a StubIngestor."""

    def _make(records=None, competitor_rate=None, recommendation=None, error=None):
        ingestor = StubIngestor(
            records_from_rows(DEFAULT_EMPLOYEES) if records is None else records,
            competitor_rate=competitor_rate,
            recommendation=recommendation,
            error=error,
        )
        return EmployeeDataCache(settings, ingestor=ingestor)

    return _make
