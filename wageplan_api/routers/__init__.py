"""API route handlers."""

from .system import router as system_router
from .employees import router as employees_router
from .dashboard import router as dashboard_router
from .data import router as data_router
from .bands import router as bands_router

__all__ = [
    "system_router",
    "employees_router",
    "dashboard_router",
    "data_router",
    "bands_router",
]
