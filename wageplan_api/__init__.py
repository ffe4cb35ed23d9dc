"""
WagePlan API - FastAPI backend for the compensation planning dashboard.

Provides REST endpoints for:
- Employee roster upload and cached access
- Roster search and dashboard aggregations
- Wage increase and budget calculations
- Pay-band rate adjustment validation
"""

__version__ = "0.1.0"
