"""Mapping from WagePlan exceptions to HTTP errors."""

import logging

from fastapi import HTTPException, status

from ..exceptions import (
    ConfigurationError,
    DataSourceError,
    NotFoundError,
    ValidationError,
    WagePlanError,
)

logger = logging.getLogger(__name__)


def to_http_exception(error: WagePlanError) -> HTTPException:
    """Log the full diagnostic and return a generic HTTP error."""
    if isinstance(error, NotFoundError):
        logger.info(error.message)
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)

    logger.error(error.format_diagnostic_message())
    if isinstance(error, ValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Employee data contains invalid values",
        )
    if isinstance(error, DataSourceError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Employee data is not available. Upload an employee workbook first.",
        )
    if isinstance(error, ConfigurationError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error",
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal error",
    )
