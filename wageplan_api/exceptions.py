"""
Structured exception hierarchy for WagePlan.

All exceptions include:
- category: which part of the engine raised it (data source, validation, ...)
- severity: CRITICAL, ERROR, WARNING
- context: structured key/value diagnostics (paths, row numbers, values)
- resolution_hints: actionable suggestions for common issues

Constraint violations found by the pay band engine are result values, not
exceptions; see ``models.bands.ConstraintViolation``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple


class ErrorSeverity(str, Enum):
    """Error severity levels"""
    CRITICAL = "critical"      # No usable roster at all
    ERROR = "error"            # Operation failed, prior state kept
    WARNING = "warning"        # Non-blocking issue


class ErrorCategory(str, Enum):
    """Error categories for diagnostics and HTTP status mapping"""
    DATA_SOURCE = "data_source"        # Missing, unreadable or malformed workbook
    VALIDATION = "validation"          # Invalid row values in a readable workbook
    NOT_FOUND = "not_found"            # Unknown employee identifier
    CONFIGURATION = "configuration"    # Invalid settings or constraints file


@dataclass
class ResolutionHint:
    """Actionable resolution guidance for common error patterns"""

    title: str
    description: str
    steps: List[str] = field(default_factory=list)


class WagePlanError(Exception):
    """
    Base exception for WagePlan with structured context.

    All WagePlan exceptions inherit from this class so route handlers can log
    the full diagnostic while returning a generic message to the caller.
    """

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory = ErrorCategory.DATA_SOURCE,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[Dict[str, Any]] = None,
        resolution_hints: Optional[List[ResolutionHint]] = None,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or {}
        self.resolution_hints = resolution_hints or []
        self.original_exception = original_exception

    def format_diagnostic_message(self) -> str:
        """Multi-line diagnostic for logs."""
        lines = [
            f"ERROR: {self.message}",
            f"Severity: {self.severity.value.upper()} | Category: {self.category.value}",
        ]
        if self.context:
            lines.append("CONTEXT:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")
        if self.resolution_hints:
            lines.append("RESOLUTION HINTS:")
            for i, hint in enumerate(self.resolution_hints, 1):
                lines.append(f"  {i}. {hint.title}: {hint.description}")
                for step in hint.steps:
                    lines.append(f"     - {step}")
        if self.original_exception:
            lines.append(
                f"ORIGINAL EXCEPTION: {type(self.original_exception).__name__}: "
                f"{self.original_exception}"
            )
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for structured logging"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "context": dict(self.context),
            "resolution_hints": [
                {"title": hint.title, "description": hint.description, "steps": hint.steps}
                for hint in self.resolution_hints
            ],
            "original_exception": str(self.original_exception) if self.original_exception else None,
        }


# Data Source Errors
class DataSourceError(WagePlanError):
    """Roster workbook missing, unreadable, or missing required sheets/columns"""
    def __init__(
        self,
        message: str,
        attempted_paths: Optional[Sequence[Tuple[str, str]]] = None,
        **kwargs,
    ):
        self.attempted_paths = list(attempted_paths or [])
        if self.attempted_paths:
            kwargs.setdefault("context", {})
            kwargs["context"]["attempted_paths"] = [
                f"{path} ({reason})" for path, reason in self.attempted_paths
            ]
            if "resolution_hints" not in kwargs:
                kwargs["resolution_hints"] = [
                    ResolutionHint(
                        title="Provide an employee workbook",
                        description="No candidate roster file could be read",
                        steps=[
                            "Upload an .xlsx roster through POST /api/upload",
                            "Or place default_employee_data.xlsx in the data directory",
                        ],
                    )
                ]
        kwargs.setdefault("severity", ErrorSeverity.CRITICAL if self.attempted_paths else ErrorSeverity.ERROR)
        super().__init__(message, category=ErrorCategory.DATA_SOURCE, **kwargs)


# Validation Errors
class ValidationError(WagePlanError):
    """A row in a readable workbook holds a value the roster cannot accept"""
    def __init__(
        self,
        message: str,
        row_number: Optional[int] = None,
        field_name: Optional[str] = None,
        value: Any = None,
        **kwargs,
    ):
        self.row_number = row_number
        self.field_name = field_name
        self.value = value
        if row_number is not None:
            message = f"{message} (row {row_number})"
        kwargs.setdefault("context", {})
        kwargs["context"].update(
            {k: v for k, v in {"row": row_number, "field": field_name, "value": value}.items() if v is not None}
        )
        super().__init__(message, category=ErrorCategory.VALIDATION, **kwargs)


class InvalidEnumerationError(ValidationError):
    """Level or performance rating outside its closed set"""
    def __init__(self, field_name: str, value: Any, allowed: Sequence[str], row_number: Optional[int] = None, **kwargs):
        self.allowed = list(allowed)
        message = f"Unknown {field_name} '{value}', expected one of {', '.join(self.allowed)}"
        super().__init__(message, row_number=row_number, field_name=field_name, value=value, **kwargs)


class InvalidValueError(ValidationError):
    """Value present but not coercible (salary, hire date)"""


class MissingFieldError(ValidationError):
    """Identity present but a required field is blank"""
    def __init__(self, field_name: str, row_number: Optional[int] = None, **kwargs):
        super().__init__(f"Missing required field '{field_name}'", row_number=row_number, field_name=field_name, **kwargs)


class DuplicateEmployeeError(ValidationError):
    """The same employee identifier appears on more than one row"""
    def __init__(self, employee_id: str, row_number: Optional[int] = None, **kwargs):
        super().__init__(
            f"Duplicate employee id '{employee_id}'",
            row_number=row_number,
            field_name="employee_id",
            value=employee_id,
            **kwargs,
        )


# Lookup Errors
class NotFoundError(WagePlanError):
    """Query for an employee identifier not present in the snapshot"""
    def __init__(self, employee_id: str, **kwargs):
        self.employee_id = employee_id
        super().__init__(
            f"Employee not found: {employee_id}",
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.WARNING,
            context={"employee_id": employee_id},
            **kwargs,
        )


# Configuration Errors
class ConfigurationError(WagePlanError):
    """Invalid settings or constraints file"""
    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)
