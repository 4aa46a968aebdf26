from dataclasses import dataclass, field
from typing import Any, Dict

from valuation.errors import BackupRestoreError, ProfileDecodeError, ProfileValidationError, ValuationError


@dataclass
class ServiceError(Exception):
    """Consistent service-layer exception with HTTP-friendly metadata."""

    status_code: int
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:  # pragma: no cover - convenience for logging
        return f"{self.status_code} {self.code}: {self.message} | {self.details}"


def service_error_from(exc: ValuationError, details: Dict[str, Any] | None = None) -> ServiceError:
    """Map an engine error onto the API error envelope."""
    details = details or {}
    if isinstance(exc, ProfileValidationError):
        return ServiceError(400, "VALIDATION_ERROR", str(exc), details)
    if isinstance(exc, ProfileDecodeError):
        return ServiceError(409, "CORRUPT_DATA", "Stored valuation data is corrupt.", details)
    if isinstance(exc, BackupRestoreError):
        return ServiceError(400, "INVALID_BACKUP", str(exc), details)
    return ServiceError(500, "INTERNAL_SERVER_ERROR", "Internal server error.", details)
