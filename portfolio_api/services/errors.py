"""
Service layer exceptions.

TransportError and ValidationError are recoverable and never travel past the
degradation policy. ConfigurationError is the only one allowed to abort boot.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """One schema violation in an upstream payload."""

    path: str
    expected: str
    actual: str

    def __str__(self) -> str:
        return f"{self.path}: expected {self.expected}, got {self.actual}"


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, service_id: str | None = None):
        self.service_id = service_id
        super().__init__(message)


class TransportError(ServiceError):
    """Network failure, non-2xx upstream status, or credential exchange failure."""

    def __init__(
        self,
        message: str,
        service_id: str | None = None,
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, service_id=service_id)


class RequestTimeoutError(TransportError):
    """Request timed out."""

    def __init__(self, service_id: str, timeout: float):
        self.timeout = timeout
        super().__init__(
            f"Request to service '{service_id}' timed out after {timeout}s",
            service_id=service_id,
        )


class ValidationError(ServiceError):
    """Upstream payload does not match the expected schema."""

    def __init__(self, errors: list[FieldError], service_id: str | None = None):
        self.errors = errors
        summary = "; ".join(str(e) for e in errors[:5])
        if len(errors) > 5:
            summary += f" (+{len(errors) - 5} more)"
        super().__init__(
            f"Invalid payload from '{service_id}': {summary}", service_id=service_id
        )


class ConfigurationError(ServiceError):
    """Required secret or credential missing."""

    def __init__(self, missing: list[str], service_id: str | None = None):
        self.missing = missing
        target = f"service '{service_id}'" if service_id else "startup"
        super().__init__(
            f"Missing configuration for {target}: {', '.join(missing)}",
            service_id=service_id,
        )
