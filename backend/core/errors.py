"""
Application error taxonomy.

Every error carries an HTTP status code and a stable machine-readable code.
`backend.api.middleware.error_handler` renders them as JSON; the forecast
pipeline uses `code` to report why a result was degraded.
"""

from typing import Any


class AppError(Exception):
    """Base class for expected, client-presentable errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}


class ExternalServiceError(AppError):
    """A dependency outside the process failed (provider, breaker, timeout)."""

    def __init__(
        self,
        service_name: str,
        message: str,
        status_code: int = 502,
        code: str = "EXTERNAL_SERVICE_ERROR",
    ):
        super().__init__(
            message,
            status_code=status_code,
            code=code,
            details={"service": service_name},
        )
        self.service_name = service_name


class OperationTimeoutError(ExternalServiceError):
    def __init__(self, message: str = "Operation timed out"):
        super().__init__("Timeout", message, status_code=408, code="TIMEOUT")


class CircuitOpenError(ExternalServiceError):
    def __init__(self, breaker_name: str = "Circuit Breaker"):
        super().__init__(
            breaker_name,
            "Service temporarily unavailable",
            status_code=503,
            code="CIRCUIT_OPEN",
        )


class ProviderUnavailableError(ExternalServiceError):
    def __init__(self, message: str = "Weather service is currently unavailable"):
        super().__init__(
            "Weather API",
            message,
            status_code=503,
            code="WEATHER_SERVICE_UNAVAILABLE",
        )


class ProviderAuthenticationError(ExternalServiceError):
    """Provider rejected our credentials (configuration problem)."""

    def __init__(self, message: str = "Weather API authentication failed"):
        super().__init__(
            "Weather API",
            message,
            status_code=502,
            code="WEATHER_API_AUTH_FAILED",
        )


class ProviderRateLimitError(ExternalServiceError):
    """Provider quota exhausted."""

    def __init__(self, message: str = "Weather API rate limit exceeded"):
        super().__init__(
            "Weather API",
            message,
            status_code=429,
            code="WEATHER_API_RATE_LIMITED",
        )


class DatabaseError(AppError):
    def __init__(
        self,
        message: str = "Database operation failed",
        status_code: int = 503,
        code: str = "DATABASE_ERROR",
    ):
        super().__init__(message, status_code=status_code, code=code)


class InvalidCoordinatesError(AppError):
    def __init__(self, latitude: float, longitude: float):
        super().__init__(
            f"Invalid coordinates: ({latitude}, {longitude})",
            status_code=400,
            code="INVALID_COORDINATES",
            # NaN and inf are not valid JSON
            details={"latitude": str(latitude), "longitude": str(longitude)},
        )


class UserLocationNotFoundError(AppError):
    def __init__(self, user_id: int | str):
        super().__init__(
            "User location not found. Please update your profile with "
            "location information.",
            status_code=400,
            code="USER_LOCATION_NOT_FOUND",
            details={"user_id": user_id},
        )
