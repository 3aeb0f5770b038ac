"""Custom exceptions for the GeoDrop backend."""

from typing import Any, Dict, List, Optional


class GeoDropException(Exception):
    """Base exception for GeoDrop application."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize GeoDropException.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code.
            error_code: Machine-readable error code.
            details: Additional error details.
        """
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(GeoDropException):
    """Raised when input is malformed or outside the owner's tier policy.

    Always carries the full list of violated constraints in ``details["errors"]``.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[List[str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize ValidationError."""
        details = dict(details or {})
        details["errors"] = list(errors) if errors else [message]
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )

    @property
    def errors(self) -> List[str]:
        return self.details["errors"]


class InvalidHuntCodeError(GeoDropException):
    """Raised when a hunt code does not match the expected format."""

    def __init__(
        self,
        message: str = "Invalid hunt code format",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize InvalidHuntCodeError."""
        super().__init__(
            message=message,
            status_code=400,
            error_code="INVALID_FORMAT",
            details=details,
        )


class MissingLocationError(GeoDropException):
    """Raised when a physical-mode unlock is attempted without coordinates."""

    def __init__(
        self,
        message: str = "Your location is required to unlock this drop",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize MissingLocationError."""
        super().__init__(
            message=message,
            status_code=400,
            error_code="MISSING_LOCATION",
            details=details,
        )


class AuthenticationError(GeoDropException):
    """Raised when authentication fails."""

    def __init__(
        self,
        message: str = "Authentication required",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize AuthenticationError."""
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTHENTICATION_ERROR",
            details=details,
        )


class AuthorizationError(GeoDropException):
    """Raised when user is not authorized to access a resource."""

    def __init__(
        self,
        message: str = "Insufficient permissions",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize AuthorizationError."""
        super().__init__(
            message=message,
            status_code=403,
            error_code="AUTHORIZATION_ERROR",
            details=details,
        )


class InvalidSecretError(GeoDropException):
    """Raised when the submitted secret phrase does not match the drop."""

    def __init__(
        self,
        message: str = "Invalid secret phrase",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize InvalidSecretError."""
        super().__init__(
            message=message,
            status_code=403,
            error_code="INVALID_SECRET",
            details=details,
        )


class OutOfRangeError(GeoDropException):
    """Raised when a physical-mode unlock is attempted outside the geofence."""

    def __init__(
        self,
        message: str = "Too far away from the drop location",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize OutOfRangeError."""
        super().__init__(
            message=message,
            status_code=403,
            error_code="OUT_OF_RANGE",
            details=details,
        )


class TierLimitError(GeoDropException):
    """Raised when the owner's tier forbids the requested operation."""

    def __init__(
        self,
        message: str = "Tier limit reached",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize TierLimitError."""
        super().__init__(
            message=message,
            status_code=403,
            error_code="TIER_LIMIT",
            details=details,
        )


class NotFoundError(GeoDropException):
    """Raised when a resource is not found."""

    def __init__(
        self,
        message: str = "Resource not found",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize NotFoundError."""
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND",
            details=details,
        )


class ExpiredError(GeoDropException):
    """Raised when a drop or hunt is past its expiry time."""

    def __init__(
        self,
        message: str = "This drop has expired",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize ExpiredError."""
        super().__init__(
            message=message,
            status_code=410,
            error_code="EXPIRED",
            details=details,
        )


class RateLimitError(GeoDropException):
    """Raised when a caller makes too many attempts inside the limit window."""

    def __init__(
        self,
        retry_after: float,
        message: str = "Too many unlock attempts. Please try again later.",
    ) -> None:
        """Initialize RateLimitError."""
        super().__init__(
            message=message,
            status_code=429,
            error_code="RATE_LIMITED",
            details={"retryAfter": max(1, round(retry_after))},
        )


class InternalError(GeoDropException):
    """Raised when a collaborator (store, storage, identity) fails."""

    def __init__(
        self,
        message: str = "Internal server error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize InternalError."""
        super().__init__(
            message=message,
            status_code=500,
            error_code="INTERNAL_ERROR",
            details=details,
        )


class InvalidTierError(GeoDropException):
    """Raised when code asks for limits of a tier that does not exist."""

    def __init__(self, tier: Any) -> None:
        """Initialize InvalidTierError."""
        super().__init__(
            message=f"Unknown tier: {tier!r}",
            status_code=500,
            error_code="INVALID_TIER",
            details={"tier": str(tier)},
        )
