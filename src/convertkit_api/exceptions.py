"""Structured exception classes for the ConvertKit API client.

Pipeline failures are returned as :class:`~convertkit_api.models.result.Failure`
values, never raised. These classes are what ``Failure.unwrap()`` and
``Failure.to_exception()`` raise or produce, for callers that prefer
exceptions over result inspection.
"""

import json
from typing import Any, Dict, Optional


class ConvertKitError(Exception):
    """Base exception for all ConvertKit API client errors.

    :param message: Human-readable error message
    :param code: Optional error code for programmatic handling
    :param details: Optional dictionary containing additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the exception with message, code, and details."""
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format.

        :return: Dictionary containing error code, message, and details
        """
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        """Convert exception to JSON string.

        :return: JSON-encoded string representation of the exception
        """
        return json.dumps(self.to_dict())


class TransportError(ConvertKitError):
    """Raised when the HTTP call itself fails (DNS, TLS, connect, timeout).

    :param message: Description of the network failure
    :param url: Optional URL that was being requested
    """

    def __init__(self, message: str, url: Optional[str] = None):
        """Initialize transport error with message and optional URL."""
        details = {}
        if url:
            details["url"] = url
        super().__init__(message=message, code="TRANSPORT_ERROR", details=details)


class APIError(ConvertKitError):
    """Raised for errors reported by the API with an HTTP status.

    :param message: Description of the API error
    :param status_code: Optional HTTP status code from the API response
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: str = "API_ERROR",
    ):
        """Initialize API error with message and optional status code."""
        details: Dict[str, Any] = {}
        if status_code:
            details["status_code"] = status_code
        super().__init__(message=message, code=code, details=details)
        self.status_code = status_code


class ClientError(APIError):
    """Raised for 4xx responses."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code, code="CLIENT_ERROR")


class ExpiredTokenError(ClientError):
    """Raised when the access token expired and could not be renewed."""

    def __init__(self, message: str, status_code: Optional[int] = 401):
        super().__init__(message, status_code=status_code)
        self.code = "EXPIRED_TOKEN"


class RateLimitError(ClientError):
    """Raised when the API rate limit was hit and no retry remains.

    :param message: Description of the rate limit error
    :param status_code: HTTP status code, normally 429
    """

    def __init__(self, message: str, status_code: Optional[int] = 429):
        super().__init__(message, status_code=status_code)
        self.code = "RATE_LIMIT_EXCEEDED"


class ServerError(APIError):
    """Raised for 5xx responses."""

    def __init__(self, message: str, status_code: Optional[int] = 500):
        super().__init__(message, status_code=status_code, code="SERVER_ERROR")


class UnsupportedMethodError(ConvertKitError):
    """Raised when a request is made with an HTTP method the client does not send."""

    def __init__(self, message: str, method: Optional[str] = None):
        details = {"method": method} if method else None
        super().__init__(
            message=message, code="REQUEST_METHOD_UNSUPPORTED", details=details
        )


class UnexpectedResponseTypeError(APIError):
    """Raised when a response body does not decode to the expected JSON shape."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            message, status_code=status_code, code="RESPONSE_TYPE_UNEXPECTED"
        )


class ConfigurationError(ConvertKitError):
    """Raised for configuration errors.

    :param message: Description of the configuration error
    :param config_key: Optional configuration key that caused the error
    """

    def __init__(self, message: str, config_key: Optional[str] = None):
        """Initialize configuration error with message and optional config key."""
        details = {}
        if config_key:
            details["config_key"] = config_key
        super().__init__(message=message, code="CONFIGURATION_ERROR", details=details)


class ValidationError(ConvertKitError):
    """Raised when a resource method rejects its arguments before sending.

    :param message: Description of the validation failure
    :param field: Optional field name that failed validation
    """

    def __init__(self, message: str, field: Optional[str] = None):
        """Initialize validation error with message and optional field."""
        details = {}
        if field:
            details["field"] = field
        super().__init__(message=message, code="VALIDATION_ERROR", details=details)


class InvalidWebhookEventError(ConvertKitError, ValueError):
    """Raised immediately when ``create_webhook`` receives an unknown event name.

    :param event: The rejected event name
    """

    def __init__(self, event: str):
        super().__init__(
            message=f"create_webhook(): the event {event} is not supported.",
            code="INVALID_WEBHOOK_EVENT",
            details={"event": event},
        )
        self.event = event
