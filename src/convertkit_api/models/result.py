"""Result types returned by the request pipeline.

Every call through :meth:`ConvertKitAPI.request` returns either a
:class:`Success` carrying the decoded JSON body, or a :class:`Failure`
carrying a machine-checkable :class:`FailureKind`, a human readable
message and, for HTTP level failures, the status code.

Example:
    >>> result = api.get_account()
    >>> if result.ok:
    ...     print(result.data["account"]["name"])
    ... else:
    ...     print(result.kind, result.message)
"""

from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

from ..exceptions import (
    ClientError,
    ConvertKitError,
    ExpiredTokenError,
    RateLimitError,
    ServerError,
    TransportError,
    UnexpectedResponseTypeError,
    UnsupportedMethodError,
    ValidationError,
)


class FailureKind(str, Enum):
    """Classification of a failed call."""

    TRANSPORT_ERROR = "transport_error"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    EXPIRED_TOKEN = "expired_token"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    REQUEST_METHOD_UNSUPPORTED = "request_method_unsupported"
    RESPONSE_TYPE_UNEXPECTED = "response_type_unexpected"
    VALIDATION_ERROR = "validation_error"


class Success(BaseModel):
    """Successful call.

    :param data: Decoded JSON body, or ``None`` for an empty body
    :type data: Any
    """

    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    data: Any = None

    def unwrap(self) -> Any:
        """Return the payload.

        :return: The decoded response body
        :rtype: Any
        """
        return self.data


class Failure(BaseModel):
    """Failed call.

    :param kind: Failure classification
    :type kind: FailureKind
    :param message: Human readable message
    :type message: str
    :param status_code: HTTP status code for 4xx/5xx failures
    :type status_code: Optional[int]
    """

    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    kind: FailureKind
    message: str = ""
    status_code: Optional[int] = None

    def to_exception(self) -> ConvertKitError:
        """Build the exception matching this failure's kind.

        :return: Exception instance, not raised
        :rtype: ConvertKitError
        """
        kind = self.kind
        if kind is FailureKind.TRANSPORT_ERROR:
            return TransportError(self.message)
        if kind is FailureKind.EXPIRED_TOKEN:
            return ExpiredTokenError(self.message, self.status_code)
        if kind is FailureKind.RATE_LIMIT_EXCEEDED:
            return RateLimitError(self.message, self.status_code)
        if kind is FailureKind.SERVER_ERROR:
            return ServerError(self.message, self.status_code)
        if kind is FailureKind.REQUEST_METHOD_UNSUPPORTED:
            return UnsupportedMethodError(self.message)
        if kind is FailureKind.RESPONSE_TYPE_UNEXPECTED:
            return UnexpectedResponseTypeError(self.message, self.status_code)
        if kind is FailureKind.VALIDATION_ERROR:
            return ValidationError(self.message)
        return ClientError(self.message, self.status_code)

    def unwrap(self) -> Any:
        """Raise the exception matching this failure.

        :raises ConvertKitError: Always
        """
        raise self.to_exception()


ApiResult = Union[Success, Failure]
