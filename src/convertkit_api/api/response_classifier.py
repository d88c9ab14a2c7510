"""Map an HTTP status and raw body to an :data:`ApiResult`.

The classifier is pure: it never sends requests and never retries.
Expired-token and rate-limit failures are tagged with their own kinds
so the retry orchestrator can act on them.
"""

import json
import logging
from typing import Any

from .. import messages
from ..models.result import ApiResult, Failure, FailureKind, Success

logger = logging.getLogger(__name__)


def _decode_json(body: bytes) -> Any:
    """Decode a JSON body.

    :raises ValueError: If the body is not valid JSON
    """
    return json.loads(body.decode("utf-8"))


def extract_error_message(body: bytes) -> str:
    """Extract the error message from a 4xx response body.

    An ``errors`` key (a list, joined by newlines) wins over
    ``error_description``, even when the list is empty.
    Anything else yields an empty message.

    :param body: Raw response body
    :type body: bytes
    :return: Error message, possibly empty
    :rtype: str
    """
    try:
        payload = _decode_json(body) if body.strip() else None
    except ValueError:
        return ""
    if not isinstance(payload, dict):
        return ""

    if "errors" in payload:
        errors = payload["errors"]
        if isinstance(errors, list):
            return "\n".join(str(error) for error in errors)
        return "" if errors is None else str(errors)

    description = payload.get("error_description")
    if description:
        return str(description)
    return ""


def classify(status_code: int, body: bytes) -> ApiResult:
    """Classify a transport response.

    :param status_code: HTTP status code
    :type status_code: int
    :param body: Raw response body
    :type body: bytes
    :return: Success with the decoded body, or a Failure
    :rtype: ApiResult
    """
    if status_code >= 500:
        return Failure(
            kind=FailureKind.SERVER_ERROR,
            message=messages.server_error_message(status_code),
            status_code=status_code,
        )

    if status_code >= 400:
        message = extract_error_message(body)
        if status_code == 429:
            return Failure(
                kind=FailureKind.RATE_LIMIT_EXCEEDED,
                message=messages.RATE_LIMIT_EXCEEDED,
                status_code=status_code,
            )
        if status_code == 401 and message == messages.EXPIRED_TOKEN_MESSAGE:
            return Failure(
                kind=FailureKind.EXPIRED_TOKEN,
                message=message,
                status_code=status_code,
            )
        return Failure(
            kind=FailureKind.CLIENT_ERROR,
            message=message,
            status_code=status_code,
        )

    if not body.strip():
        return Success(data=None)

    try:
        return Success(data=_decode_json(body))
    except ValueError:
        logger.debug(f"Response body with status {status_code} is not JSON")
        return Failure(
            kind=FailureKind.RESPONSE_TYPE_UNEXPECTED,
            message=messages.RESPONSE_TYPE_UNEXPECTED,
            status_code=status_code,
        )
