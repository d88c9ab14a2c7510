"""Masking, validation and secure logging utilities.

This module consolidates:
- Masking of email addresses, tokens and signed subscriber IDs
- Log sanitization and the audit log setup
- Input validation used by resource methods before a request is sent
"""

import copy
import logging
import re
import sys
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..exceptions import ValidationError

PACKAGE_LOGGER = "convertkit_api"
AUDIT_LOG_FORMAT = "(%(asctime)s) %(message)s"
AUDIT_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

EMAIL_PATTERN = re.compile(
    r"[_a-z0-9-]+(?:\.[_a-z0-9-]+)*@[a-z0-9-]+(?:\.[a-z0-9-]+)*(?:\.[a-z]{2,3})",
    re.IGNORECASE,
)

# Patterns for sensitive data detection
SENSITIVE_PATTERNS = {
    "jwt_token": re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"),
    "bearer_token": re.compile(r"Bearer\s+[A-Za-z0-9._~+/=-]+", re.IGNORECASE),
}

# Headers that should never be logged
SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "set-cookie",
    "x-access-token",
    "x-refresh-token",
}

# Request parameters masked in request log lines
FULLY_MASKED_PARAMS = {
    "access_token",
    "refresh_token",
    "code",
    "code_verifier",
    "token",
    "subscriber_code",
    "signed_subscriber_id",
}
PARTIALLY_MASKED_PARAMS = {"first_name"}

# Endpoints whose trailing path segment is a signed subscriber ID
SIGNED_ID_ENDPOINT = re.compile(r"^(profile/)(.+)$")
SIGNED_ID_URL = re.compile(r"(/profile/)([^/?#]+)")

# =============================================================================
# Masking
# =============================================================================


def mask_string(value: Any, visible: int = 4) -> str:
    """Replace all but the last ``visible`` characters with ``*``.

    :param value: Value to mask
    :type value: Any
    :param visible: Number of trailing characters left readable
    :type visible: int
    :return: Masked string
    :rtype: str
    """
    text = str(value)
    if visible <= 0:
        return "*" * len(text)
    if len(text) <= visible:
        return text
    return "*" * (len(text) - visible) + text[-visible:]


def mask_email(email: str) -> str:
    """Mask one email address, keeping the first character of each word.

    ``optin@nowhere.com`` becomes ``o****@n******.c**``.
    """
    return re.sub(r"\B[^@.]", "*", email)


def mask_email_addresses(text: str) -> str:
    """Mask every email address found in ``text``."""
    if not text:
        return text
    return EMAIL_PATTERN.sub(lambda match: mask_email(match.group(0)), text)


def sanitize_string(value: str) -> str:
    """Redact tokens and mask email addresses in a string.

    :param value: String to sanitize
    :type value: str
    :return: Sanitized string
    :rtype: str
    """
    if not value:
        return value
    for pattern_name, pattern in SENSITIVE_PATTERNS.items():
        value = pattern.sub(f"<{pattern_name}:REDACTED>", value)
    return mask_email_addresses(value)


def sanitize_headers(headers: Dict[str, Any]) -> Dict[str, Any]:
    """Sanitize HTTP headers for logging.

    :param headers: Dictionary of HTTP headers
    :type headers: Dict[str, Any]
    :return: Sanitized headers dictionary
    :rtype: Dict[str, Any]
    """
    if not headers:
        return headers
    sanitized = dict(headers)
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            if isinstance(value, str) and len(value) > 0:
                sanitized[key] = f"<REDACTED:length={len(value)}>"
            else:
                sanitized[key] = "<REDACTED>"
        elif isinstance(value, str):
            sanitized[key] = sanitize_string(value)
    return sanitized


def mask_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Mask request parameters before they are written to a log line.

    Tokens, codes and signed IDs are replaced entirely; names keep their
    last four characters; email addresses keep their first characters.

    :param params: Request parameters
    :type params: Optional[Dict[str, Any]]
    :return: Masked copy of the parameters
    :rtype: Dict[str, Any]
    """
    if not params:
        return {}
    masked = copy.deepcopy(params)

    def _mask_nested(obj: Any) -> Any:
        if isinstance(obj, dict):
            for key, value in obj.items():
                lower_key = str(key).lower()
                if value is None:
                    continue
                if lower_key in FULLY_MASKED_PARAMS:
                    obj[key] = mask_string(value, visible=0)
                elif lower_key in PARTIALLY_MASKED_PARAMS:
                    obj[key] = mask_string(value)
                elif isinstance(value, str):
                    obj[key] = sanitize_string(value)
                elif isinstance(value, (dict, list)):
                    obj[key] = _mask_nested(value)
        elif isinstance(obj, list):
            return [_mask_nested(item) for item in obj]
        elif isinstance(obj, str):
            return sanitize_string(obj)
        return obj

    return _mask_nested(masked)


def mask_endpoint(endpoint: str) -> str:
    """Mask the signed subscriber ID in ``profile/{id}`` endpoints."""
    match = SIGNED_ID_ENDPOINT.match(endpoint)
    if not match:
        return endpoint
    return match.group(1) + mask_string(match.group(2), visible=0)


def mask_url(url: str) -> str:
    """Mask the signed subscriber ID in a full ``.../profile/{id}`` URL."""
    return SIGNED_ID_URL.sub(
        lambda match: match.group(1) + mask_string(match.group(2), visible=0), url
    )


# =============================================================================
# Secure Logging Setup
# =============================================================================


class SanitizingFormatter(logging.Formatter):
    """Formatter that masks sensitive data in every record.

    The message is rendered with its arguments first, then tokens are
    redacted and email addresses masked.
    """

    def format(self, record: logging.LogRecord) -> str:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            message = str(record.msg)
        record.msg = sanitize_string(message)
        record.args = None
        return super().format(record)


_LOGGING_CONFIGURED = False


def setup_secure_logging(level: str = "INFO") -> None:
    """Send package logs to stdout through the sanitizing formatter.

    Calling this more than once is a no-op.

    :param level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    :type level: str
    """
    global _LOGGING_CONFIGURED

    if _LOGGING_CONFIGURED:
        logging.getLogger(__name__).debug(
            "Logging already configured, skipping duplicate setup"
        )
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        SanitizingFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level.upper()))

    _LOGGING_CONFIGURED = True


def setup_audit_log(path: str, level: str = "DEBUG") -> logging.Handler:
    """Attach a masked audit log file to the package logger.

    Entries are written as ``(YYYY-MM-DD HH:MM:SS) message``.

    :param path: Log file path
    :type path: str
    :param level: Minimum level written to the file
    :type level: str
    :return: The file handler, so callers can remove it again
    :rtype: logging.Handler
    """
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(getattr(logging, level.upper()))
    handler.setFormatter(SanitizingFormatter(AUDIT_LOG_FORMAT, AUDIT_LOG_DATEFMT))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.addHandler(handler)
    if package_logger.getEffectiveLevel() > handler.level:
        package_logger.setLevel(handler.level)
    return handler


# =============================================================================
# Validation Helpers
# =============================================================================


def validate_url(url: str, allowed_schemes: Optional[List[str]] = None) -> str:
    """Validate that ``url`` is an absolute http(s) URL.

    :param url: URL to validate
    :type url: str
    :param allowed_schemes: Allowed URL schemes
    :type allowed_schemes: Optional[List[str]]
    :return: Validated URL
    :rtype: str
    :raises ValidationError: If URL is invalid
    """
    if allowed_schemes is None:
        allowed_schemes = ["http", "https"]

    url = (url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme.lower() not in allowed_schemes or not parsed.netloc:
        raise ValidationError(f"Invalid URL: {url}", field="url")
    return url
