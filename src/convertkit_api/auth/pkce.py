"""PKCE (RFC 7636) helpers for the OAuth authorization code flow."""

import base64
import hashlib
import secrets

VERIFIER_BYTES = 64
CODE_CHALLENGE_METHOD = "S256"


def base64_urlencode(data: bytes) -> str:
    """Encode bytes as base64url without ``=`` padding.

    :param data: Raw bytes
    :type data: bytes
    :return: URL safe base64 string
    :rtype: str
    """
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def base64_urldecode(value: str) -> bytes:
    """Decode a base64url string, restoring any stripped padding."""
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


def generate_code_verifier() -> str:
    """Generate a new code verifier from 64 random bytes.

    :return: base64url encoded verifier
    :rtype: str
    """
    return base64_urlencode(secrets.token_bytes(VERIFIER_BYTES))


def generate_code_challenge(code_verifier: str) -> str:
    """Derive the S256 code challenge for a verifier.

    :param code_verifier: The verifier sent later with the code exchange
    :type code_verifier: str
    :return: base64url(sha256(verifier)) without padding
    :rtype: str
    """
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64_urlencode(digest)
