"""OAuth credentials, PKCE and token management."""

from .credentials import CredentialStore
from .hooks import ApiHooks
from .verifier_store import (
    CodeVerifierStore,
    EncryptedFileCodeVerifierStore,
    InMemoryCodeVerifierStore,
)

__all__ = [
    "ApiHooks",
    "CodeVerifierStore",
    "CredentialStore",
    "EncryptedFileCodeVerifierStore",
    "InMemoryCodeVerifierStore",
]
