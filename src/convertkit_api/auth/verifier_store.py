"""Storage for the PKCE code verifier across the OAuth redirect.

The verifier is created when the authorization URL is built and must
survive until the redirect comes back with an authorization code. Two
stores are provided:

- :class:`InMemoryCodeVerifierStore` for single process flows and tests
- :class:`EncryptedFileCodeVerifierStore` which keeps the verifier in a
  Fernet encrypted file so a separate process can complete the exchange
"""

import base64
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CodeVerifierStore(ABC):
    """Key-value style holder for a single PKCE code verifier."""

    @abstractmethod
    def get(self) -> Optional[str]:
        """Return the stored verifier, or ``None``."""

    @abstractmethod
    def set(self, code_verifier: str) -> None:
        """Store a verifier, replacing any previous one."""

    @abstractmethod
    def delete(self) -> None:
        """Remove the stored verifier. A no-op when nothing is stored."""


class InMemoryCodeVerifierStore(CodeVerifierStore):
    def __init__(self, code_verifier: Optional[str] = None):
        self._code_verifier = code_verifier

    def get(self) -> Optional[str]:
        return self._code_verifier

    def set(self, code_verifier: str) -> None:
        self._code_verifier = code_verifier

    def delete(self) -> None:
        self._code_verifier = None


class EncryptedFileCodeVerifierStore(CodeVerifierStore):
    """
    File backed verifier store with encryption at rest.

    The key is taken from the ``encryption_key`` argument or the
    ``CONVERTKIT_ENCRYPTION_KEY`` environment variable. A urlsafe base64
    32 byte key is used as-is; any other value is treated as a passphrase
    and stretched with PBKDF2. Without either, a key is generated and
    written next to the verifier file with owner-only permissions.
    """

    def __init__(
        self,
        storage_path: Optional[Path] = None,
        encryption_key: Optional[str] = None,
    ):
        """
        Initialize the store.

        Args:
            storage_path: Path of the encrypted verifier file
            encryption_key: Base64 encoded key or passphrase
        """
        self.storage_path = Path(storage_path) if storage_path else self._get_default_path()
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        self._fernet = self._initialize_encryption(encryption_key)

    def _get_default_path(self) -> Path:
        """Get default storage path."""
        if os.name == "nt":  # Windows
            base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        else:
            base = Path(
                os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")
            )
        return base / "convertkit-api" / "code_verifier.enc"

    def _initialize_encryption(self, key_input: Optional[str]) -> Fernet:
        if not key_input:
            key_input = os.getenv("CONVERTKIT_ENCRYPTION_KEY")

        if not key_input:
            key_file = self.storage_path.parent / ".key"
            if key_file.exists():
                key = key_file.read_bytes()
            else:
                key = Fernet.generate_key()
                try:
                    with open(key_file, "wb") as f:
                        f.write(key)
                    os.chmod(key_file, 0o600)  # Owner read/write only
                except OSError as e:
                    logger.warning(f"Could not save encryption key: {e}")
            return Fernet(key)

        try:
            raw = base64.urlsafe_b64decode(key_input)
            if len(raw) == 32:
                return Fernet(key_input.encode())
        except ValueError:
            pass

        # Not a Fernet key, derive one from the passphrase
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=b"convertkit-api-salt",  # Fixed salt for deterministic key
            iterations=100000,
        )
        return Fernet(base64.urlsafe_b64encode(kdf.derive(key_input.encode())))

    def get(self) -> Optional[str]:
        if not self.storage_path.exists():
            return None
        try:
            return self._fernet.decrypt(self.storage_path.read_bytes()).decode()
        except InvalidToken:
            logger.warning(
                "Stored code verifier could not be decrypted, discarding it"
            )
            self.delete()
            return None

    def set(self, code_verifier: str) -> None:
        encrypted = self._fernet.encrypt(code_verifier.encode())
        tmp_path = self.storage_path.with_suffix(".tmp")
        try:
            with open(tmp_path, "wb") as f:
                f.write(encrypted)
            os.chmod(tmp_path, 0o600)
            tmp_path.replace(self.storage_path)
        except OSError as e:
            logger.error(f"Failed to save code verifier: {e}")
            raise ConfigurationError(
                f"Failed to save code verifier: {e}", config_key="code_verifier_path"
            ) from e
        logger.debug("Stored PKCE code verifier")

    def delete(self) -> None:
        if self.storage_path.exists():
            self.storage_path.unlink()
            logger.debug("Deleted PKCE code verifier")
