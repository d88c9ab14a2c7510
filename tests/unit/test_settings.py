"""Tests for environment driven settings."""

import logging

import pytest
from pydantic import ValidationError

from convertkit_api.api.client import ConvertKitAPI
from convertkit_api.auth.verifier_store import (
    EncryptedFileCodeVerifierStore,
    InMemoryCodeVerifierStore,
)
from convertkit_api.config.settings import Settings
from convertkit_api.exceptions import ConfigurationError
from convertkit_api.utils import security


def test_defaults(monkeypatch):
    monkeypatch.delenv("CONVERTKIT_SITE_URL", raising=False)
    s = Settings()
    assert s.api_url_base == "https://api.kit.com/"
    assert s.api_url == "https://api.kit.com/v4/"
    assert s.oauth_authorize_url == "https://app.kit.com/oauth/authorize"
    assert s.request_timeout == 10.0
    assert s.rate_limit_retry_delay == 2.0
    assert s.debug is False


def test_reads_prefixed_environment(monkeypatch):
    monkeypatch.setenv("CONVERTKIT_ACCESS_TOKEN", "env-access")
    monkeypatch.setenv("CONVERTKIT_REQUEST_TIMEOUT", "25")
    monkeypatch.setenv("CONVERTKIT_API_URL_BASE", "https://api.example.test")
    s = Settings()
    assert s.client_id == "test-client-id"
    assert s.access_token == "env-access"
    assert s.request_timeout == 25.0
    assert s.api_url_base == "https://api.example.test/"


def test_field_names_accepted():
    s = Settings(client_id="direct", context="cli")
    assert s.client_id == "direct"
    assert s.context == "cli"


@pytest.mark.parametrize("timeout", [0, -1])
def test_rejects_non_positive_timeout(timeout):
    with pytest.raises(ValidationError):
        Settings(request_timeout=timeout)


def test_from_settings_builds_client():
    s = Settings(access_token="a", refresh_token="r")
    api = ConvertKitAPI.from_settings(s)
    try:
        assert api.credentials.current.client_id == "test-client-id"
        assert api.credentials.current.access_token == "a"
        assert isinstance(api.token_manager.verifier_store, InMemoryCodeVerifierStore)
    finally:
        api.close()


def test_from_settings_uses_encrypted_verifier_file(tmp_path):
    s = Settings(
        code_verifier_path=str(tmp_path / "verifier.enc"), encryption_key="passphrase"
    )
    with ConvertKitAPI.from_settings(s) as api:
        assert isinstance(api.token_manager.verifier_store, EncryptedFileCodeVerifierStore)


def test_from_settings_requires_client_id(monkeypatch):
    monkeypatch.delenv("CONVERTKIT_CLIENT_ID")
    with pytest.raises(ConfigurationError, match="CONVERTKIT_CLIENT_ID"):
        ConvertKitAPI.from_settings(Settings())


@pytest.fixture
def package_logger(monkeypatch):
    """Package logger restored to its handlers and level after the test."""
    monkeypatch.setattr(security, "_LOGGING_CONFIGURED", False)
    logger = logging.getLogger("convertkit_api")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
    logger.setLevel(level)


def test_debug_enables_secure_logging(package_logger):
    s = Settings(debug=True, log_level="WARNING")
    before = list(package_logger.handlers)

    with ConvertKitAPI.from_settings(s):
        added = [h for h in package_logger.handlers if h not in before]

    assert len(added) == 1
    assert isinstance(added[0].formatter, security.SanitizingFormatter)
    assert package_logger.level == logging.WARNING


def test_debug_with_log_file_attaches_audit_log(package_logger, tmp_path):
    path = tmp_path / "debug.log"
    s = Settings(debug=True, log_level="WARNING", log_file=str(path))

    with ConvertKitAPI.from_settings(s) as api:
        api.request("account", "patch")

    assert "API: Error: API request method patch is not supported." in path.read_text()


def test_logging_untouched_without_debug(package_logger):
    before = list(package_logger.handlers)

    with ConvertKitAPI.from_settings(Settings()):
        assert package_logger.handlers == before
    assert security._LOGGING_CONFIGURED is False
