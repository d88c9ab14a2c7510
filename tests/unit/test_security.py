"""Tests for masking and secure logging."""

import json
import logging

import httpx
import pytest

from conftest import RecordingHandler, json_response
from convertkit_api.exceptions import ValidationError
from convertkit_api.utils.security import (
    SanitizingFormatter,
    mask_email,
    mask_email_addresses,
    mask_endpoint,
    mask_params,
    mask_string,
    mask_url,
    sanitize_headers,
    sanitize_string,
    setup_audit_log,
    validate_url,
)


class TestMasking:
    def test_mask_email(self):
        assert mask_email("optin@nowhere.com") == "o****@n******.c**"

    def test_mask_email_addresses_in_text(self):
        text = "Subscribed optin@nowhere.com and test.user@example.co.uk"
        assert mask_email_addresses(text) == (
            "Subscribed o****@n******.c** and t***.u***@e******.c*.u*"
        )

    def test_mask_string_keeps_last_four(self):
        assert mask_string("First Name") == "******Name"

    def test_mask_string_short_value(self):
        assert mask_string("abc") == "abc"

    def test_mask_string_fully(self):
        assert mask_string("signed-id", visible=0) == "*********"

    def test_mask_params(self):
        params = {
            "email_address": "optin@nowhere.com",
            "first_name": "First Name",
            "token": "abcdef",
            "fields": {"last_name": "Last"},
            "tag_id": 12,
        }
        assert mask_params(params) == {
            "email_address": "o****@n******.c**",
            "first_name": "******Name",
            "token": "******",
            "fields": {"last_name": "Last"},
            "tag_id": 12,
        }
        assert params["first_name"] == "First Name"

    def test_mask_endpoint(self):
        assert mask_endpoint("profile/abc123") == "profile/******"
        assert mask_endpoint("subscribers/1") == "subscribers/1"

    def test_mask_url(self):
        assert mask_url("https://api.kit.com/wordpress/profile/abc123?x=1") == (
            "https://api.kit.com/wordpress/profile/******?x=1"
        )
        assert mask_url("https://api.kit.com/v4/account") == "https://api.kit.com/v4/account"

    def test_sanitize_string_redacts_bearer_token(self):
        assert "secret-token" not in sanitize_string("Authorization: Bearer secret-token")

    def test_sanitize_headers(self):
        headers = sanitize_headers({"Authorization": "Bearer abc", "Accept": "application/json"})
        assert headers["Authorization"] == "<REDACTED:length=10>"
        assert headers["Accept"] == "application/json"


class TestSanitizingFormatter:
    def test_masks_formatted_arguments(self):
        formatter = SanitizingFormatter("%(message)s")
        record = logging.LogRecord(
            "convertkit_api", logging.INFO, __file__, 1,
            "Subscribed %s", ("optin@nowhere.com",), None,
        )
        assert formatter.format(record) == "Subscribed o****@n******.c**"


class TestAuditLog:
    def test_request_and_failure_lines_are_masked(self, make_api, tmp_path):
        path = tmp_path / "debug.log"
        handler = setup_audit_log(str(path))
        try:
            api = make_api(
                RecordingHandler(json_response(422, {"errors": ["Email address is invalid"]}))
            )
            api.post(
                "subscribers",
                {"email_address": "optin@nowhere.com", "first_name": "First Name"},
            )
        finally:
            logging.getLogger("convertkit_api").removeHandler(handler)
            handler.close()

        lines = path.read_text().splitlines()
        request_line = next(line for line in lines if "API: POST subscribers" in line)
        assert request_line.startswith("(")
        params = json.loads(request_line.split("API: POST subscribers: ", 1)[1])
        assert params == {"email_address": "o****@n******.c**", "first_name": "******Name"}
        assert any("API: Error: Email address is invalid" in line for line in lines)
        assert "optin@nowhere.com" not in path.read_text()

    def test_profile_signed_id_is_masked(self, make_api, tmp_path):
        path = tmp_path / "debug.log"
        handler = setup_audit_log(str(path))
        try:
            api = make_api(RecordingHandler(json_response(200, {"id": 1, "products": []})))
            api.profile("signed-subscriber-id")
        finally:
            logging.getLogger("convertkit_api").removeHandler(handler)
            handler.close()

        assert "signed-subscriber-id" not in path.read_text()
        assert "API: GET profile/********************" in path.read_text()


SIGNED_ID = "signedSubscriberIdSECRET123"


@pytest.fixture
def audit_log(tmp_path):
    path = tmp_path / "debug.log"
    handler = setup_audit_log(str(path))
    yield path
    logging.getLogger("convertkit_api").removeHandler(handler)
    handler.close()


class TestAuditLogRetryPaths:
    """Signed subscriber IDs stay masked on every retry and error path."""

    def test_rate_limit_retry(self, make_api, audit_log, sleeps):
        api = make_api(
            RecordingHandler(
                json_response(429, {"errors": ["Too many requests"]}),
                json_response(200, {"id": 1, "products": []}),
            )
        )

        assert api.profile(SIGNED_ID).ok

        assert sleeps == [2.0]
        text = audit_log.read_text()
        assert "Rate limit hit on profile/***" in text
        assert SIGNED_ID not in text

    def test_expired_token_refresh(self, make_api, audit_log, sample_oauth_token):
        handler = RecordingHandler(
            json_response(401, {"errors": ["The access token expired"]}),
            json_response(200, sample_oauth_token),
            json_response(200, {"id": 1, "products": []}),
        )
        api = make_api(handler)

        assert api.profile(SIGNED_ID).ok

        assert handler.paths[-1] == f"/wordpress/profile/{SIGNED_ID}"
        text = audit_log.read_text()
        assert "Access token expired calling profile/***" in text
        assert SIGNED_ID not in text

    def test_transport_error(self, make_api, audit_log):
        api = make_api(RecordingHandler(httpx.ConnectError("refused")))

        result = api.profile(SIGNED_ID)

        assert not result.ok
        text = audit_log.read_text()
        assert "HTTP request to https://api.kit.com/wordpress/profile/***" in text
        assert SIGNED_ID not in text


class TestValidateUrl:
    @pytest.mark.parametrize("url", ["https://example.com", "http://localhost:8080/cb"])
    def test_valid(self, url):
        assert validate_url(url) == url

    @pytest.mark.parametrize("url", ["not-a-url", "javascript:alert(1)", "ftp://example.com", ""])
    def test_invalid(self, url):
        with pytest.raises(ValidationError):
            validate_url(url)
