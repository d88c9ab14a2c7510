"""Tests for the request pipeline: retry, refresh and failure handling.

HTTP is served by ``httpx.MockTransport`` and the rate limit pause is
recorded instead of slept.
"""

import json

import httpx
import pytest

from conftest import RecordingHandler, json_response
from convertkit_api.auth.credentials import CredentialStore
from convertkit_api.auth.hooks import ApiHooks
from convertkit_api.exceptions import ClientError, RateLimitError, ServerError
from convertkit_api.models.base_models import Credentials
from convertkit_api.models.result import FailureKind

EXPIRED = {"errors": ["The access token expired"]}
ACCOUNT = {"account": {"name": "Kit Test", "plan_type": "creator"}}


class TestUnsupportedMethod:
    @pytest.mark.parametrize("method", ["patch", "HEAD", "options", ""])
    def test_no_request_sent(self, make_api, method):
        handler = RecordingHandler()
        api = make_api(handler)

        result = api.request("account", method)

        assert not result.ok
        assert result.kind is FailureKind.REQUEST_METHOD_UNSUPPORTED
        assert result.status_code is None
        assert handler.requests == []

    @pytest.mark.parametrize("method", ["get", "GET", "post", "put", "delete"])
    def test_supported_methods_are_case_insensitive(self, make_api, method):
        handler = RecordingHandler(json_response(200, {}))
        api = make_api(handler)

        assert api.request("tags", method).ok
        assert handler.requests[0].method == method.upper()


class TestSuccess:
    def test_get_account(self, make_api):
        handler = RecordingHandler(json_response(200, ACCOUNT))
        api = make_api(handler)

        result = api.get_account()

        assert result.ok
        assert result.data == ACCOUNT
        request = handler.requests[0]
        assert str(request.url) == "https://api.kit.com/v4/account"
        assert request.headers["Authorization"] == "Bearer test-access-token"
        assert request.headers["Accept"] == "application/json"

    def test_empty_body(self, make_api):
        api = make_api(RecordingHandler(json_response(204)))
        result = api.delete("webhooks/1")
        assert result.ok
        assert result.data is None

    def test_post_sends_json_body(self, make_api):
        handler = RecordingHandler(json_response(201, {"tag": {"id": 1}}))
        api = make_api(handler)

        api.post("tags", {"name": "Customers"})

        assert json.loads(handler.requests[0].content) == {"name": "Customers"}


class TestExpiredToken:
    """401 'The access token expired' refreshes once and retries once."""

    def test_refresh_and_retry(self, make_api, credentials, sample_oauth_token):
        refreshed = []
        handler = RecordingHandler(
            json_response(401, EXPIRED),
            json_response(200, sample_oauth_token),
            json_response(200, ACCOUNT),
        )
        api = make_api(
            handler,
            hooks=ApiHooks(
                on_refresh_token=lambda payload, client_id: refreshed.append(
                    (payload, client_id)
                )
            ),
        )

        result = api.get_account()

        assert result.ok
        assert result.data == ACCOUNT
        assert handler.paths == ["/v4/account", "/oauth/token", "/v4/account"]

        first, token_request, retry = handler.requests
        assert first.headers["Authorization"] == "Bearer test-access-token"
        assert "Authorization" not in token_request.headers
        assert json.loads(token_request.content) == {
            "client_id": "test-client-id",
            "grant_type": "refresh_token",
            "refresh_token": "test-refresh-token",
        }
        assert retry.headers["Authorization"] == "Bearer new-access-token"

        assert api.credentials.current.access_token == "new-access-token"
        assert api.credentials.current.refresh_token == "new-refresh-token"
        assert len(refreshed) == 1
        assert refreshed[0][0]["access_token"] == "new-access-token"
        assert refreshed[0][1] == "test-client-id"
        # Original snapshot is untouched
        assert credentials.access_token == "test-access-token"

    def test_retry_failure_is_returned_without_second_refresh(
        self, make_api, sample_oauth_token
    ):
        handler = RecordingHandler(
            json_response(401, EXPIRED),
            json_response(200, sample_oauth_token),
            json_response(401, EXPIRED),
        )
        api = make_api(handler)

        result = api.get_account()

        assert not result.ok
        assert result.kind is FailureKind.EXPIRED_TOKEN
        assert result.status_code == 401
        assert handler.paths == ["/v4/account", "/oauth/token", "/v4/account"]

    def test_refresh_failure_is_terminal(self, make_api):
        refreshed = []
        handler = RecordingHandler(
            json_response(401, EXPIRED),
            json_response(
                400,
                {"error": "invalid_grant", "error_description": "The provided authorization grant is invalid"},
            ),
        )
        api = make_api(
            handler,
            hooks=ApiHooks(on_refresh_token=lambda *args: refreshed.append(args)),
        )

        result = api.get_account()

        assert not result.ok
        assert result.kind is FailureKind.CLIENT_ERROR
        assert result.status_code == 400
        assert result.message == "The provided authorization grant is invalid"
        assert handler.paths == ["/v4/account", "/oauth/token"]
        assert api.credentials.current.access_token == "test-access-token"
        assert refreshed == []

    def test_rate_limit_on_retry_is_not_retried(self, make_api, sleeps, sample_oauth_token):
        handler = RecordingHandler(
            json_response(401, EXPIRED),
            json_response(200, sample_oauth_token),
            json_response(429, {"errors": ["Too many requests"]}),
        )
        api = make_api(handler)

        result = api.get_account()

        assert result.kind is FailureKind.RATE_LIMIT_EXCEEDED
        assert result.status_code == 429
        assert len(handler.requests) == 3
        assert sleeps == []

    def test_other_401_message_does_not_refresh(self, make_api):
        handler = RecordingHandler(
            json_response(401, {"errors": ["The access token is invalid"]})
        )
        api = make_api(
            handler,
            credentials=Credentials(
                client_id="test-client-id",
                redirect_uri="https://example.com/oauth/callback",
                access_token="bad",
                refresh_token="bad-refresh",
            ),
        )

        result = api.get_account()

        assert not result.ok
        assert result.kind is FailureKind.CLIENT_ERROR
        assert result.status_code == 401
        assert result.message == "The access token is invalid"
        assert handler.paths == ["/v4/account"]
        with pytest.raises(ClientError, match="The access token is invalid"):
            result.unwrap()

    def test_shared_credential_store_sees_refresh(
        self, make_api, credentials, sample_oauth_token
    ):
        store = CredentialStore(credentials)
        handler = RecordingHandler(
            json_response(401, EXPIRED),
            json_response(200, sample_oauth_token),
            json_response(200, ACCOUNT),
            json_response(200, {"tags": []}),
        )
        first = make_api(handler, credentials=store)
        second = make_api(handler, credentials=store)

        first.get_account()
        second.get("tags")

        assert handler.requests[-1].headers["Authorization"] == "Bearer new-access-token"


class TestRateLimit:
    def test_retried_once_after_delay(self, make_api, sleeps):
        handler = RecordingHandler(
            json_response(429, {"errors": ["Too many requests"]}),
            json_response(200, ACCOUNT),
        )
        api = make_api(handler)

        result = api.get_account()

        assert result.ok
        assert sleeps == [2.0]
        assert len(handler.requests) == 2

    def test_second_429_is_returned(self, make_api, sleeps):
        handler = RecordingHandler(
            json_response(429, {}),
            json_response(429, {}),
        )
        api = make_api(handler)

        result = api.get_account()

        assert not result.ok
        assert result.kind is FailureKind.RATE_LIMIT_EXCEEDED
        assert result.message == "ConvertKit API Error: Rate limit hit."
        assert result.status_code == 429
        assert sleeps == [2.0]
        assert len(handler.requests) == 2
        with pytest.raises(RateLimitError):
            result.unwrap()

    def test_retry_disabled(self, make_api, sleeps):
        handler = RecordingHandler(json_response(429, {}))
        api = make_api(handler)

        result = api.request("account", "get", retry_if_rate_limited=False)

        assert result.kind is FailureKind.RATE_LIMIT_EXCEEDED
        assert sleeps == []
        assert len(handler.requests) == 1


class TestTerminalFailures:
    def test_server_error_with_null_body(self, make_api):
        handler = RecordingHandler(httpx.Response(500, content=b"null"))
        api = make_api(handler)

        result = api.get_account()

        assert result.kind is FailureKind.SERVER_ERROR
        assert result.message == "ConvertKit API Error: Internal server error."
        assert result.status_code == 500
        assert len(handler.requests) == 1
        with pytest.raises(ServerError, match="Internal server error"):
            result.unwrap()

    @pytest.mark.parametrize("status", [501, 502, 503, 504, 505])
    def test_server_errors_are_not_retried(self, make_api, sleeps, status):
        handler = RecordingHandler(json_response(status, {"errors": ["ignored"]}))
        api = make_api(handler)

        result = api.get_account()

        assert result.kind is FailureKind.SERVER_ERROR
        assert "ignored" not in result.message
        assert len(handler.requests) == 1
        assert sleeps == []

    def test_transport_error_passes_through(self, make_api, sleeps):
        handler = RecordingHandler(httpx.ConnectError("Connection refused"))
        api = make_api(handler)

        result = api.get_account()

        assert not result.ok
        assert result.kind is FailureKind.TRANSPORT_ERROR
        assert result.status_code is None
        assert "Connection refused" in result.message
        assert len(handler.requests) == 1
        assert sleeps == []
