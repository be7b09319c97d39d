"""Tests for vectordoc.client: HTTP transport for the store API."""

import json
import logging
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from unittest.mock import MagicMock, patch

import pytest
import httpx

from vectordoc.client import (
    DEFAULT_RETRY_AFTER,
    MAX_RETRY_AFTER,
    SDK_VERSION,
    HttpClient,
    retry_after_seconds,
)
from vectordoc.config import ClientConfig
from vectordoc.errors import EncodingError, ServerError, TransportError
from vectordoc.types import NumberToken


class FakeResponse:
    """Minimal httpx.Response stand-in."""

    def __init__(self, status_code=200, json_data=None, text=None, headers=None):
        self.status_code = status_code
        if text is None:
            text = json.dumps(json_data if json_data is not None else {"code": 0})
        self.text = text
        self.content = text.encode("utf-8")
        self.headers = headers or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"{self.status_code}",
                request=httpx.Request("POST", "http://test"),
                response=self,
            )


@pytest.fixture
def mock_client(config):
    """HttpClient with a mocked httpx.Client and no real sleeping."""
    with patch("vectordoc.client.httpx.Client") as MockClient, \
            patch("vectordoc.client.time.sleep") as sleep:
        client_instance = MagicMock()
        MockClient.return_value = client_instance
        hc = HttpClient(config)
        yield hc, client_instance, sleep


class TestSetup:
    def test_headers(self, config):
        with patch("vectordoc.client.httpx.Client") as MockClient:
            HttpClient(config)
        kwargs = MockClient.call_args[1]
        assert kwargs["base_url"] == "http://localhost:8100"
        assert kwargs["headers"]["Authorization"] == "Bearer account=root&api_key=secret"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["headers"]["Sdk-Version"] == SDK_VERSION
        assert kwargs["timeout"] == 10.0

    def test_trailing_slash_stripped(self):
        with patch("vectordoc.client.httpx.Client") as MockClient:
            HttpClient(ClientConfig(url="https://vdb.example.com/"))
        assert MockClient.call_args[1]["base_url"] == "https://vdb.example.com"

    def test_rejects_plain_http(self):
        with pytest.raises(ValueError, match="must use HTTPS"):
            HttpClient(ClientConfig(url="http://vdb.example.com"))

    def test_config_property(self, mock_client, config):
        hc, _, _ = mock_client
        assert hc.config is config

    def test_close(self, mock_client):
        hc, http, _ = mock_client
        with hc:
            pass
        http.close.assert_called_once()


class TestRequest:
    def test_posts_compact_json(self, mock_client):
        hc, http, _ = mock_client
        http.post.return_value = FakeResponse(json_data={"code": 0, "msg": "ok"})

        hc.request("/document/count", {"database": "db", "collection": "c"})

        path = http.post.call_args[0][0]
        body = http.post.call_args[1]["content"]
        assert path == "/document/count"
        assert body == b'{"database":"db","collection":"c"}'

    def test_numbers_keep_their_text(self, mock_client):
        hc, http, _ = mock_client
        http.post.return_value = FakeResponse(text='{"code":0,"count":18446744073709551615,"f":1.10}')

        data = hc.request("/document/count", {})

        assert data["count"] == NumberToken("18446744073709551615")
        assert isinstance(data["f"], NumberToken)
        assert data["f"] == "1.10"

    def test_non_zero_code_raises(self, mock_client):
        hc, http, _ = mock_client
        http.post.return_value = FakeResponse(json_data={"code": 15302, "msg": "collection not exist"})

        with pytest.raises(ServerError) as exc:
            hc.request("/document/query", {})

        assert exc.value.code == 15302
        assert exc.value.message == "collection not exist"
        assert str(exc.value) == "code: 15302, message: collection not exist"
        assert http.post.call_count == 1

    def test_invalid_body(self, mock_client):
        hc, http, _ = mock_client
        http.post.return_value = FakeResponse(text="<html>oops</html>")
        with pytest.raises(TransportError, match="invalid response content"):
            hc.request("/document/query", {})

    def test_non_object_body(self, mock_client):
        hc, http, _ = mock_client
        http.post.return_value = FakeResponse(text="[1, 2]")
        with pytest.raises(TransportError, match="invalid response content"):
            hc.request("/document/query", {})

    def test_unencodable_payload(self, mock_client):
        hc, http, _ = mock_client
        with pytest.raises(EncodingError):
            hc.request("/document/upsert", {"bad": {1, 2}})
        http.post.assert_not_called()


class TestRetries:
    def test_4xx_not_retried(self, mock_client):
        hc, http, sleep = mock_client
        http.post.return_value = FakeResponse(status_code=401, text="unauthorized")

        with pytest.raises(TransportError, match="response code is 401"):
            hc.request("/document/query", {})

        assert http.post.call_count == 1
        sleep.assert_not_called()

    def test_5xx_retried(self, mock_client):
        hc, http, sleep = mock_client
        http.post.side_effect = [
            FakeResponse(status_code=503, text="unavailable"),
            FakeResponse(json_data={"code": 0, "affectedCount": 1}),
        ]

        data = hc.request("/document/upsert", {})

        assert data["affectedCount"] == "1"
        assert http.post.call_count == 2
        sleep.assert_called_once_with(1.0)

    def test_connect_errors_exhaust_attempts(self, mock_client):
        hc, http, sleep = mock_client
        http.post.side_effect = httpx.ConnectError("down")

        with pytest.raises(TransportError, match="failed after 3 attempts"):
            hc.request("/document/query", {})

        assert http.post.call_count == 3
        assert [c[0][0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_timeout_retried(self, mock_client):
        hc, http, _ = mock_client
        http.post.side_effect = [
            httpx.ReadTimeout("slow"),
            FakeResponse(json_data={"code": 0}),
        ]
        assert hc.request("/document/query", {}) == {"code": "0"}

    def test_rate_limit_honours_retry_after(self, mock_client):
        hc, http, sleep = mock_client
        http.post.side_effect = [
            FakeResponse(status_code=429, headers={"Retry-After": "2"}),
            FakeResponse(json_data={"code": 0}),
        ]

        hc.request("/document/query", {})

        sleep.assert_called_once_with(2.0)

    def test_retry_after_capped(self, mock_client):
        hc, http, sleep = mock_client
        http.post.side_effect = [
            FakeResponse(status_code=429, headers={"Retry-After": "3600"}),
            FakeResponse(json_data={"code": 0}),
        ]
        hc.request("/document/query", {})
        sleep.assert_called_once_with(60.0)

    def test_max_retries_from_config(self):
        with patch("vectordoc.client.httpx.Client") as MockClient, \
                patch("vectordoc.client.time.sleep"):
            http = MagicMock()
            MockClient.return_value = http
            http.post.side_effect = httpx.ConnectError("down")
            hc = HttpClient(ClientConfig(url="https://vdb.example.com", max_retries=1))
            with pytest.raises(TransportError):
                hc.request("/document/query", {})
        assert http.post.call_count == 1

    @pytest.mark.parametrize("error", [
        httpx.RemoteProtocolError("Server disconnected without sending a response."),
        httpx.ReadError("connection reset"),
        httpx.WriteError("broken pipe"),
    ])
    def test_network_errors_retried(self, mock_client, error):
        hc, http, _ = mock_client
        http.post.side_effect = [error, FakeResponse(json_data={"code": 0})]
        assert hc.request("/document/query", {}) == {"code": "0"}
        assert http.post.call_count == 2

    def test_protocol_errors_surface_as_transport_error(self, mock_client):
        hc, http, _ = mock_client
        http.post.side_effect = httpx.RemoteProtocolError("Server disconnected")

        with pytest.raises(TransportError, match="failed after 3 attempts") as exc:
            hc.request("/document/query", {})

        assert isinstance(exc.value.__cause__, httpx.RemoteProtocolError)

    def test_other_http_errors_wrapped_without_retry(self, mock_client):
        hc, http, sleep = mock_client
        http.post.side_effect = httpx.TooManyRedirects("redirect loop")

        with pytest.raises(TransportError, match="redirect loop"):
            hc.request("/document/query", {})

        assert http.post.call_count == 1
        sleep.assert_not_called()

    def test_retry_after_http_date(self, mock_client):
        hc, http, sleep = mock_client
        http.post.side_effect = [
            FakeResponse(status_code=429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"}),
            FakeResponse(json_data={"code": 0}),
        ]
        hc.request("/document/query", {})
        sleep.assert_called_once_with(0.0)


class TestRetryAfter:
    def test_seconds(self):
        assert retry_after_seconds("2") == 2.0
        assert retry_after_seconds("3600") == MAX_RETRY_AFTER
        assert retry_after_seconds("-4") == 0.0

    def test_future_date(self):
        when = datetime.now(timezone.utc) + timedelta(seconds=30)
        delay = retry_after_seconds(format_datetime(when, usegmt=True))
        assert 25.0 < delay <= 30.0

    def test_past_date(self):
        assert retry_after_seconds("Wed, 21 Oct 2015 07:28:00 GMT") == 0.0

    @pytest.mark.parametrize("value", [None, "", "soon", "nan"])
    def test_unreadable_values_use_default(self, value):
        assert retry_after_seconds(value) == DEFAULT_RETRY_AFTER


class TestDebug:
    def test_logs_bodies_when_enabled(self, mock_client, caplog):
        hc, http, _ = mock_client
        http.post.return_value = FakeResponse(json_data={"code": 0})
        hc.debug(True)

        with caplog.at_level(logging.DEBUG, logger="vectordoc.client"):
            hc.request("/document/count", {"database": "db"})

        assert 'REQUEST POST /document/count {"database":"db"}' in caplog.text
        assert "RESPONSE /document/count 200" in caplog.text

    def test_silent_by_default(self, mock_client, caplog):
        hc, http, _ = mock_client
        http.post.return_value = FakeResponse(json_data={"code": 0})

        with caplog.at_level(logging.DEBUG, logger="vectordoc.client"):
            hc.request("/document/count", {})

        assert "REQUEST" not in caplog.text
