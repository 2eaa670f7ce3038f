"""Tests for the retrying HTTP layer."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from clusterops._http import (
    ApiRequest,
    AsyncTransport,
    RetryingClient,
    RetryPolicy,
    _extract_error_message,
)
from clusterops.exceptions import (
    ConnectionError,
    NotFoundError,
    ServerError,
    TimeoutError,
    ValidationError,
)

POLICY = RetryPolicy(max_retries=2, base_delay=0.1, timeout=1.0, max_delay=5.0)


def _client(base_url: str, sleeps: object) -> RetryingClient:
    return RetryingClient(AsyncTransport(base_url), sleep=sleeps)  # type: ignore[arg-type]


class TestRetryPolicy:
    """Test backoff computation."""

    def test_delay_doubles_per_retry(self) -> None:
        policy = RetryPolicy(base_delay=0.2, max_delay=5.0)

        assert policy.delay_for(1) == pytest.approx(0.2)
        assert policy.delay_for(2) == pytest.approx(0.4)
        assert policy.delay_for(3) == pytest.approx(0.8)

    def test_delay_is_capped(self) -> None:
        policy = RetryPolicy(base_delay=1.0, max_delay=3.0)

        assert policy.delay_for(5) == 3.0

    def test_rejects_negative_retries(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=-1)

    def test_rejects_zero_timeout(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(timeout=0)


class TestRetryingClient:
    """Test retry behaviour against a mocked origin."""

    @pytest.mark.anyio
    async def test_transient_errors_are_retried(
        self, base_url: str, mock_api: respx.MockRouter, sleeps
    ) -> None:
        """Two 503s then success: the caller only sees the success."""
        route = mock_api.get("/nodes").mock(
            side_effect=[
                httpx.Response(503, text="busy"),
                httpx.Response(503, text="busy"),
                httpx.Response(200, json={}),
            ]
        )

        http = _client(base_url, sleeps)
        result = await http.get("/nodes", policy=POLICY)
        await http.close()

        assert result == {}
        assert route.call_count == 3
        assert sleeps.delays == [pytest.approx(0.1), pytest.approx(0.2)]

    @pytest.mark.anyio
    async def test_retries_are_bounded(
        self, base_url: str, mock_api: respx.MockRouter, sleeps
    ) -> None:
        route = mock_api.get("/nodes").mock(return_value=httpx.Response(500, text="boom"))

        http = _client(base_url, sleeps)
        with pytest.raises(ServerError) as exc_info:
            await http.get("/nodes", policy=POLICY)
        await http.close()

        assert route.call_count == POLICY.max_retries + 1
        assert len(sleeps.delays) == POLICY.max_retries
        assert exc_info.value.message == "boom"
        assert exc_info.value.status_code == 500

    @pytest.mark.anyio
    async def test_validation_error_is_not_retried(
        self, base_url: str, mock_api: respx.MockRouter, sleeps
    ) -> None:
        route = mock_api.post("/pods").mock(
            return_value=httpx.Response(400, text="No node has enough available CPU\n")
        )

        http = _client(base_url, sleeps)
        with pytest.raises(ValidationError) as exc_info:
            await http.post("/pods", json={"cpuRequired": 10}, policy=POLICY)
        await http.close()

        assert route.call_count == 1
        assert sleeps.delays == []
        assert exc_info.value.message == "No node has enough available CPU"

    @pytest.mark.anyio
    async def test_not_found_is_not_retried(
        self, base_url: str, mock_api: respx.MockRouter, sleeps
    ) -> None:
        route = mock_api.delete("/nodes/gone").mock(
            return_value=httpx.Response(404, text="Node not found")
        )

        http = _client(base_url, sleeps)
        with pytest.raises(NotFoundError):
            await http.delete("/nodes/gone", policy=POLICY)
        await http.close()

        assert route.call_count == 1

    @pytest.mark.anyio
    async def test_connection_error_is_transient(
        self, base_url: str, mock_api: respx.MockRouter, sleeps
    ) -> None:
        route = mock_api.get("/nodes").mock(
            side_effect=[httpx.ConnectError("refused"), httpx.Response(200, json={})]
        )

        http = _client(base_url, sleeps)
        assert await http.get("/nodes", policy=POLICY) == {}
        await http.close()

        assert route.call_count == 2

    @pytest.mark.anyio
    async def test_timeout_maps_to_timeout_error(
        self, base_url: str, mock_api: respx.MockRouter, sleeps
    ) -> None:
        mock_api.get("/nodes").mock(side_effect=httpx.ReadTimeout("slow"))

        http = _client(base_url, sleeps)
        with pytest.raises(TimeoutError):
            await http.get("/nodes", policy=RetryPolicy(max_retries=0, timeout=0.5))
        await http.close()

    @pytest.mark.anyio
    async def test_exhausted_connection_errors_raise(
        self, base_url: str, mock_api: respx.MockRouter, sleeps
    ) -> None:
        mock_api.get("/nodes").mock(side_effect=httpx.ConnectError("refused"))

        http = _client(base_url, sleeps)
        with pytest.raises(ConnectionError):
            await http.get("/nodes", policy=POLICY)
        await http.close()

        assert len(sleeps.delays) == 2

    @pytest.mark.anyio
    async def test_request_body_is_json(
        self, base_url: str, mock_api: respx.MockRouter, sleeps
    ) -> None:
        route = mock_api.post("/nodes").mock(
            return_value=httpx.Response(201, json={"message": "Node added", "nodeId": "n1"})
        )

        http = _client(base_url, sleeps)
        result = await http.execute(ApiRequest("POST", "/nodes", json={"cpuCores": 4}), POLICY)
        await http.close()

        assert result["nodeId"] == "n1"
        assert json.loads(route.calls[0].request.content) == {"cpuCores": 4}


class TestErrorMessages:
    """Error bodies are forwarded to the user as text."""

    def test_plain_text_body(self) -> None:
        response = httpx.Response(400, text="Invalid CPU cores\n")
        assert _extract_error_message(response) == "Invalid CPU cores"

    def test_json_message_field(self) -> None:
        response = httpx.Response(422, json={"message": "bad algorithm"})
        assert _extract_error_message(response) == "bad algorithm"

    def test_json_nested_error(self) -> None:
        response = httpx.Response(400, json={"error": {"message": "nested"}})
        assert _extract_error_message(response) == "nested"

    def test_empty_body_falls_back_to_status(self) -> None:
        response = httpx.Response(503)
        assert _extract_error_message(response) == "HTTP 503: Service Unavailable"
