"""Unit tests for the Poller state machine.

A fake clock replaces wall-clock time; the injected sleep advances it, and
request latency can advance it too, so deadlines are exercised without waiting.
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from agentrun.core.config import RunnerConfig
from agentrun.core.exceptions import JobTimeoutError, UnexpectedRemoteStatus
from agentrun.core.managers.poller import Poller
from agentrun.core.models.job import PrimitiveResult, RawFallback, StructuredResult


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def response(status, payload=None, body=""):
    return {"status": status, "headers": {}, "json": payload, "body": body}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_http_client():
    return AsyncMock()


@pytest.fixture
def poller(mock_http_client, clock):
    return Poller(
        mock_http_client,
        RunnerConfig(api_base_url="https://api.test"),
        clock=clock,
        sleep=clock.sleep,
    )


class TestAwaitCompletion:
    @pytest.mark.asyncio
    async def test_running_then_done_after_three_polls(self, poller, mock_http_client, clock):
        mock_http_client.get.side_effect = [
            response(202),
            response(202),
            response(200, {"result": "x"}),
        ]

        outcome = await poller.await_completion(123, timedelta(minutes=10))

        assert isinstance(outcome, StructuredResult)
        assert outcome.as_output() == {"result": "x"}
        assert mock_http_client.get.await_count == 3
        assert clock.sleeps == [5.0, 5.0]

    @pytest.mark.asyncio
    async def test_status_request_carries_handle_and_flag(self, poller, mock_http_client):
        mock_http_client.get.return_value = response(200, {"result": "x"})

        await poller.await_completion(123, timedelta(minutes=1), return_all_outputs=True)

        call = mock_http_client.get.await_args
        assert call.args[0] == "https://api.test/workflow-version-execution-results"
        assert call.kwargs["params"] == {
            "workflow_version_execution_id": "123",
            "return_all_outputs": "true",
        }

    @pytest.mark.asyncio
    async def test_times_out_once_deadline_elapsed(self, poller, mock_http_client, clock):
        mock_http_client.get.return_value = response(202)

        with pytest.raises(JobTimeoutError) as excinfo:
            await poller.await_completion(123, timedelta(minutes=1))

        assert clock.now >= 60.0
        assert excinfo.value.elapsed_seconds >= 60.0
        assert excinfo.value.status_code == 408
        assert excinfo.value.execution_id == 123
        assert str(excinfo.value) == "Execution timed out after 1 minute"
        # polls at t=0,5,...,55
        assert mock_http_client.get.await_count == 12

    @pytest.mark.asyncio
    async def test_deadline_counts_request_latency(self, poller, mock_http_client, clock):
        async def slow_get(url, params=None, timeout=None):
            clock.now += 30.0
            return response(202)

        mock_http_client.get.side_effect = slow_get

        with pytest.raises(JobTimeoutError):
            await poller.await_completion(123, timedelta(minutes=1))

        assert mock_http_client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_unexpected_status_fails_immediately(self, poller, mock_http_client, clock):
        mock_http_client.get.side_effect = [response(202), response(500, {"error": "boom"})]

        with pytest.raises(UnexpectedRemoteStatus) as excinfo:
            await poller.await_completion(123, timedelta(minutes=10))

        assert excinfo.value.upstream_status == 500
        assert excinfo.value.status_code == 500
        assert str(excinfo.value) == "Unexpected status 500"
        assert mock_http_client.get.await_count == 2
        assert clock.sleeps == [5.0]

    @pytest.mark.asyncio
    async def test_text_body_used_when_not_json(self, poller, mock_http_client):
        mock_http_client.get.return_value = response(200, None, body="plain answer")

        outcome = await poller.await_completion(1, timedelta(minutes=1))

        assert isinstance(outcome, PrimitiveResult)
        assert outcome.as_output() == {"result": "plain answer", "status": "completed"}

    @pytest.mark.asyncio
    async def test_scalar_body_falls_back_to_raw(self, poller, mock_http_client):
        mock_http_client.get.return_value = response(200, 42, body="42")

        outcome = await poller.await_completion(1, timedelta(minutes=1))

        assert isinstance(outcome, RawFallback)
        assert outcome.result == 42
        assert '"status": 200' in outcome.raw_response

    @pytest.mark.asyncio
    async def test_custom_poll_interval(self, mock_http_client, clock):
        poller = Poller(
            mock_http_client,
            RunnerConfig(poll_interval=0.5),
            clock=clock,
            sleep=clock.sleep,
        )
        mock_http_client.get.side_effect = [response(202), response(200, "done")]

        outcome = await poller.await_completion(1, timedelta(seconds=10))

        assert outcome == PrimitiveResult(result="done")
        assert clock.sleeps == [0.5]
