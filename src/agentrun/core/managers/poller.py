"""Poller: waits for a submitted execution by repeated result requests.

The loop is serial (one request in flight) and bounded by wall-clock time,
since request latency varies; the deadline is only checked between polls.
"""

import asyncio
import time
from datetime import timedelta
from enum import StrEnum
from typing import Any, Awaitable, Callable, Dict

from agentrun.core.config import RunnerConfig
from agentrun.core.exceptions import JobTimeoutError, UnexpectedRemoteStatus
from agentrun.core.interfaces.http_client import HttpClientPort
from agentrun.core.managers.result_normalizer import ResultNormalizer
from agentrun.core.models.job import ExecutionHandle, JobOutcome
from agentrun.core.settings import logger

STATUS_COMPLETED = 200
STATUS_RUNNING = 202


class PollState(StrEnum):
    polling = "polling"
    completed = "completed"
    failed = "failed"
    timed_out = "timed_out"


def results_url(base_url: str) -> str:
    return f"{base_url}/workflow-version-execution-results"


class Poller:
    def __init__(
        self,
        http_client: HttpClientPort,
        config: RunnerConfig,
        normalizer: ResultNormalizer | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._http = http_client
        self.config = config
        self._normalizer = normalizer or ResultNormalizer()
        self._clock = clock
        self._sleep = sleep

    async def await_completion(
        self,
        handle: ExecutionHandle,
        deadline: timedelta,
        return_all_outputs: bool = False,
    ) -> JobOutcome:
        timeout_seconds = deadline.total_seconds()
        url = results_url(self.config.base_url)
        params = {
            "workflow_version_execution_id": str(handle),
            "return_all_outputs": "true" if return_all_outputs else "false",
        }

        state = PollState.polling
        started = self._clock()
        attempts = 0
        while True:
            elapsed = self._clock() - started
            if elapsed >= timeout_seconds:
                state = PollState.timed_out
                logger.warning(
                    f"[job:poll] state={state} execution_id={handle} attempts={attempts} "
                    f"elapsed={elapsed:.1f}s limit={timeout_seconds}s"
                )
                raise JobTimeoutError(handle, elapsed, timeout_seconds)

            attempts += 1
            resp = await self._http.get(url, params=params)
            status = resp.get("status")
            logger.debug(f"[job:poll] attempt={attempts} execution_id={handle} status={status}")

            if status == STATUS_COMPLETED:
                state = PollState.completed
                logger.info(
                    f"[job:poll] state={state} execution_id={handle} attempts={attempts} "
                    f"elapsed={self._clock() - started:.1f}s"
                )
                return self._normalizer.normalize(self._extract_body(resp), original=resp)

            if status == STATUS_RUNNING:
                await self._sleep(self.config.poll_interval)
                continue

            state = PollState.failed
            logger.error(f"[job:poll] state={state} execution_id={handle} status={status}")
            raise UnexpectedRemoteStatus(status, execution_id=handle, upstream_body=self._extract_body(resp))

    def _extract_body(self, resp: Dict[str, Any]) -> Any:
        """Prefer the parsed JSON body, fall back to the raw text."""
        body = resp.get("json")
        if body is None:
            body = resp.get("body")
        return body
