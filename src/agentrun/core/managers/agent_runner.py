"""AgentRunner: caller-facing entry points for one agent execution.

Two completion strategies share the submission step:

1. `run`: submit, then block in the poll loop until done or the deadline passes.
2. `start` + `resume`: submit with a callback URL and return at once; a later,
   independent invocation hands the delivered payload to `resume`.

No state is kept between invocations. Matching a callback to its pending
execution is left to the hosting platform.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from agentrun.core.config import RunnerConfig
from agentrun.core.interfaces.callback import CallbackTargetPort
from agentrun.core.interfaces.http_client import HttpClientPort
from agentrun.core.logging_config import correlation_id_var
from agentrun.core.managers.json_input import JsonInputParser
from agentrun.core.managers.poller import Poller
from agentrun.core.managers.resume_handler import ResumeHandler
from agentrun.core.managers.submitter import Submitter
from agentrun.core.models.job import (
    JobOutcome,
    JobRequest,
    PendingExecution,
)
from agentrun.core.settings import logger


class AgentRunner:
    def __init__(
        self,
        http_client: HttpClientPort,
        config: RunnerConfig,
        callback_port: Optional[CallbackTargetPort] = None,
        submitter: Optional[Submitter] = None,
        poller: Optional[Poller] = None,
        resume_handler: Optional[ResumeHandler] = None,
    ) -> None:
        self.config = config
        self._callback = callback_port
        self._submitter = submitter or Submitter(http_client, config, JsonInputParser())
        self._poller = poller or Poller(http_client, config)
        self._resume = resume_handler or ResumeHandler()

    @staticmethod
    def build_request(
        agent_name: str,
        version_number: Optional[Union[int, str]] = None,
        label_name: Optional[str] = None,
        input_variables: Any = "{}",
        return_all_outputs: Any = False,
        metadata: Any = None,
        timeout_minutes: Optional[float] = None,
    ) -> JobRequest:
        """Construct a JobRequest from the raw fields a caller fills in."""
        return JobRequest.from_fields(
            agent_name,
            version_number=version_number,
            label_name=label_name,
            input_variables=input_variables,
            return_all_outputs=return_all_outputs,
            metadata=metadata,
            timeout_minutes=timeout_minutes,
        )

    async def run(self, request: JobRequest) -> JobOutcome:
        """Poll variant: submit and wait for the finished result."""
        handle = await self._submitter.submit(request)
        correlation_id_var.set(str(handle))
        deadline = request.deadline or self.config.default_timeout
        logger.debug(f"[job:run] waiting execution_id={handle} deadline={deadline.total_seconds()}s")
        return await self._poller.await_completion(handle, deadline, request.return_all_outputs)

    async def start(self, request: JobRequest) -> PendingExecution:
        """Callback variant: submit with a callback URL and return the pending handle."""
        if self._callback is None:
            raise RuntimeError("No CallbackTargetPort configured; callback mode is unavailable")
        callback_url = await self._callback.generate_callback_url()
        request = request.model_copy(update={"callback_target": callback_url})
        handle = await self._submitter.submit(request)
        correlation_id_var.set(str(handle))
        logger.info(f"[job:start] pending execution_id={handle} agent={request.target_name}")
        return PendingExecution(
            workflow_version_execution_id=handle,
            agent_name=request.target_name,
            return_all_outputs=request.return_all_outputs,
            callback_url=callback_url,
        )

    def resume(self, payload: Any) -> JobOutcome:
        """Callback variant, second invocation: normalize the delivered payload."""
        return self._resume.handle_callback(payload)
