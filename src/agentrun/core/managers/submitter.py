"""Submitter: starts one remote agent execution and returns its handle."""

from typing import Any, Dict
from urllib.parse import quote

from agentrun.core.config import RunnerConfig
from agentrun.core.exceptions import MalformedRemoteResponse, RemoteSubmissionFailed
from agentrun.core.interfaces.http_client import HttpClientPort
from agentrun.core.managers.json_input import JsonInputParser
from agentrun.core.models.job import ExecutionHandle, JobRequest
from agentrun.core.settings import logger

HANDLE_FIELD = "workflow_version_execution_id"

# characters encodeURIComponent leaves alone besides [A-Za-z0-9_.-~]
_PATH_SAFE = "!*'()"


def run_url(base_url: str, target_name: str) -> str:
    return f"{base_url}/workflows/{quote(target_name, safe=_PATH_SAFE)}/run"


class Submitter:
    def __init__(
        self,
        http_client: HttpClientPort,
        config: RunnerConfig,
        json_parser: JsonInputParser | None = None,
    ) -> None:
        self._http = http_client
        self.config = config
        self._json = json_parser or JsonInputParser()

    def build_body(self, request: JobRequest) -> Dict[str, Any]:
        """Assemble the start request body.

        Input variables and metadata may arrive as JSON text; both must decode
        to objects. Metadata is left out when it is absent or empty.
        """
        input_variables = self._json.parse_object_field("Input Variables", request.input_variables)
        body: Dict[str, Any] = {
            "input_variables": input_variables if input_variables is not None else {},
            "return_all_outputs": bool(request.return_all_outputs),
        }
        body.update(request.version.as_body_fields())

        metadata = self._json.parse_object_field("Metadata", request.metadata)
        if metadata:
            body["metadata"] = metadata

        if request.callback_target:
            body["callback_url"] = request.callback_target
        return body

    async def submit(self, request: JobRequest) -> ExecutionHandle:
        body = self.build_body(request)
        url = run_url(self.config.base_url, request.target_name)
        logger.info(
            f"[job:submit] starting agent={request.target_name} version={request.version.kind} "
            f"return_all_outputs={body['return_all_outputs']} callback={'yes' if 'callback_url' in body else 'no'}"
        )
        logger.debug(f"[job:submit] POST url={url} keys={sorted(body.keys())}")

        resp = await self._http.post(url, json=body)
        status = resp.get("status")
        payload = resp.get("json")

        if status is None or not 200 <= status < 300:
            logger.warning(f"[job:submit] remote rejected start agent={request.target_name} status={status}")
            raise RemoteSubmissionFailed(
                upstream_status=status or 502,
                upstream_body=payload if payload is not None else resp.get("body"),
                target_name=request.target_name,
            )

        handle = payload.get(HANDLE_FIELD) if isinstance(payload, dict) else None
        if handle is None or handle == "":
            logger.error(f"[job:submit] response lacks {HANDLE_FIELD} agent={request.target_name}")
            raise MalformedRemoteResponse(HANDLE_FIELD, payload if payload is not None else resp.get("body"))

        logger.info(f"[job:submit] accepted agent={request.target_name} execution_id={handle}")
        return handle
