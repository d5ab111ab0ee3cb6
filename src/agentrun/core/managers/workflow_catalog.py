"""WorkflowCatalog: lists the agents available to the configured API key.

Used by selection UIs; page requests are idempotent reads and may be retried
on transient upstream failures.
"""

from typing import Any, Dict, List, Optional

from agentrun.core.config import RunnerConfig
from agentrun.core.exceptions import AgentRunException, TransientUpstreamError
from agentrun.core.interfaces.http_client import HttpClientPort
from agentrun.core.interfaces.retry import RetryPort
from agentrun.core.models.problem import ProblemResponse
from agentrun.core.settings import logger

TRANSIENT_STATUSES = (502, 503, 504)


class WorkflowCatalog:
    def __init__(
        self,
        http_client: HttpClientPort,
        config: RunnerConfig,
        retry_port: Optional[RetryPort] = None,
    ) -> None:
        self._http = http_client
        self.config = config
        self._retry = retry_port

    async def list_workflows(self) -> List[Dict[str, Any]]:
        url = f"{self.config.base_url}/workflows"
        page = 1
        items: List[Dict[str, Any]] = []
        while True:
            body = await self._fetch_page(url, page)
            page_items = body.get("items") or []
            items.extend(page_items)
            logger.debug(f"[catalog:list] page={page} items={len(page_items)} has_next={body.get('has_next')}")
            if not body.get("has_next"):
                break
            next_num = body.get("next_num")
            page = next_num if next_num is not None else page + 1
        logger.info(f"[catalog:list] total={len(items)}")
        return items

    async def check_connection(self) -> bool:
        """Verify the API key against a cheap authenticated endpoint.

        Failures are logged, not raised: callbacks can still be received
        while the remote API is unreachable.
        """
        url = f"{self.config.base_url}/prompt-templates"
        try:
            resp = await self._http.get(url)
        except AgentRunException as exc:
            logger.warning(f"[catalog:check] remote unreachable status={exc.response.status} detail={exc.response.detail}")
            return False
        status = resp.get("status")
        if status in (401, 403):
            logger.error(f"[catalog:check] API key rejected status={status}")
            return False
        if status is None or not 200 <= status < 300:
            logger.warning(f"[catalog:check] unexpected status={status}")
            return False
        logger.info("[catalog:check] connection ok")
        return True

    async def _fetch_page(self, url: str, page: int) -> Dict[str, Any]:
        params = {"page": page, "per_page": self.config.list_page_size}

        async def fetch():
            try:
                resp = await self._http.get(url, params=params)
            except AgentRunException as exc:
                # timeouts and connection errors arrive as 504/502 problems
                if exc.response.status in TRANSIENT_STATUSES:
                    raise TransientUpstreamError(exc.response) from exc
                raise
            status = resp.get("status")
            if status in TRANSIENT_STATUSES:
                raise TransientUpstreamError(self._problem(status, url))
            if status is None or not 200 <= status < 300:
                raise AgentRunException(self._problem(status or 502, url))
            body = resp.get("json")
            return body if isinstance(body, dict) else {}

        try:
            if self._retry:
                return await self._retry.execute(fetch, exception_types=(TransientUpstreamError,))
            return await fetch()
        except TransientUpstreamError as exc:
            logger.error(f"[catalog:list] transient error retry exhausted page={page} status={exc.response.status}")
            raise AgentRunException(exc.response) from exc

    def _problem(self, status: int, url: str) -> ProblemResponse:
        return ProblemResponse(
            title="Upstream HTTP Error",
            status=status,
            detail=f"Listing agents failed with status {status}",
            instance=url,
        )
