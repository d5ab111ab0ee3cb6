import asyncio
import aiohttp
from typing import Any, Dict, Optional

from agentrun.core.interfaces.http_client import HttpClientPort
from agentrun.core.exceptions import AgentRunException
from agentrun.core.models.problem import ProblemResponse
from agentrun.core.settings import logger


def api_key_headers(api_key: str) -> Dict[str, str]:
    """Headers every request to the remote agent API carries."""
    return {
        "X-API-KEY": api_key,
        "Accept": "application/json",
        "Content-Type": "application/json",
    }


class AioHttpClientAdapter(HttpClientPort):
    def __init__(self, default_headers: Optional[Dict[str, str]] = None):
        self._session: Optional[aiohttp.ClientSession] = None
        self._default_headers = dict(default_headers or {})
        # Per-request timeouts. Polling waits between requests, not inside
        # them, so these stay short.
        self._default_total: float = 30.0
        self._default_sock_read: float = 30.0
        self._default_sock_connect: float = 5.0
        self._default_client_timeout = aiohttp.ClientTimeout(
            total=self._default_total,
            sock_read=self._default_sock_read,
            sock_connect=self._default_sock_connect,
        )

    async def __aenter__(self):
        """Async context manager entry"""
        self._session = aiohttp.ClientSession(headers=self._default_headers)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
        return False

    def _timeout(self, timeout: float | None) -> aiohttp.ClientTimeout:
        if timeout is None:
            return self._default_client_timeout
        # Keep adapter-level sock_read/sock_connect values but apply provided total
        return aiohttp.ClientTimeout(
            total=timeout,
            sock_read=self._default_sock_read,
            sock_connect=self._default_sock_connect,
        )

    async def get(
        self,
        url: str,
        params: Dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Dict[str, Any]:
        return await self._request("GET", url, params=params, timeout=self._timeout(timeout))

    async def post(
        self,
        url: str,
        json: Dict[str, Any] | None,
        timeout: float | None = None,
        headers: Dict[str, str] | None = None,
    ) -> Dict[str, Any]:
        return await self._request("POST", url, json=json, headers=headers, timeout=self._timeout(timeout))

    async def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        """Perform a request and return status, headers, parsed JSON and raw text.

        HTTP error statuses are returned, not raised; network failures are
        translated into AgentRunException problems.
        """
        if self._session is None:
            raise RuntimeError("HTTP client not initialized. Use 'async with' context manager.")

        try:
            async with self._session.request(method, url, **kwargs) as response:
                text = await response.text()
                try:
                    parsed = await response.json(content_type=None) if text.strip() else None
                except ValueError:
                    # Body isn't JSON; callers fall back to the raw text
                    logger.debug(
                        f"[http] non-JSON body method={method} url={url} status={response.status} snippet={text[:100]!r}"
                    )
                    parsed = None
                return {
                    "status": response.status,
                    "headers": dict(response.headers),
                    "json": parsed,
                    "body": text,
                }

        except asyncio.TimeoutError:
            logger.error(f"[http] timeout method={method} url={url}")
            raise AgentRunException(
                ProblemResponse(
                    title="Upstream Timeout",
                    status=504,
                    detail="The request to the agent API timed out.",
                    instance=url,
                )
            )
        except aiohttp.ClientError as client_error:
            logger.error(f"[http] connection error method={method} url={url} error={client_error}")
            raise AgentRunException(
                ProblemResponse(
                    title="Upstream Connection Error",
                    status=502,
                    detail="There was a connection error with the agent API.",
                    instance=url,
                )
            )

    async def close(self) -> None:
        """Close the session"""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
