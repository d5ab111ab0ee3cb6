from abc import ABC, abstractmethod
from typing import Any, Dict

class HttpClientPort(ABC):
    """Outbound HTTP access to the remote agent API.

    Both request methods return a dict with keys 'status' (int), 'headers'
    (dict), 'json' (parsed JSON body or None) and 'body' (raw text). They do
    not raise for HTTP error statuses; callers decide what a status means.
    Transport failures raise AgentRunException.
    """

    @abstractmethod
    async def __aenter__(self) -> "HttpClientPort":
        """Async context manager entry method"""
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit method"""
        pass

    @abstractmethod
    async def get(
        self,
        url: str,
        params: Dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Dict[str, Any]:
        """Make a GET request.

        The timeout is optional; adapters may use an internal default
        ClientTimeout when timeout is None.
        """
        pass

    @abstractmethod
    async def post(
        self,
        url: str,
        json: Dict[str, Any] | None,
        timeout: float | None = None,
        headers: Dict[str, str] | None = None,
    ) -> Dict[str, Any]:
        """Make a POST request with a JSON body."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the HTTP client session"""
        pass
