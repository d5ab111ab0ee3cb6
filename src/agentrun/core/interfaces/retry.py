from typing import Protocol, Any, Awaitable, Callable

class RetryPort(Protocol):
    """Abstract retry interface for idempotent async reads.

    Only used for listing agents; job submission and polling are never
    retried. The contract keeps the core decoupled from a specific library.
    """
    async def execute(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:  # pragma: no cover - protocol
        """Execute an async callable with retry semantics.

        Supported kw overrides (optional): attempts, wait_initial, wait_max,
        exception_types. Propagates the last exception after exhausting attempts.
        """
        ...
