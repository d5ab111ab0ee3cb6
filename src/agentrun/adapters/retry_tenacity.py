from typing import Any, Awaitable, Callable, Sequence, Type

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from agentrun.core.exceptions import TransientUpstreamError
from agentrun.core.settings import logger


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    status = getattr(getattr(exc, "response", None), "status", None)
    wait = state.next_action.sleep if state.next_action else 0
    logger.warning(
        f"[retry] attempt={state.attempt_number} failed status={status} "
        f"error={type(exc).__name__} next_wait={wait:.2f}s"
    )


class TenacityRetryAdapter:
    """RetryPort backed by tenacity with exponential backoff.

    Only transient upstream errors are retried unless the caller passes other
    `exception_types`; everything else propagates on the first attempt. Each
    failed attempt is logged before sleeping. Call-time kwargs (attempts,
    wait_initial, wait_max, exception_types) override the defaults.
    """

    def __init__(
        self,
        attempts: int = 4,
        wait_initial: float = 0.15,
        wait_max: float = 1.2,
        exception_types: Sequence[Type[Exception]] = (TransientUpstreamError,),
    ) -> None:
        self.attempts = attempts
        self.wait_initial = wait_initial
        self.wait_max = wait_max
        self.exception_types = tuple(exception_types)

    async def execute(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(kwargs.pop("attempts", self.attempts)),
            wait=wait_exponential(
                multiplier=kwargs.pop("wait_initial", self.wait_initial),
                max=kwargs.pop("wait_max", self.wait_max),
            ),
            retry=retry_if_exception_type(tuple(kwargs.pop("exception_types", self.exception_types))),
            before_sleep=_log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await func(*args, **kwargs)
