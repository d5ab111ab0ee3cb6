from typing import Any, Optional

from agentrun.core.models.problem import AdditionalInfo, ProblemResponse


class AgentRunException(Exception):
    """Transport level failure talking to the remote API (timeouts, connection errors)."""
    def __init__(self, response: ProblemResponse):
        self.response = response
        super().__init__(response.detail)


class TransientUpstreamError(AgentRunException):
    """A 502/503/504 answer or transport failure on an idempotent read; safe to retry."""


# Domain-specific job execution exceptions

class JobExecutionError(Exception):
    """Base exception for agent execution failures.

    Attributes:
        message: Human-readable error description
        diagnostic: Technical diagnostic information for debugging
        execution_id: Remote execution handle, when one was already issued
        status_code: HTTP-equivalent status surfaced to callers
        title: Short problem title for error bodies
    """
    status_code: int = 500
    title: str = "Agent Execution Error"
    upstream_status: Optional[int] = None

    def __init__(
        self,
        message: str,
        diagnostic: Optional[str] = None,
        execution_id: Any = None,
    ):
        self.message = message
        self.diagnostic = diagnostic
        self.execution_id = execution_id
        super().__init__(message)

    def to_problem(self) -> ProblemResponse:
        additional = None
        if self.execution_id is not None or self.upstream_status is not None:
            additional = AdditionalInfo(
                executionId=str(self.execution_id) if self.execution_id is not None else None,
                upstreamStatus=self.upstream_status,
            )
        return ProblemResponse(
            title=self.title,
            status=self.status_code,
            detail=self.message,
            additional=additional,
        )


class InvalidInputJson(JobExecutionError):
    """User supplied JSON could not be decoded, even after control character recovery."""
    status_code = 400
    title = "Invalid Data"

    def __init__(self, field: str, detail: str):
        self.field = field
        self.detail = detail
        super().__init__(message=f"Invalid JSON in {field}: {detail}", diagnostic=detail)


class InvalidFieldValue(JobExecutionError):
    """A caller field holds a value of the wrong shape (not JSON related)."""
    status_code = 400
    title = "Invalid Data"

    def __init__(self, field: str, detail: str):
        self.field = field
        self.detail = detail
        super().__init__(message=f"Invalid value for {field}: {detail}", diagnostic=detail)


class MalformedRemoteResponse(JobExecutionError):
    """The remote API accepted a submission but its answer lacks the execution id."""
    status_code = 500
    title = "Invalid Response"

    def __init__(self, missing_field: str, body: Any = None):
        self.missing_field = missing_field
        self.body = body
        super().__init__(
            message=f"Missing {missing_field} in response",
            diagnostic=str(body)[:500] if body is not None else None,
        )


class RemoteSubmissionFailed(JobExecutionError):
    """The remote API answered the start request with a non-2xx status.

    Attributes:
        upstream_status: HTTP status code from the remote API
        upstream_body: Response body from the remote API
    """
    title = "Submission Failed"

    def __init__(self, upstream_status: int, upstream_body: Any = None, target_name: Optional[str] = None):
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        self.status_code = _caller_status(upstream_status)
        super().__init__(
            message=f"Starting agent '{target_name}' failed with status {upstream_status}",
            diagnostic=str(upstream_body)[:500] if upstream_body is not None else None,
        )


class UnexpectedRemoteStatus(JobExecutionError):
    """A status check returned something other than 200 (done) or 202 (running)."""
    title = "Remote Execution Error"

    def __init__(self, upstream_status: int, execution_id: Any = None, upstream_body: Any = None):
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        self.status_code = _caller_status(upstream_status)
        super().__init__(
            message=f"Unexpected status {upstream_status}",
            diagnostic=str(upstream_body)[:500] if upstream_body is not None else None,
            execution_id=execution_id,
        )


class JobTimeoutError(JobExecutionError):
    """Raised when an execution exceeds its deadline waiting for remote completion.

    Attributes:
        elapsed_seconds: Time elapsed before timeout
        timeout_seconds: Configured deadline
    """
    status_code = 408
    title = "Timeout"

    def __init__(self, execution_id: Any, elapsed_seconds: float, timeout_seconds: float):
        self.elapsed_seconds = elapsed_seconds
        self.timeout_seconds = timeout_seconds
        message = f"Execution timed out after {_format_duration(timeout_seconds)}"
        super().__init__(
            message=message,
            diagnostic=f"elapsed={elapsed_seconds:.1f}s limit={timeout_seconds}s",
            execution_id=execution_id,
        )


class MissingCallbackPayload(JobExecutionError):
    """The resume invocation received no payload to normalize."""
    status_code = 400
    title = "Invalid Data"

    def __init__(self):
        super().__init__(message="Missing webhook payload")


def _format_duration(seconds: float) -> str:
    if seconds >= 60 and seconds % 60 == 0:
        minutes = int(seconds // 60)
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds:g} seconds"


def _caller_status(upstream_status: int) -> int:
    # a failed call must never reach the caller as 1xx/2xx/3xx
    return upstream_status if upstream_status >= 400 else 502
