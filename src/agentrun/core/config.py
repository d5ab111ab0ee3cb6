"""Configuration model for the agent runner core.

Consolidates the timing and addressing values the managers need so they are
passed explicitly (and replaced in tests) instead of read from globals.
"""

from datetime import timedelta

from pydantic import BaseModel, Field


class RunnerConfig(BaseModel):
    """Configuration for submission, polling and listing behavior.

    Attributes:
        api_base_url: Root of the remote agent API (no trailing slash)
        poll_interval: Seconds to sleep after a 202 "still running" answer
        default_timeout_minutes: Deadline used when the caller gives none
        list_page_size: Page size used when listing available agents
    """

    api_base_url: str = Field(
        default="https://api.promptlayer.com",
        description="Base URL of the remote agent execution API",
    )

    poll_interval: float = Field(
        default=5.0,
        gt=0,
        description="Interval in seconds between execution result requests",
    )

    default_timeout_minutes: int = Field(
        default=10,
        gt=0,
        description="Maximum minutes to wait for completion when the request sets no deadline",
    )

    list_page_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Number of agents requested per page when listing",
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @property
    def base_url(self) -> str:
        return self.api_base_url.rstrip("/")

    @property
    def default_timeout(self) -> timedelta:
        return timedelta(minutes=self.default_timeout_minutes)

    @classmethod
    def from_app_settings(cls, settings) -> "RunnerConfig":
        """Factory method to construct config from an AgentRunSettings instance."""
        return cls(
            api_base_url=str(settings.AGENTRUN_API_BASE_URL),
            poll_interval=settings.AGENTRUN_POLL_INTERVAL,
            default_timeout_minutes=settings.AGENTRUN_DEFAULT_TIMEOUT_MINUTES,
            list_page_size=settings.AGENTRUN_LIST_PAGE_SIZE,
        )
