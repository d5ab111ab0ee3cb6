from pydantic import HttpUrl, SecretStr, field_validator
from pydantic_settings import BaseSettings
from rich import print

from agentrun.adapters.logging_adapter import LoggingAdapter
from agentrun.core.interfaces.logging import LoggingPort


# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class AgentRunSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }
    AGENTRUN_LOG_LEVEL: str = "INFO"
    AGENTRUN_API_BASE_URL: HttpUrl = HttpUrl("https://api.promptlayer.com")
    AGENTRUN_API_KEY: SecretStr = SecretStr("")
    # seconds between two status checks of a running execution
    AGENTRUN_POLL_INTERVAL: float = 5.0
    AGENTRUN_DEFAULT_TIMEOUT_MINUTES: int = 10
    AGENTRUN_LIST_PAGE_SIZE: int = 100
    # public address under which this service receives execution callbacks
    AGENTRUN_CALLBACK_BASE_URL: str = "http://localhost:8000"
    AGENTRUN_SERVER_HOST: str = "0.0.0.0"
    AGENTRUN_SERVER_PORT: int = 8000
    # raise uvicorn.access to WARNING so per-request lines are not logged
    AGENTRUN_DISABLE_ACCESS_LOG: bool = False
    # check the API key against the remote API once at startup
    AGENTRUN_VERIFY_CONNECTION: bool = True

    @field_validator("AGENTRUN_CALLBACK_BASE_URL", mode="before")
    def strip_trailing_slash(cls, value: str) -> str:
        """Callback URLs are built by appending a path, keep the base bare."""
        return str(value).rstrip("/")

    def print_settings(self, logger: LoggingPort):
        """Prints the settings for debugging purposes"""
        logger.info("agentrun settings:")
        print(self)


class _LoggerProxy(LoggingPort):
    """Module level logger whose target can be swapped by the composition root.

    Core modules bind `logger` at import time, so replacing the module
    attribute would not reach them; the proxy forwards to the current target.
    """

    def __init__(self, target: LoggingPort):
        self._target = target

    def info(self, msg: str, *args):
        self._target.info(msg, *args)

    def warning(self, msg: str, *args):
        self._target.warning(msg, *args)

    def error(self, msg: str, *args):
        self._target.error(msg, *args)

    def debug(self, msg: str, *args):
        self._target.debug(msg, *args)


app_settings = AgentRunSettings()

logger = _LoggerProxy(LoggingAdapter("agentrun", app_settings.AGENTRUN_LOG_LEVEL))


def set_logger(new_logger: LoggingPort) -> None:
    logger._target = new_logger
