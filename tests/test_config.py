import logging
from datetime import timedelta

import pytest
from pydantic import ValidationError

from agentrun.adapters.callback_url_adapter import CallbackUrlAdapter
from agentrun.core.config import RunnerConfig
from agentrun.core.logging_config import coerce_level, configure_logging
from agentrun.core.settings import AgentRunSettings


def test_runner_config_from_settings(monkeypatch):
    monkeypatch.setenv("AGENTRUN_API_BASE_URL", "https://agents.example.org/")
    monkeypatch.setenv("AGENTRUN_POLL_INTERVAL", "2.5")
    monkeypatch.setenv("AGENTRUN_DEFAULT_TIMEOUT_MINUTES", "3")
    settings = AgentRunSettings(_env_file=None)

    config = RunnerConfig.from_app_settings(settings)

    assert config.base_url == "https://agents.example.org"
    assert config.poll_interval == 2.5
    assert config.default_timeout == timedelta(minutes=3)
    assert config.list_page_size == 100


def test_runner_config_is_frozen():
    config = RunnerConfig()
    with pytest.raises(ValidationError):
        config.poll_interval = 1.0


def test_runner_config_rejects_non_positive_interval():
    with pytest.raises(ValidationError):
        RunnerConfig(poll_interval=0)


def test_callback_base_url_trailing_slash_stripped(monkeypatch):
    monkeypatch.setenv("AGENTRUN_CALLBACK_BASE_URL", "https://hooks.example.org/")
    settings = AgentRunSettings(_env_file=None)
    assert settings.AGENTRUN_CALLBACK_BASE_URL == "https://hooks.example.org"


@pytest.mark.parametrize(
    "level, expected",
    [(None, logging.INFO), ("debug", logging.DEBUG), (" WARNING ", logging.WARNING), (logging.ERROR, logging.ERROR), ("nonsense", logging.INFO)],
)
def test_coerce_level(level, expected):
    assert coerce_level(level) == expected


@pytest.mark.asyncio
async def test_callback_urls_are_unique():
    adapter = CallbackUrlAdapter("https://hooks.example.org/")

    first = await adapter.generate_callback_url()
    second = await adapter.generate_callback_url()

    assert first.startswith("https://hooks.example.org/callbacks/")
    assert first != second


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    access = logging.getLogger("uvicorn.access")
    access_level = access.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    access.setLevel(access_level)


@pytest.mark.parametrize("disabled, expected", [(True, logging.WARNING), (False, logging.NOTSET)])
def test_configure_logging_access_log_switch(restore_logging, disabled, expected):
    logging.getLogger("uvicorn.access").setLevel(logging.NOTSET)

    configure_logging("INFO", disable_uvicorn_access=disabled)

    assert logging.getLogger("uvicorn.access").level == expected
    assert len(logging.getLogger().handlers) == 2


def test_access_log_setting(monkeypatch):
    monkeypatch.setenv("AGENTRUN_DISABLE_ACCESS_LOG", "true")
    assert AgentRunSettings(_env_file=None).AGENTRUN_DISABLE_ACCESS_LOG is True
