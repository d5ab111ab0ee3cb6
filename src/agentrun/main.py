# main.py
import uvicorn

from agentrun.adapters.aiohttp_client_adapter import AioHttpClientAdapter, api_key_headers
from agentrun.adapters.callback_url_adapter import CallbackUrlAdapter
from agentrun.adapters.logging_adapter import LoggingAdapter
from agentrun.adapters.retry_tenacity import TenacityRetryAdapter
from agentrun.adapters.web.fastapi import create_app
from agentrun.core.config import RunnerConfig
from agentrun.core.logging_config import configure_logging
from agentrun.core.managers.agent_runner import AgentRunner
from agentrun.core.managers.workflow_catalog import WorkflowCatalog
from agentrun.core.settings import app_settings, logger, set_logger


# main lives at the outermost layer (not in core):
# instantiates the concrete adapters, wires them together, starts the server.

def main():
    # Central logging configuration BEFORE injecting adapter so uvicorn adopts level/format
    configure_logging(
        app_settings.AGENTRUN_LOG_LEVEL,
        disable_uvicorn_access=app_settings.AGENTRUN_DISABLE_ACCESS_LOG,
    )
    set_logger(LoggingAdapter("agentrun", app_settings.AGENTRUN_LOG_LEVEL))
    app_settings.print_settings(logger)
    if not app_settings.AGENTRUN_API_KEY.get_secret_value().strip():
        logger.warning("[startup] AGENTRUN_API_KEY is empty, the remote API will reject every request")

    config = RunnerConfig.from_app_settings(app_settings)
    http_client = AioHttpClientAdapter(
        default_headers=api_key_headers(app_settings.AGENTRUN_API_KEY.get_secret_value())
    )
    callback_port = CallbackUrlAdapter(app_settings.AGENTRUN_CALLBACK_BASE_URL)

    def runner_factory(client):
        return AgentRunner(client, config, callback_port=callback_port)

    def catalog_factory(client):
        return WorkflowCatalog(client, config, retry_port=TenacityRetryAdapter())

    app = create_app(
        runner_factory=runner_factory,
        http_client=http_client,
        catalog_factory=catalog_factory,
        verify_connection=app_settings.AGENTRUN_VERIFY_CONNECTION,
    )

    # Let uvicorn inherit existing logging (separate sinks & correlation ids)
    uvicorn.run(
        app,
        host=app_settings.AGENTRUN_SERVER_HOST,
        port=app_settings.AGENTRUN_SERVER_PORT,
        log_config=None,
        log_level=str(app_settings.AGENTRUN_LOG_LEVEL).lower(),
    )


if __name__ == "__main__":
    main()
