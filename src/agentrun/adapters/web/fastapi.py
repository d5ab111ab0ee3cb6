# agentrun/adapters/web/fastapi.py
import json
import uuid
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from agentrun.core.exceptions import AgentRunException, JobExecutionError
from agentrun.core.interfaces.http_client import HttpClientPort
from agentrun.core.logging_config import correlation_id_var
from agentrun.core.managers.agent_runner import AgentRunner
from agentrun.core.managers.workflow_catalog import WorkflowCatalog
from agentrun.core.models.problem import ProblemResponse
from agentrun.core.models.run_request import RunAgentRequest
from agentrun.core.settings import logger


# Driver adapter: depends on the core managers, the core does not depend on it.
def create_app(
    runner_factory: Callable[[HttpClientPort], AgentRunner],
    http_client: HttpClientPort,
    catalog_factory: Optional[Callable[[HttpClientPort], WorkflowCatalog]] = None,
    verify_connection: bool = False,
):
    """Create the FastAPI app.

    Concrete infrastructure is assembled outside and passed in as factories;
    the adapter only maps HTTP to the runner's execute/start/resume entry
    points and the error taxonomy to problem+json responses.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with http_client as client:
            app.state.runner = runner_factory(client)
            app.state.catalog = catalog_factory(client) if catalog_factory else None
            if verify_connection and app.state.catalog is not None:
                await app.state.catalog.check_connection()
            yield

    app = FastAPI(title="agentrun", lifespan=lifespan)

    def render_problem(problem: ProblemResponse, *, include_request_id: bool = False) -> JSONResponse:
        payload = jsonable_encoder(problem.model_dump(exclude_none=True))
        response = JSONResponse(status_code=problem.status, content=payload)
        if include_request_id and problem.additional and problem.additional.requestId:
            response.headers["X-Request-ID"] = problem.additional.requestId
        return response

    # Correlation ID middleware: per-request id (header override) exposed to logging
    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        cid = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        correlation_id_var.set(cid)
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.set("-")
        response.headers["X-Request-ID"] = cid
        return response

    @app.exception_handler(JobExecutionError)
    async def job_error_handler(request: Request, exc: JobExecutionError):
        problem = exc.to_problem().model_copy(update={"instance": str(request.url)})
        logger.warning(f"[web:error] {type(exc).__name__} status={exc.status_code} detail={exc.message}")
        return render_problem(problem)

    @app.exception_handler(AgentRunException)
    async def transport_error_handler(request: Request, exc: AgentRunException):
        # Only surface the request id for upstream/server side errors
        include_request_id = exc.response.status >= 500
        problem = exc.response.model_copy()
        if include_request_id:
            problem = problem.with_request_id(correlation_id_var.get())
        return render_problem(problem, include_request_id=include_request_id)

    def invalid_request(request: Request, error: ValidationError) -> JSONResponse:
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', [])) or 'body'}: {err.get('msg', 'invalid value')}"
            for err in error.errors()
        )
        return render_problem(
            ProblemResponse(title="Invalid Data", status=400, detail=detail, instance=str(request.url))
        )

    @app.get("/agents")
    async def list_agents(request: Request):
        catalog = app.state.catalog
        if catalog is None:
            return render_problem(
                ProblemResponse(
                    title="Listing Not Supported",
                    status=404,
                    detail="Agent listing is not available in this deployment",
                    instance=str(request.url),
                )
            )
        return await catalog.list_workflows()

    @app.post("/agents/{agent_name}/run")
    async def run_agent(agent_name: str, body: RunAgentRequest, request: Request):
        try:
            job_request = body.to_job_request(agent_name)
        except ValidationError as ve:
            return invalid_request(request, ve)
        outcome = await app.state.runner.run(job_request)
        return JSONResponse(content=jsonable_encoder(outcome.as_output()))

    @app.post("/agents/{agent_name}/start")
    async def start_agent(agent_name: str, body: RunAgentRequest, request: Request):
        try:
            job_request = body.to_job_request(agent_name)
        except ValidationError as ve:
            return invalid_request(request, ve)
        pending = await app.state.runner.start(job_request)
        return JSONResponse(status_code=202, content=jsonable_encoder(pending.model_dump()))

    @app.post("/callbacks/{token}")
    async def resume_agent(token: str, request: Request):
        payload = _decode_payload(await request.body())
        logger.debug(f"[web:callback] token={token} payload_type={type(payload).__name__}")
        outcome = app.state.runner.resume(payload)
        return JSONResponse(content=jsonable_encoder(outcome.as_output()))

    return app


def _decode_payload(raw: bytes) -> Any:
    """Empty or non-JSON deliveries count as an absent payload."""
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None
