from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from agentrun.core.models.job import JobRequest


class RunAgentRequest(BaseModel):
    """Body of the execute/start routes: the fields an automation step fills in.

    `input_variables` and `metadata` accept JSON text or an already structured
    object; text is decoded permissively at submission time.
    """

    agent_version_number: Optional[int] = None
    agent_label_name: Optional[str] = None
    input_variables: Any = "{}"
    return_all_outputs: bool = False
    metadata: Any = None
    timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Maximum minutes to wait for completion (poll mode only)",
    )

    model_config = {"extra": "forbid"}

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        """Treat explicit nulls like omitted fields so defaults apply."""
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    def to_job_request(self, agent_name: str) -> JobRequest:
        return JobRequest.from_fields(
            agent_name=agent_name,
            version_number=self.agent_version_number,
            label_name=self.agent_label_name,
            input_variables=self.input_variables,
            return_all_outputs=self.return_all_outputs,
            metadata=self.metadata,
            timeout_minutes=self.timeout,
        )
