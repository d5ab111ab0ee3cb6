import re
from datetime import timedelta
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from agentrun.core.exceptions import InvalidFieldValue

# Remote systems hand out integer ids in practice; treat them as opaque.
ExecutionHandle = Union[int, str]


class Unspecified(BaseModel):
    """Run whatever version the remote system considers current."""
    kind: Literal["unspecified"] = "unspecified"
    model_config = {"frozen": True}

    def as_body_fields(self) -> Dict[str, Any]:
        return {}


class ByNumber(BaseModel):
    kind: Literal["number"] = "number"
    number: int
    model_config = {"frozen": True}

    def as_body_fields(self) -> Dict[str, Any]:
        return {"workflow_version_number": self.number}


class ByLabel(BaseModel):
    kind: Literal["label"] = "label"
    label: str = Field(min_length=1)
    model_config = {"frozen": True}

    def as_body_fields(self) -> Dict[str, Any]:
        return {"workflow_label_name": self.label}


VersionSelector = Annotated[
    Union[Unspecified, ByNumber, ByLabel], Field(discriminator="kind")
]


def version_selector_from_fields(
    version_number: Optional[Union[int, str]] = None,
    label_name: Optional[str] = None,
) -> Union[Unspecified, ByNumber, ByLabel]:
    """Resolve the two optional caller fields into one selector.

    A version number wins over a label when both are supplied. Blank strings
    count as absent.
    """
    if version_number is not None and str(version_number).strip() != "":
        return ByNumber(number=_whole_number(version_number))
    if label_name is not None and label_name.strip():
        return ByLabel(label=label_name.strip())
    return Unspecified()


def _whole_number(value: Union[int, float, str]) -> int:
    """Accept ints, integral floats and digit strings; never truncate."""
    if isinstance(value, bool):
        raise InvalidFieldValue("Agent Version Number", f"expected a whole number, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"[+-]?\d+", value.strip()):
        return int(value.strip())
    raise InvalidFieldValue("Agent Version Number", f"expected a whole number, got {value!r}")


class JobRequest(BaseModel):
    """One agent execution as requested by the caller; built fresh per invocation.

    `deadline` only matters for the poll variant, `callback_target` only for
    the callback variant.
    """

    target_name: str = Field(min_length=1)
    version: VersionSelector = Field(default_factory=Unspecified)
    input_variables: Any = Field(default_factory=dict)
    return_all_outputs: bool = False
    metadata: Any = None
    deadline: Optional[timedelta] = None
    callback_target: Optional[str] = None

    model_config = {"frozen": True}

    @classmethod
    def from_fields(
        cls,
        agent_name: str,
        version_number: Optional[Union[int, str]] = None,
        label_name: Optional[str] = None,
        input_variables: Any = "{}",
        return_all_outputs: Any = False,
        metadata: Any = None,
        timeout_minutes: Optional[float] = None,
    ) -> "JobRequest":
        """Construct a request from the raw fields a caller fills in."""
        return cls(
            target_name=agent_name,
            version=version_selector_from_fields(version_number, label_name),
            input_variables=input_variables if input_variables is not None else "{}",
            return_all_outputs=return_all_outputs,
            metadata=metadata,
            deadline=timedelta(minutes=timeout_minutes) if timeout_minutes is not None else None,
        )

    @field_validator("target_name")
    def target_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("target_name must not be blank")
        return value

    @field_validator("return_all_outputs", mode="before")
    def none_means_false(cls, value: Any) -> Any:
        return False if value is None or value == "" else value

    @field_validator("deadline")
    def deadline_positive(cls, value: Optional[timedelta]) -> Optional[timedelta]:
        if value is not None and value.total_seconds() <= 0:
            raise ValueError("deadline must be positive")
        return value


class PrimitiveResult(BaseModel):
    result: str
    status: Literal["completed"] = "completed"
    model_config = {"frozen": True}

    def as_output(self) -> Dict[str, Any]:
        return {"result": self.result, "status": self.status}


class StructuredResult(BaseModel):
    """A mapping result returned verbatim.

    `node_outputs` records whether the mapping looked like a per-node outputs
    map (node name -> {status, value, ...}) or a simple result object.
    """
    data: Dict[str, Any]
    node_outputs: bool = False
    model_config = {"frozen": True}

    def as_output(self) -> Dict[str, Any]:
        return self.data


class RawFallback(BaseModel):
    result: Any = None
    status: str = "completed"
    raw_response: str
    model_config = {"frozen": True}

    def as_output(self) -> Dict[str, Any]:
        return {
            "result": self.result,
            "status": self.status,
            "raw_response": self.raw_response,
        }


JobOutcome = Union[PrimitiveResult, StructuredResult, RawFallback]


class ParseOutcome(BaseModel):
    """Result of a permissive JSON decode: either a value or a failure reason."""
    ok: bool
    value: Any = None
    reason: Optional[str] = None
    original_message: Optional[str] = None

    @classmethod
    def success(cls, value: Any) -> "ParseOutcome":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, reason: str, original_message: str) -> "ParseOutcome":
        return cls(ok=False, reason=reason, original_message=original_message)


class PendingExecution(BaseModel):
    """What the callback variant hands back right after submission.

    The hosting platform keeps this until the remote system delivers the
    result to `callback_url`.
    """
    workflow_version_execution_id: ExecutionHandle
    agent_name: str
    return_all_outputs: bool
    callback_url: str
