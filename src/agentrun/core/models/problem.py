from pydantic import BaseModel
from typing import Optional


class AdditionalInfo(BaseModel):
    requestId: Optional[str] = None
    executionId: Optional[str] = None
    upstreamStatus: Optional[int] = None


class ProblemResponse(BaseModel):
    type: str = "about:blank"
    title: str
    status: int
    detail: str
    instance: Optional[str] = None
    additional: Optional[AdditionalInfo] = None

    def with_request_id(self, request_id: str) -> "ProblemResponse":
        """Return copy that includes the given correlation/request id."""
        info = self.additional.model_copy() if self.additional else AdditionalInfo()
        info.requestId = request_id
        return self.model_copy(update={"additional": info})
