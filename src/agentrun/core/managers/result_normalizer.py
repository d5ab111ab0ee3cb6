"""Collapse heterogeneous completion bodies into one JobOutcome shape."""

import json
from typing import Any, Mapping

from agentrun.core.models.job import JobOutcome, PrimitiveResult, RawFallback, StructuredResult


def serialize_original(original: Any) -> str:
    """Best effort JSON rendering of whatever the remote side sent."""
    try:
        return json.dumps(original, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(original)


class ResultNormalizer:
    """Pure classification of a finished execution's body.

    Order: string -> PrimitiveResult; mapping -> StructuredResult verbatim
    (remote result/status/raw_response fields pass through untouched);
    anything else -> RawFallback carrying the serialized original.
    """

    def normalize(self, body: Any, original: Any = None) -> JobOutcome:
        if isinstance(body, str):
            return PrimitiveResult(result=body)
        if isinstance(body, Mapping):
            return StructuredResult(data=dict(body))
        return RawFallback(
            result=body,
            raw_response=serialize_original(body if original is None else original),
        )
