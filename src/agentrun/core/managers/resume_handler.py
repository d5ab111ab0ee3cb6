"""ResumeHandler: turns a delivered callback payload into a JobOutcome.

Runs in an invocation of its own; nothing from the submit invocation is
available here except what the payload carries.
"""

from typing import Any, Mapping

from agentrun.core.exceptions import MissingCallbackPayload
from agentrun.core.managers.result_normalizer import serialize_original
from agentrun.core.models.job import JobOutcome, PrimitiveResult, RawFallback, StructuredResult
from agentrun.core.settings import logger

FINAL_OUTPUT_FIELD = "final_output"
NODE_RESULT_KEYS = ("status", "value")


def looks_like_node_outputs(value: Mapping[str, Any]) -> bool:
    """Probe the first member: a mapping with status/value marks a per-node map.

    A simple result object whose first field holds such a mapping is
    misclassified; both shapes are returned verbatim so only the flag differs.
    """
    first = next(iter(value.values()), None)
    return isinstance(first, Mapping) and any(key in first for key in NODE_RESULT_KEYS)


class ResumeHandler:
    def handle_callback(self, payload: Any) -> JobOutcome:
        if payload is None or (isinstance(payload, Mapping) and not payload):
            logger.warning("[job:resume] empty callback payload")
            raise MissingCallbackPayload()

        execution_id = payload.get("workflow_version_execution_id") if isinstance(payload, Mapping) else None
        if isinstance(payload, Mapping) and FINAL_OUTPUT_FIELD in payload:
            value = payload[FINAL_OUTPUT_FIELD]
        else:
            value = payload

        if isinstance(value, Mapping):
            node_outputs = looks_like_node_outputs(value)
            logger.info(
                f"[job:resume] execution_id={execution_id} shape={'node_outputs' if node_outputs else 'object'} "
                f"keys={list(value.keys())[:8]}"
            )
            return StructuredResult(data=dict(value), node_outputs=node_outputs)

        if isinstance(value, str):
            logger.info(f"[job:resume] execution_id={execution_id} shape=string")
            return PrimitiveResult(result=value)

        logger.info(f"[job:resume] execution_id={execution_id} shape=raw type={type(value).__name__}")
        return RawFallback(result=value, status="completed", raw_response=serialize_original(payload))
