"""Permissive decoding of user supplied JSON fields.

Automation platforms hand over text fields that users often fill by pasting
multi-line prose into a JSON template, which leaves raw line breaks inside
string literals. Strict decoders reject those; we repair exactly that class of
error and nothing else.
"""

import json
from typing import Any, Mapping

from agentrun.core.exceptions import InvalidInputJson
from agentrun.core.models.job import ParseOutcome
from agentrun.core.settings import logger

CONTROL_CHARACTER_ERROR = "Invalid control character"

_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}

GUIDANCE = (
    "the text is not valid JSON. If a value contains line breaks or tabs, "
    "write them as \\n and \\t escape sequences inside the quoted string"
)


def escape_control_characters(text: str) -> str:
    """Escape literal newlines, carriage returns and tabs inside string literals.

    Characters outside string literals (structural whitespace included) are
    copied unchanged, which makes the transform idempotent.
    """
    out = []
    in_string = False
    escape_next = False
    for char in text:
        if not in_string:
            if char == '"':
                in_string = True
            out.append(char)
            continue
        if escape_next:
            escape_next = False
            out.append(char)
            continue
        if char == "\\":
            escape_next = True
        elif char == '"':
            in_string = False
        elif char in _ESCAPES:
            out.append(_ESCAPES[char])
            continue
        out.append(char)
    return "".join(out)


class JsonInputParser:
    """Decode caller supplied values that may be JSON text or already structured."""

    def parse(self, raw: Any) -> ParseOutcome:
        if not isinstance(raw, str):
            return ParseOutcome.success(raw)

        try:
            return ParseOutcome.success(json.loads(raw))
        except json.JSONDecodeError as exc:
            if not exc.msg.startswith(CONTROL_CHARACTER_ERROR):
                return ParseOutcome.failure(f"{exc.msg} at line {exc.lineno} column {exc.colno}", str(exc))
            first_error = exc

        logger.debug(f"[json:recover] control character in string literal at pos={first_error.pos}; escaping")
        try:
            return ParseOutcome.success(json.loads(escape_control_characters(raw)))
        except json.JSONDecodeError:
            return ParseOutcome.failure(GUIDANCE, str(first_error))

    def parse_field(self, field: str, raw: Any) -> Any:
        """Decode `raw` or raise InvalidInputJson naming `field`."""
        outcome = self.parse(raw)
        if not outcome.ok:
            logger.warning(f"[json:invalid] field={field} error={outcome.original_message}")
            raise InvalidInputJson(field, outcome.reason)
        return outcome.value

    def parse_object_field(self, field: str, raw: Any, allow_empty: bool = True) -> Any:
        """Decode a field that must hold a JSON object.

        Blank text and None yield None when `allow_empty` is set.
        """
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            if allow_empty:
                return None
            raise InvalidInputJson(field, "a JSON object is required")
        value = self.parse_field(field, raw)
        if value is not None and not isinstance(value, Mapping):
            raise InvalidInputJson(field, f"expected a JSON object, got {type(value).__name__}")
        return value
