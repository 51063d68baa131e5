"""Cuehand Intent Oracle — schema-constrained calls to a Claude model.

Every call sends a system prompt, a user prompt and a JSON Schema. The model
is forced to answer through a single tool whose input schema is the requested
schema; the tool input is then validated with ``jsonschema``. Anything short of
a valid object raises ``OracleFailure``. Calls are never retried: a broken
answer invalidates every step that would follow it.
"""

from __future__ import annotations

import logging
from typing import Any

from jsonschema import Draft7Validator

from cuehand.config import CuehandError
from cuehand.engine.cost_tracker import CostTracker
from cuehand.models import DEFAULT_MAX_TOKENS, MODELS

logger = logging.getLogger("cuehand.engine.oracle")

TOOL_NAME = "emit_structured_output"
TOOL_DESCRIPTION = "Return the answer. The input must match the schema exactly."

# Key used when a non-object schema is wrapped for the tool interface
_WRAPPED_KEY = "result"


class OracleFailure(CuehandError):
    """Raised on a transport error or an unusable oracle response."""

    pass


class OracleSchemaMismatch(OracleFailure):
    """Raised when the oracle's output does not validate against the schema."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


def schema_errors(instance: Any, schema: dict[str, Any]) -> list[str]:
    """Return human-readable validation errors, empty when ``instance`` is valid."""
    validator = Draft7Validator(schema)
    messages = []
    for error in sorted(validator.iter_errors(instance), key=lambda e: list(e.absolute_path)):
        path = "/".join(str(p) for p in error.absolute_path) or "<root>"
        messages.append(f"{path}: {error.message}")
    return messages


def _as_tool_schema(schema: dict[str, Any]) -> tuple[dict[str, Any], bool]:
    """Tool input must be an object; wrap anything else under ``result``."""
    if schema.get("type") == "object":
        return schema, False
    return (
        {"type": "object", "properties": {_WRAPPED_KEY: schema}, "required": [_WRAPPED_KEY]},
        True,
    )


class AnthropicOracle:
    """Structured generation via the Anthropic Messages API."""

    def __init__(
        self,
        model: str = MODELS["intent"],
        api_key: str | None = None,
        cost_tracker: CostTracker | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: Any | None = None,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self._cost_tracker = cost_tracker
        self._max_tokens = max_tokens
        self._client = client

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self) -> Any:
        """Return the cached Anthropic client, creating it lazily on first use."""
        if self._client is None:
            import anthropic

            # No SDK-level retries: a failed call ends the operation.
            kwargs: dict[str, Any] = {"max_retries": 0, "timeout": 60.0}
            if self._api_key:
                kwargs["api_key"] = self._api_key
            self._client = anthropic.Anthropic(**kwargs)
        return self._client

    def infer(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: dict[str, Any],
        purpose: str = "",
        model: str | None = None,
    ) -> Any:
        """Ask the model for an object conforming to ``schema``.

        Raises:
            OracleFailure: the request failed or no tool output came back.
            OracleSchemaMismatch: the output does not validate.
        """
        model = model or self._model
        tool_schema, wrapped = _as_tool_schema(schema)

        client = self._get_client()
        try:
            response = client.messages.create(
                model=model,
                max_tokens=self._max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                tools=[
                    {
                        "name": TOOL_NAME,
                        "description": TOOL_DESCRIPTION,
                        "input_schema": tool_schema,
                    }
                ],
                tool_choice={"type": "tool", "name": TOOL_NAME},
            )
        except Exception as exc:
            logger.error("Oracle call failed (%s): %s", purpose or "unlabelled", exc)
            raise OracleFailure(f"Oracle call failed: {exc}") from exc

        usage = getattr(response, "usage", None)
        if self._cost_tracker is not None and usage is not None:
            self._cost_tracker.record_call(
                model=model,
                input_tokens=usage.input_tokens,
                output_tokens=usage.output_tokens,
                purpose=purpose,
            )

        payload: Any = None
        for block in response.content:
            if getattr(block, "type", None) == "tool_use" and getattr(block, "name", TOOL_NAME) == TOOL_NAME:
                payload = block.input
                break
        if not isinstance(payload, dict):
            stop = getattr(response, "stop_reason", None)
            raise OracleFailure(f"Oracle returned no structured output (stop_reason={stop})")

        errors = schema_errors(payload, tool_schema)
        if errors:
            logger.warning("Oracle output failed validation (%s): %s", purpose or "unlabelled", "; ".join(errors))
            raise OracleSchemaMismatch(
                "Oracle output does not match schema: " + "; ".join(errors),
                errors=errors,
            )

        logger.debug("Oracle %s -> %s", purpose or "call", payload)
        return payload[_WRAPPED_KEY] if wrapped else payload
