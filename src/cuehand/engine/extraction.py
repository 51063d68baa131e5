"""Cuehand Extraction Engine — schema-shaped data from page content.

1. Classify the instruction into at most one tag family with an ordered rule
   list (first match wins).
2. When a family matched, work on clones of that family's elements taken from
   the live DOM; otherwise on the full sanitized content.
3. Ask the oracle to fill the caller's schema from that content.

Schemas may be full JSON Schema dicts or a shorthand mapping:

    {
        "title": "string",
        "price": ("number", "price in USD"),
        "tags": ["string"],
        "author": {"name": "string"},
    }
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Any

from cuehand.config import CuehandError
from cuehand.engine.oracle import OracleSchemaMismatch
from cuehand.engine.prompts import EXTRACTION_PROMPT, extraction_user_prompt
from cuehand.engine.protocols import Page, StructuredOracle
from cuehand.engine.sanitizer import ContentSanitizer

logger = logging.getLogger("cuehand.engine.extraction")

# Clones every match under <body> into a detached container and serializes it.
CLONE_SCRIPT = """(selector) => {
    const root = document.body || document.documentElement;
    const elements = root.querySelectorAll(selector);
    if (elements.length === 0) return '';
    const container = document.createElement('div');
    elements.forEach((el) => container.appendChild(el.cloneNode(true)));
    return container.innerHTML;
}"""

PRIMITIVE_TYPES = frozenset({"string", "number", "integer", "boolean", "null"})
_JSON_TYPES = PRIMITIVE_TYPES | {"object", "array"}

_JSON_SCHEMA_KEYWORDS = frozenset(
    {
        "$defs", "$ref", "$schema", "additionalProperties", "allOf", "anyOf", "const", "default",
        "definitions", "description", "enum", "examples", "format", "items", "maxItems", "maxLength",
        "maximum", "minItems", "minLength", "minimum", "oneOf", "pattern", "properties", "required",
        "title", "type",
    }
)
# At least one of these must be present for a mapping to count as JSON Schema
_STRUCTURAL_KEYWORDS = frozenset({"type", "properties", "items", "anyOf", "oneOf", "allOf", "$ref", "enum", "const"})


class ExtractionSchemaMismatch(OracleSchemaMismatch):
    """Raised when extracted data does not satisfy the caller's schema."""

    pass


class SchemaDefinitionError(CuehandError):
    """Raised when a caller-supplied schema cannot be interpreted."""

    pass


# ---------------------------------------------------------------------------
# Tag-family classification
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class TagFamilyRule:
    """Instruction keywords that select one family of tags."""

    name: str
    selector: str  # CSS selector list for the family
    words: tuple[str, ...]  # matched on word boundaries, optional plural "s"
    tokens: tuple[str, ...] = ()  # matched as whole words, verbatim

    def matches(self, instruction_lower: str) -> bool:
        for word in self.words:
            if re.search(rf"\b{re.escape(word)}s?\b", instruction_lower):
                return True
        for token in self.tokens:
            if re.search(rf"\b{re.escape(token)}\b", instruction_lower):
                return True
        return False

    @property
    def tags(self) -> tuple[str, ...]:
        return tuple(part.strip() for part in self.selector.split(","))


# Priority order; "links and images" resolves to links.
TAG_FAMILY_RULES: tuple[TagFamilyRule, ...] = (
    TagFamilyRule("link", "a", ("link",)),
    TagFamilyRule("button", "button", ("button",)),
    TagFamilyRule("input", "input", ("input",)),
    TagFamilyRule("form", "form", ("form",)),
    TagFamilyRule("image", "img", ("image",), ("img",)),
    TagFamilyRule("heading", "h1, h2, h3, h4, h5, h6", ("heading",), ("h1", "h2", "h3", "h4", "h5", "h6")),
    TagFamilyRule("paragraph", "p", ("paragraph",)),
    TagFamilyRule("div", "div", ("div",)),
    TagFamilyRule("span", "span", ("span",)),
    TagFamilyRule("table", "table", ("table",)),
    TagFamilyRule("list", "ul, ol", ("list",), ("ul", "ol")),
)


def classify_instruction(
    instruction: str, rules: tuple[TagFamilyRule, ...] = TAG_FAMILY_RULES
) -> TagFamilyRule | None:
    """Return the first rule matching ``instruction``, or None."""
    lowered = instruction.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule
    return None


# ---------------------------------------------------------------------------
# Schema shorthand
# ---------------------------------------------------------------------------


def _is_keyword_value(key: str, value: Any) -> bool:
    """Whether ``value`` has the shape JSON Schema expects under ``key``.

    ``{"title": "string", "type": "string"}`` fails this for ``title``: a type
    name there is shorthand for a field, not a schema title.
    """
    if isinstance(value, tuple):
        return False
    if key == "type":
        names = value if isinstance(value, list) else [value]
        return bool(names) and all(isinstance(name, str) and name in _JSON_TYPES for name in names)
    if key in ("properties", "$defs", "definitions"):
        return isinstance(value, dict) and all(isinstance(sub, (dict, bool)) for sub in value.values())
    if key == "items":
        if isinstance(value, list):
            return bool(value) and all(isinstance(sub, dict) for sub in value)
        return isinstance(value, (dict, bool))
    if key in ("anyOf", "oneOf", "allOf"):
        return isinstance(value, list) and bool(value) and all(isinstance(sub, dict) for sub in value)
    if isinstance(value, str):
        return value not in _JSON_TYPES
    return True


def _is_json_schema(spec: dict[str, Any]) -> bool:
    keys = set(spec)
    if not keys or not keys <= _JSON_SCHEMA_KEYWORDS or not keys & _STRUCTURAL_KEYWORDS:
        return False
    return all(_is_keyword_value(key, value) for key, value in spec.items())


def _field_schema(spec: Any, path: str) -> dict[str, Any]:
    if isinstance(spec, str):
        if spec not in PRIMITIVE_TYPES:
            raise SchemaDefinitionError(f"{path}: unknown type {spec!r}")
        return {"type": spec}
    if isinstance(spec, tuple):
        if len(spec) != 2 or not isinstance(spec[1], str):
            raise SchemaDefinitionError(f"{path}: hints are written as (type, description)")
        schema = dict(_field_schema(spec[0], path))
        schema["description"] = spec[1]
        return schema
    if isinstance(spec, list):
        if len(spec) != 1:
            raise SchemaDefinitionError(f"{path}: array shorthand takes exactly one item type")
        return {"type": "array", "items": _field_schema(spec[0], f"{path}[]")}
    if isinstance(spec, dict):
        if _is_json_schema(spec):
            return spec
        return _object_schema(spec, path)
    raise SchemaDefinitionError(f"{path}: unsupported schema value {spec!r}")


def _object_schema(fields: dict[str, Any], path: str) -> dict[str, Any]:
    properties = {name: _field_schema(value, f"{path}.{name}" if path else name) for name, value in fields.items()}
    return {"type": "object", "properties": properties, "required": list(properties)}


def build_schema(spec: dict[str, Any]) -> dict[str, Any]:
    """Turn a caller schema (JSON Schema or shorthand mapping) into JSON Schema."""
    if not isinstance(spec, dict) or not spec:
        raise SchemaDefinitionError("Extraction schema must be a non-empty mapping")
    return _field_schema(spec, "")


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class ExtractionEngine:
    """Extracts structured data described by a schema from the current page."""

    def __init__(
        self,
        page: Page,
        oracle: StructuredOracle,
        sanitizer: ContentSanitizer | None = None,
        model: str | None = None,
    ) -> None:
        self._page = page
        self._oracle = oracle
        self._sanitizer = sanitizer or ContentSanitizer()
        self._model = model

    def filter_content_by_family(self, rule: TagFamilyRule) -> str:
        """Serialized clones of every element in ``rule``'s family."""
        return self._page.evaluate(CLONE_SCRIPT, rule.selector) or ""

    def gather_content(self, instruction: str) -> tuple[str, TagFamilyRule | None]:
        rule = classify_instruction(instruction)
        if rule is not None:
            filtered = self.filter_content_by_family(rule)
            if filtered.strip():
                logger.info("Filtered content by tag family %s (%s)", rule.name, rule.selector)
                return filtered, rule
            logger.info("No %s elements on page, using full content", rule.name)
        return self._sanitizer.sanitize(self._page.content()), None

    def extract(self, instruction: str, schema: dict[str, Any]) -> Any:
        """Return data conforming to ``schema``.

        Raises:
            SchemaDefinitionError: ``schema`` cannot be interpreted.
            ExtractionSchemaMismatch: the oracle output failed validation.
            OracleFailure: the oracle call itself failed.
        """
        json_schema = build_schema(schema)
        content, _ = self.gather_content(instruction)

        kwargs: dict[str, Any] = {"purpose": "extraction"}
        if self._model:
            kwargs["model"] = self._model
        try:
            data = self._oracle.infer(
                EXTRACTION_PROMPT,
                extraction_user_prompt(instruction, content),
                json_schema,
                **kwargs,
            )
        except OracleSchemaMismatch as exc:
            raise ExtractionSchemaMismatch(str(exc), errors=exc.errors) from exc

        logger.info("Extracted data for %r", instruction)
        return data
