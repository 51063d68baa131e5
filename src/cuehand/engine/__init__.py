"""Cuehand engine — the instruction resolution pipeline.

- ContentSanitizer: strips page noise into a compact snapshot
- filter_by_keyword: narrows markup to elements mentioning a keyword
- AnthropicOracle: schema-constrained structured generation
- ElementResolver: selector / role descriptors -> countable locators
- ActionExecutor: click / fill / locate with structured results
- ExtractionEngine: tag-family filtering + schema-driven extraction
- CostTracker: oracle token cost tracking and budget enforcement
- Cuehand: session facade exposing act / observe / extract
"""

from cuehand.engine.action_executor import (
    ActionDriverError,
    ActionExecutor,
    ActionIntent,
    ActResult,
    substitute_variables,
)
from cuehand.engine.cost_tracker import BudgetExceededError, CostTracker
from cuehand.engine.element_resolver import (
    ElementNotFound,
    ElementResolver,
    RoleDescriptor,
    SelectorDescriptor,
)
from cuehand.engine.extraction import (
    ExtractionEngine,
    ExtractionSchemaMismatch,
    SchemaDefinitionError,
    TagFamilyRule,
    build_schema,
    classify_instruction,
)
from cuehand.engine.keyword_filter import KeywordQuery, filter_by_keyword
from cuehand.engine.oracle import AnthropicOracle, OracleFailure, OracleSchemaMismatch
from cuehand.engine.sanitizer import ContentSanitizer, sanitize
from cuehand.engine.session import Cuehand, ObserveResult

__all__ = [
    "ActResult",
    "ActionDriverError",
    "ActionExecutor",
    "ActionIntent",
    "AnthropicOracle",
    "BudgetExceededError",
    "ContentSanitizer",
    "CostTracker",
    "Cuehand",
    "ElementNotFound",
    "ElementResolver",
    "ExtractionEngine",
    "ExtractionSchemaMismatch",
    "KeywordQuery",
    "ObserveResult",
    "OracleFailure",
    "OracleSchemaMismatch",
    "RoleDescriptor",
    "SchemaDefinitionError",
    "SelectorDescriptor",
    "TagFamilyRule",
    "build_schema",
    "classify_instruction",
    "filter_by_keyword",
    "sanitize",
]
