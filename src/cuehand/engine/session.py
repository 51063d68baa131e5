"""Cuehand Session — natural-language act / observe / extract on a live page.

Wires the pipeline together:

    instruction -> variable substitution -> ContentSanitizer
                -> (KeywordTagFilter | tag-family filter) -> oracle
                -> ElementResolver -> ActionExecutor | ExtractionEngine

The session owns no browser lifecycle; hand it a page that is already open
(a Playwright sync ``Page`` works as-is). Calls are sequential: one
instruction in flight per session.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from cuehand.config import CuehandConfig
from cuehand.credentials import resolve_api_key
from cuehand.engine.action_executor import ActionExecutor, ActionIntent, ActResult, substitute_variables
from cuehand.engine.cost_tracker import CostTracker
from cuehand.engine.element_resolver import ActionDriverError, ElementNotFound, ElementResolver, RoleDescriptor, SelectorDescriptor
from cuehand.engine.extraction import ExtractionEngine
from cuehand.engine.keyword_filter import KeywordQuery, filter_by_keyword
from cuehand.engine.oracle import AnthropicOracle
from cuehand.engine.prompts import (
    ACTION_PROMPT,
    ACTION_SCHEMA,
    KEYWORD_PROMPT,
    KEYWORD_SCHEMA,
    ROLE_INTENT_PROMPT,
    ROLE_INTENT_SCHEMA,
    ROLE_QUERY_PROMPT,
    ROLE_QUERY_SCHEMA,
    SELECTOR_PROMPT,
    SELECTOR_SCHEMA,
    instruction_user_prompt,
    selector_user_prompt,
)
from cuehand.engine.protocols import Page, StructuredOracle
from cuehand.engine.sanitizer import ContentSanitizer

logger = logging.getLogger("cuehand.engine.session")


@dataclasses.dataclass
class ObserveResult:
    """Whether the element an instruction describes is on the page."""

    found: bool
    count: int
    target: str


class Cuehand:
    """Instruction resolution engine bound to one live page."""

    def __init__(
        self,
        page: Page,
        oracle: StructuredOracle,
        config: CuehandConfig | None = None,
    ) -> None:
        self._page = page
        self._oracle = oracle
        self._config = config or CuehandConfig()
        self._config.validate()
        self._sanitizer = (
            ContentSanitizer.layout_preserving(strip_svg=self._config.strip_svg)
            if self._config.preserve_layout
            else ContentSanitizer(strip_svg=self._config.strip_svg)
        )
        self._resolver = ElementResolver()
        self._executor = ActionExecutor(
            page,
            self._resolver,
            settle_seconds=self._config.settle_seconds,
            on_not_found=self._config.on_not_found,
        )
        extraction_model = self._config.model_extraction
        if extraction_model == getattr(oracle, "model", None):
            extraction_model = None
        self._extractor = ExtractionEngine(page, oracle, self._sanitizer, model=extraction_model)

    @classmethod
    def from_config(
        cls,
        page: Page,
        config: CuehandConfig | None = None,
        project_dir: Path | None = None,
    ) -> Cuehand:
        """Build a session with an Anthropic-backed oracle and a cost tracker.

        Without ``config``, settings come from ``project_dir/config.yaml``
        (default ``.cuehand/``) when it exists.
        """
        if config is None:
            config = CuehandConfig.load(project_dir or Path(".cuehand"))
        api_key = resolve_api_key(config)
        oracle = AnthropicOracle(
            model=config.model_intent,
            api_key=api_key,
            cost_tracker=CostTracker(budget_usd=config.budget),
            max_tokens=config.max_tokens,
        )
        return cls(page, oracle, config)

    @property
    def page(self) -> Page:
        return self._page

    @property
    def config(self) -> CuehandConfig:
        return self._config

    # -- Driver passthroughs ---------------------------------------------------

    def goto(self, url: str) -> None:
        self._page.goto(url)
        logger.info("Navigated to %s", url)

    def content(self) -> str:
        """Sanitized snapshot of the current page."""
        return self._sanitizer.sanitize(self._page.content())

    def press(self, key: str) -> None:
        self._page.keyboard.press(key)
        logger.info("Pressed %s", key)

    def wait(self, seconds: float) -> None:
        logger.info("Waiting %s second(s)", seconds)
        time.sleep(seconds)

    # -- act -----------------------------------------------------------------

    def act(
        self,
        instruction: str,
        variables: Mapping[str, str] | None = None,
        strategy: str | None = None,
    ) -> ActResult:
        """Perform the click / fill / locate the instruction describes.

        Raises:
            OracleFailure: any oracle call failed; nothing is executed.
            ElementNotFound: nothing matched and ``on_not_found`` is ``"raise"``.
        """
        strategy = (strategy or self._config.strategy).lower()
        instruction = substitute_variables(instruction, variables)
        if strategy == "role":
            return self._act_by_role(instruction)
        if strategy == "selector":
            return self._act_by_selector(instruction)
        raise ValueError(f"Unknown strategy: {strategy!r}")

    def _act_by_role(self, instruction: str) -> ActResult:
        data = self._oracle.infer(ROLE_INTENT_PROMPT, instruction, ROLE_INTENT_SCHEMA, purpose="role_intent")
        descriptor = RoleDescriptor.from_dict(data)
        intent = ActionIntent.from_dict(data)
        logger.info(
            "Intent: %s on %s%s",
            intent.action,
            descriptor.describe(),
            f" value={intent.value!r}" if intent.value is not None else "",
        )
        return self._executor.execute(intent, descriptor, instruction)

    def _act_by_selector(self, instruction: str) -> ActResult:
        query = KeywordQuery.from_dict(
            self._oracle.infer(
                KEYWORD_PROMPT,
                instruction_user_prompt(instruction),
                KEYWORD_SCHEMA,
                purpose="keyword",
            )
        )
        logger.info("Keyword %r, tags %s", query.keyword, ", ".join(sorted(query.tags)) or "-")

        narrowed = filter_by_keyword(self._page.content(), query.keyword, query.tags)
        if not narrowed:
            logger.info("Keyword narrowing matched nothing, using full content")
            narrowed = self.content()

        selector = self._oracle.infer(
            SELECTOR_PROMPT,
            selector_user_prompt(narrowed, instruction),
            SELECTOR_SCHEMA,
            purpose="selector",
        )["selector"]
        logger.info("Generated selector: %s", selector)

        intent = ActionIntent.from_dict(
            self._oracle.infer(
                ACTION_PROMPT,
                instruction_user_prompt(instruction),
                ACTION_SCHEMA,
                purpose="action",
            )
        )
        return self._executor.execute(intent, SelectorDescriptor(selector), instruction)

    # -- observe -------------------------------------------------------------

    def observe(self, instruction: str, variables: Mapping[str, str] | None = None) -> ObserveResult:
        """Report whether the element the instruction names is present."""
        instruction = substitute_variables(instruction, variables)
        data = self._oracle.infer(ROLE_QUERY_PROMPT, instruction, ROLE_QUERY_SCHEMA, purpose="role_query")
        descriptor = RoleDescriptor.from_dict(data)
        try:
            locator = self._resolver.resolve(self._page, descriptor)
            count = self._resolver.count(locator)
        except (ElementNotFound, ActionDriverError) as exc:
            logger.info("%s", exc)
            return ObserveResult(found=False, count=0, target=descriptor.describe())
        if count:
            logger.info("Found %s", descriptor.describe())
        else:
            logger.info("Not found: %s", descriptor.describe())
        return ObserveResult(found=count > 0, count=count, target=descriptor.describe())

    # -- extract -------------------------------------------------------------

    def extract(self, instruction: str, schema: dict[str, Any]) -> Any:
        """Return data shaped like ``schema`` taken from the current page."""
        return self._extractor.extract(instruction, schema)
