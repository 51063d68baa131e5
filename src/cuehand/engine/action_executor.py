"""Cuehand Action Executor — Dispatches resolved intents to the browser driver.

Three terminal actions, no intermediate states:

- ``click``: click the resolved locator, never waits afterwards;
- ``fill``: fill the locator (empty string when no value was given), then
  pause ``settle_seconds`` so reactive UIs can catch up;
- ``locate``: count only, no mutation.

Every path counts the locator first; a zero count never reaches click/fill.
Driver-level failures come back as ``ActResult(success=False)``.
"""

from __future__ import annotations

import dataclasses
import logging
import re
import time
from collections.abc import Mapping

from cuehand.engine.element_resolver import ActionDriverError, ElementNotFound, ElementResolver, TargetDescriptor
from cuehand.engine.prompts import ACTIONS
from cuehand.engine.protocols import Locator, Page
from cuehand.models import DEFAULT_NOT_FOUND_POLICY, DEFAULT_SETTLE_SECONDS, NOT_FOUND_POLICIES

logger = logging.getLogger("cuehand.engine.action_executor")


def substitute_variables(instruction: str, variables: Mapping[str, str] | None) -> str:
    """Replace each ``%key%`` token with its value.

    All tokens are matched against the original text in one pass (longest key
    first), so the result does not depend on mapping order and substituted
    values are never substituted again. Unknown placeholders stay verbatim.
    """
    if not variables:
        return instruction
    keys = sorted(variables, key=lambda k: (-len(k), k))
    pattern = re.compile("|".join(re.escape(f"%{key}%") for key in keys))
    return pattern.sub(lambda m: str(variables[m.group(0)[1:-1]]), instruction)


@dataclasses.dataclass(frozen=True)
class ActionIntent:
    """What to do with the resolved element."""

    action: str  # click, fill, locate
    value: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> ActionIntent:
        value = data.get("value")
        return cls(
            action=str(data.get("action") or "").strip().lower(),
            value=None if value is None else str(value),
        )


@dataclasses.dataclass
class ActResult:
    """Outcome of an act() call. Expected failures are reported, not raised."""

    success: bool
    message: str
    action: str = ""
    target: str = ""
    match_count: int = 0
    duration_ms: float = 0.0


class ActionExecutor:
    """Runs an ActionIntent against a resolved target."""

    def __init__(
        self,
        page: Page,
        resolver: ElementResolver | None = None,
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        on_not_found: str = DEFAULT_NOT_FOUND_POLICY,
    ) -> None:
        if on_not_found not in NOT_FOUND_POLICIES:
            raise ValueError(f"on_not_found must be one of {NOT_FOUND_POLICIES}, got {on_not_found!r}")
        self._page = page
        self._resolver = resolver or ElementResolver()
        self._settle_seconds = settle_seconds
        self._on_not_found = on_not_found

    def execute(self, intent: ActionIntent, descriptor: TargetDescriptor, instruction: str) -> ActResult:
        """Resolve ``descriptor`` and perform ``intent`` on it.

        Raises ElementNotFound only under the ``"raise"`` policy.
        """
        start = time.monotonic()
        target = descriptor.describe()

        if intent.action not in ACTIONS:
            return ActResult(
                success=False,
                message=f'Unsupported action "{intent.action}". The instruction "{instruction}" could not be executed.',
                action=intent.action,
                target=target,
            )

        matches = 0
        try:
            locator, matches = self._resolver.require(self._page, descriptor)
            message = self._perform(intent, locator, target, matches)
        except ElementNotFound as exc:
            logger.warning("%s for instruction %r", exc, instruction)
            if self._on_not_found == "raise":
                raise
            return ActResult(
                success=False,
                message=f'{exc}. The instruction "{instruction}" could not be executed.',
                action=intent.action,
                target=target,
                duration_ms=(time.monotonic() - start) * 1000,
            )
        except ActionDriverError as exc:
            logger.warning("Action %s on %s failed: %s", intent.action, target, exc)
            return ActResult(
                success=False,
                message=f'Action failed: {exc}. The instruction "{instruction}" could not be executed.',
                action=intent.action,
                target=target,
                match_count=matches,
                duration_ms=(time.monotonic() - start) * 1000,
            )

        return ActResult(
            success=True,
            message=message,
            action=intent.action,
            target=target,
            match_count=matches,
            duration_ms=(time.monotonic() - start) * 1000,
        )

    def _perform(self, intent: ActionIntent, locator: Locator, target: str, matches: int) -> str:
        if intent.action == "click":
            try:
                locator.click()
            except Exception as exc:
                raise ActionDriverError(str(exc)) from exc
            logger.info("Clicked %s", target)
            return f"Clicked {target}"

        if intent.action == "fill":
            value = intent.value or ""
            try:
                locator.fill(value)
            except Exception as exc:
                raise ActionDriverError(str(exc)) from exc
            time.sleep(self._settle_seconds)
            logger.info("Filled %s with %r", target, value)
            return f"Filled {target}"

        logger.info("Located %s (%d match(es))", target, matches)
        return f"Located {target} ({matches} match(es))"
