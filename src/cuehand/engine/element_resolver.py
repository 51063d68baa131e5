"""Cuehand Element Resolver — turns oracle target descriptions into locators.

Two strategies:

- selector: a CSS selector, or an XPath expression (``xpath=`` prefix or a
  bare ``//`` path), typically an ancestor traversal from a text-bearing leaf
  to its nearest clickable parent;
- role: ``get_by_role(role, name=text, exact=True)`` with an optional
  ``.nth(index)``. Matching on the accessible name is exact, never substring.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Union

from cuehand.config import CuehandError
from cuehand.engine.protocols import Locator, Page

logger = logging.getLogger("cuehand.engine.element_resolver")

XPATH_PREFIX = "xpath="


@dataclasses.dataclass(frozen=True)
class SelectorDescriptor:
    """A single CSS or XPath selector string."""

    selector: str

    def describe(self) -> str:
        return self.selector


@dataclasses.dataclass(frozen=True)
class RoleDescriptor:
    """An ARIA role plus exact accessible name, optionally indexed."""

    role: str
    target_text: str
    index: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> RoleDescriptor:
        index = data.get("index")
        return cls(
            role=str(data.get("role") or "").strip().lower(),
            target_text=str(data.get("targetText") or ""),
            index=int(index) if index is not None else None,
        )

    def describe(self) -> str:
        text = f"'{self.target_text}' ({self.role})"
        if self.index is not None:
            text += f" #{self.index}"
        return text


TargetDescriptor = Union[SelectorDescriptor, RoleDescriptor]


class ElementNotFound(CuehandError):
    """Raised when a descriptor resolves to zero elements."""

    def __init__(self, descriptor: TargetDescriptor, reason: str = "no matching element") -> None:
        self.descriptor = descriptor
        super().__init__(f"Not found: {descriptor.describe()} ({reason})")


class ActionDriverError(CuehandError):
    """Raised when the driver rejects a locator, a count, a click or a fill."""

    pass


def normalize_selector(selector: str) -> str:
    """Return a selector string the driver understands unambiguously.

    Bare XPath expressions get the ``xpath=`` engine prefix; CSS passes through.
    """
    selector = selector.strip()
    if selector.lower().startswith(XPATH_PREFIX):
        return XPATH_PREFIX + selector[len(XPATH_PREFIX):].strip()
    if selector.startswith(("//", "(//", "./", "..")):
        return XPATH_PREFIX + selector
    return selector


def is_xpath(selector: str) -> bool:
    return normalize_selector(selector).startswith(XPATH_PREFIX)


class ElementResolver:
    """Resolves target descriptors against a live page."""

    def resolve(self, page: Page, descriptor: TargetDescriptor) -> Locator:
        """Build a locator for ``descriptor``. Does not touch the DOM yet."""
        if isinstance(descriptor, SelectorDescriptor):
            selector = normalize_selector(descriptor.selector)
            if not selector or selector == XPATH_PREFIX:
                raise ElementNotFound(descriptor, "empty selector")
            logger.debug("Resolving selector %s", selector)
            try:
                return page.locator(selector)
            except Exception as exc:
                raise ActionDriverError(f"Invalid selector {selector!r}: {exc}") from exc

        if isinstance(descriptor, RoleDescriptor):
            if not descriptor.role or not descriptor.target_text:
                raise ElementNotFound(descriptor, "role and target text are both required")
            if descriptor.index is not None and descriptor.index < 0:
                raise ElementNotFound(descriptor, "index must be non-negative")
            logger.debug("Resolving role %s", descriptor.describe())
            try:
                locator = page.get_by_role(descriptor.role, name=descriptor.target_text, exact=True)
                if descriptor.index is not None:
                    locator = locator.nth(descriptor.index)
            except Exception as exc:
                raise ActionDriverError(f"Cannot locate {descriptor.describe()}: {exc}") from exc
            return locator

        raise TypeError(f"Unsupported target descriptor: {descriptor!r}")

    @staticmethod
    def count(locator: Locator) -> int:
        """Number of matching elements. Playwright validates selectors here."""
        try:
            return locator.count()
        except Exception as exc:
            raise ActionDriverError(f"Cannot count matches: {exc}") from exc

    def require(self, page: Page, descriptor: TargetDescriptor) -> tuple[Locator, int]:
        """Resolve and count; raise ElementNotFound when nothing matches.

        Driver failures on the way (a malformed selector, a detached page)
        surface as ActionDriverError.
        """
        locator = self.resolve(page, descriptor)
        matches = self.count(locator)
        if matches == 0:
            raise ElementNotFound(descriptor)
        return locator, matches
