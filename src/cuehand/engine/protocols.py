"""Capability protocols at the engine boundary.

The engine talks to two external collaborators: a browser automation driver
(Playwright's sync ``Page``/``Locator`` satisfy the driver protocols as-is) and
a structured generation oracle. Tests substitute in-memory stand-ins for both.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Locator(Protocol):
    """A live, re-evaluatable reference to zero or more elements."""

    def count(self) -> int: ...

    def nth(self, index: int) -> Locator: ...

    def click(self, **kwargs: Any) -> None: ...

    def fill(self, value: str, **kwargs: Any) -> None: ...


@runtime_checkable
class Keyboard(Protocol):
    def press(self, key: str, **kwargs: Any) -> None: ...


@runtime_checkable
class Page(Protocol):
    """The slice of a browser page the engine reads and drives."""

    keyboard: Keyboard

    def content(self) -> str: ...

    def goto(self, url: str, **kwargs: Any) -> Any: ...

    def locator(self, selector: str, **kwargs: Any) -> Locator: ...

    def get_by_role(self, role: Any, **kwargs: Any) -> Locator: ...

    def evaluate(self, expression: str, arg: Any = None) -> Any: ...


@runtime_checkable
class StructuredOracle(Protocol):
    """Text-to-structured-data capability.

    Implementations return a dict that validates against ``schema`` or raise
    ``OracleFailure``. Nothing in the engine depends on which model answered.
    """

    def infer(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: dict[str, Any],
        purpose: str = "",
        **kwargs: Any,
    ) -> dict[str, Any]: ...
