"""Shared fixtures for Cuehand unit tests.

Provides an in-memory page (parsed with BeautifulSoup) that implements the
driver protocol, and a scripted oracle that replays canned answers while
enforcing the requested schema.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import pytest
import yaml
from bs4 import BeautifulSoup

from cuehand.engine.oracle import OracleSchemaMismatch, schema_errors


# ---------------------------------------------------------------------------
# In-memory driver
# ---------------------------------------------------------------------------

_TEXTBOX_TYPES = {None, "", "text", "email", "password", "search", "tel", "url"}
_BUTTON_INPUT_TYPES = {"button", "submit", "reset"}


def _accessible_name(element) -> str:
    name = element.get("aria-label") or element.get_text(" ", strip=True)
    if not name and element.name in ("input", "textarea"):
        name = element.get("placeholder") or element.get("value") or ""
    return re.sub(r"\s+", " ", name).strip()


def _has_role(element, role: str) -> bool:
    explicit = element.get("role")
    if explicit:
        return explicit == role
    if role == "button":
        return element.name == "button" or (
            element.name == "input" and element.get("type") in _BUTTON_INPUT_TYPES
        )
    if role == "link":
        return element.name == "a" and element.has_attr("href")
    if role == "textbox":
        return element.name == "textarea" or (
            element.name == "input" and element.get("type") in _TEXTBOX_TYPES
        )
    return False


class FakeLocator:
    """Locator over a fixed list of parsed elements."""

    def __init__(self, page: FakePage, elements: list, description: str) -> None:
        self._page = page
        self._elements = elements
        self.description = description

    def count(self) -> int:
        self._page.log.append(("count", self.description))
        return len(self._elements)

    def nth(self, index: int) -> FakeLocator:
        picked = self._elements[index : index + 1] if index >= 0 else []
        return FakeLocator(self._page, picked, f"{self.description} >> nth={index}")

    def _target(self):
        if not self._elements:
            raise TimeoutError(f"Timeout 30000ms exceeded waiting for {self.description}")
        if len(self._elements) > 1:
            raise RuntimeError(f"strict mode violation: {self.description} resolved to {len(self._elements)} elements")
        return self._elements[0]

    def click(self, **kwargs: Any) -> None:
        if self._page.fail_with is not None:
            raise self._page.fail_with
        self._target()
        self._page.log.append(("click", self.description))

    def fill(self, value: str, **kwargs: Any) -> None:
        if self._page.fail_with is not None:
            raise self._page.fail_with
        element = self._target()
        element["value"] = value
        self._page.log.append(("fill", self.description, value))


class FakeKeyboard:
    def __init__(self, page: FakePage) -> None:
        self._page = page

    def press(self, key: str, **kwargs: Any) -> None:
        self._page.log.append(("press", key))


class FakePage:
    """Just enough of a Playwright page, backed by static HTML.

    XPath is not evaluated; ``xpath`` maps XPath selectors to equivalent CSS.
    """

    def __init__(self, html: str, xpath: dict[str, str] | None = None) -> None:
        self.html = html
        self.soup = BeautifulSoup(html, "html.parser")
        self.xpath = xpath or {}
        self.keyboard = FakeKeyboard(self)
        self.log: list[tuple] = []
        self.fail_with: Exception | None = None
        self.url = "about:blank"

    @property
    def mutations(self) -> list[tuple]:
        return [entry for entry in self.log if entry[0] in ("click", "fill")]

    def content(self) -> str:
        return self.html

    def goto(self, url: str, **kwargs: Any) -> None:
        self.url = url
        self.log.append(("goto", url))

    def locator(self, selector: str, **kwargs: Any) -> FakeLocator:
        if selector.startswith("xpath="):
            css = self.xpath.get(selector)
            elements = self.soup.select(css) if css else []
        else:
            elements = self.soup.select(selector)
        return FakeLocator(self, elements, selector)

    def get_by_role(self, role: str, name: str | None = None, exact: bool = False, **kwargs: Any) -> FakeLocator:
        matches = []
        for element in self.soup.find_all(True):
            if not _has_role(element, role):
                continue
            accessible = _accessible_name(element)
            if name is not None:
                if exact and accessible != name:
                    continue
                if not exact and name.lower() not in accessible.lower():
                    continue
            matches.append(element)
        return FakeLocator(self, matches, f"role={role}[name={name!r}]")

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        root = self.soup.body or self.soup
        return "".join(str(element) for element in root.select(arg))


# ---------------------------------------------------------------------------
# Scripted oracle
# ---------------------------------------------------------------------------


class ScriptedOracle:
    """Replays queued answers in order; exceptions in the queue are raised."""

    model = "scripted"

    def __init__(self, *responses: Any) -> None:
        self._responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def infer(self, system_prompt: str, user_prompt: str, schema: dict, purpose: str = "", **kwargs: Any) -> Any:
        self.calls.append(
            {
                "system": system_prompt,
                "user": user_prompt,
                "schema": schema,
                "purpose": purpose,
                **kwargs,
            }
        )
        if not self._responses:
            raise AssertionError(f"Unexpected oracle call ({purpose})")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        errors = schema_errors(response, schema)
        if errors:
            raise OracleSchemaMismatch("Oracle output does not match schema: " + "; ".join(errors), errors=errors)
        return response

    @property
    def purposes(self) -> list[str]:
        return [call["purpose"] for call in self.calls]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

LOGIN_PAGE = """\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<link rel="stylesheet" href="/app.css">
<style>.hidden { display: none; }</style>
</head>
<body>
<!-- top navigation -->
<nav><a href="/">Home</a> <a href="/help">Help</a></nav>
<main>
<h1>Welcome back</h1>
<form id="login">
<input type="email" name="email" placeholder="Email address">
<input type="password" name="password" aria-label="Password">
<button type="submit" id="login-btn"><span>Log in</span></button>
<button type="button" id="log-btn">Log</button>
</form>
<p>Need an account? <a href="/signup">Sign up</a></p>
</main>
<script>window.analytics = {"track": "<div>"};</script>
</body>
</html>
"""


@pytest.fixture
def login_page() -> FakePage:
    return FakePage(LOGIN_PAGE)


@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Create a temporary .cuehand/ project directory with a config file."""
    project_dir = tmp_path / ".cuehand"
    project_dir.mkdir()
    config_data = {
        "strategy": "selector",
        "on_not_found": "raise",
        "settle_seconds": 0.5,
        "budget": 2.5,
        "models": {"intent": "claude-haiku-4-5-20251001"},
    }
    (project_dir / "config.yaml").write_text(yaml.dump(config_data, default_flow_style=False), encoding="utf-8")
    return project_dir


@pytest.fixture
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Replace time.sleep with a recorder so settle delays are observable."""
    slept: list[float] = []
    monkeypatch.setattr("cuehand.engine.action_executor.time.sleep", slept.append)
    return slept
