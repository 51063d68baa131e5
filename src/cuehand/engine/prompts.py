"""System prompts and output schemas for every oracle call.

The wording here is part of the engine's behaviour: the role, action and
selector vocabulary the oracle is told about is exactly what the resolver and
executor accept.
"""

from __future__ import annotations

from typing import Any

ACTIONS = ("click", "fill", "locate")
ROLE_ACTIONS = ("click", "fill")

# ---------------------------------------------------------------------------
# Role strategy: one call extracts target + action
# ---------------------------------------------------------------------------

ROLE_INTENT_PROMPT = """\
Extract intent.
targetText: exact case-sensitive text (e.g., 'Log in', 'Username')
role: button | link | textbox
action: click | fill
value: for fill actions
index: for positional access (0=first, 1=second)"""

ROLE_INTENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "targetText": {"type": "string"},
        "role": {"type": "string"},
        "action": {"type": "string", "enum": list(ROLE_ACTIONS)},
        "value": {"type": "string"},
        "index": {"type": "integer", "minimum": 0},
    },
    "required": ["targetText", "role", "action"],
}

ROLE_QUERY_PROMPT = """\
Extract intent.
targetText: exact case-sensitive text
role: button | link | textbox
index: for positional access"""

ROLE_QUERY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "targetText": {"type": "string"},
        "role": {"type": "string"},
        "index": {"type": "integer", "minimum": 0},
    },
    "required": ["targetText", "role"],
}

# ---------------------------------------------------------------------------
# Selector strategy: keyword -> selector -> action
# ---------------------------------------------------------------------------

KEYWORD_PROMPT = """\
You are an expert at picking the best keyword from an instruction.
A keyword is a word that can be searched out of multiple others to determine the best element.
E.g "Find the login button" the keyword is "login". E.g "Find the email field" the keyword is "email".

Based on the instruction, you will need to pick the best tags to filter the HTML content.
Let's say the keyword is "login", a login keyword can only really be found in the following tags:
input, button, a, h1 (and the rest of the heading tags) span, p.
So you will need to pick the best tags to filter the HTML content.

Remember to be accurate with the keyword: if the user passes in 'Log in' the keyword becomes Log in and not login.
Keywords are only one word, unless otherwise stated by the user, e.g 'Log in' vs login."""

KEYWORD_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "keyword": {"type": "string"},
        "tags": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["keyword", "tags"],
}

SELECTOR_PROMPT = """\
You are an expert at picking Playwright selectors for clickable elements.

IMPORTANT: If the element itself is not clickable (like a span or div),
find its clickable parent (button, a, [role="button"], etc).

Use XPath to traverse up the DOM tree with ancestor::
Example: xpath=//span[contains(text(), "Search")]/ancestor::button

Only generate selectors in these formats:
1. CSS: button.class, a[href], input[name="username"]
2. XPath with ancestors: xpath=//span[contains(text(), "Search")]/ancestor::button

If finding by text, use: xpath=//*[contains(text(), "Search")]
- Find input by name: input[name="username"]

Return ONLY the selector string, nothing else."""

SELECTOR_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "selector": {"type": "string", "minLength": 1},
    },
    "required": ["selector"],
}

ACTION_PROMPT = """\
You are an expert at picking Playwright actions to perform on a webpage.
You will be given an instruction and you will need to pick the appropriate action to perform.

The actions you can perform are:
- click: click on the element
- fill: fill the element with the value (this is the only action that requires a value)
- locate: locate the element"""

ACTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "action": {"type": "string", "enum": list(ACTIONS)},
        "value": {"type": "string"},
    },
    "required": ["action"],
}

# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

EXTRACTION_PROMPT = """\
You are an expert web content extraction agent.
You are given an instruction and the HTML of a webpage.
Your task is to extract only the requested structured data, matching the provided schema exactly.
Be concise, precise, and return only relevant information."""


def selector_user_prompt(content: str, instruction: str) -> str:
    return f"Content: {content}, Instruction: {instruction}"


def instruction_user_prompt(instruction: str) -> str:
    return f"Instruction: {instruction}"


def extraction_user_prompt(instruction: str, content: str) -> str:
    return f"Instruction: {instruction}\nHTML Content: {content}"
