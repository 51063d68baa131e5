"""Cuehand Keyword Tag Filter — narrows page markup before selector generation.

Given a keyword and candidate tag names chosen by the oracle, keeps only the
elements whose name, placeholder, aria-label or text mention the keyword.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable

from bs4 import BeautifulSoup

logger = logging.getLogger("cuehand.engine.keyword_filter")

KEYWORD_SEPARATOR = "\n---\n"

# Attributes searched alongside the element's text
SEARCHED_ATTRIBUTES = ("name", "placeholder", "aria-label")


@dataclasses.dataclass(frozen=True)
class KeywordQuery:
    """Keyword plus candidate tags, as produced by the oracle."""

    keyword: str
    tags: frozenset[str]

    @classmethod
    def from_dict(cls, data: dict) -> KeywordQuery:
        return cls(
            keyword=str(data.get("keyword") or ""),
            tags=frozenset(normalize_tags(data.get("tags") or [])),
        )


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Lower-case, strip and de-duplicate tag names, keeping first-seen order."""
    seen: list[str] = []
    for tag in tags:
        name = str(tag).strip().lower()
        if name and name not in seen:
            seen.append(name)
    return seen


def _searchable_text(element) -> str:
    parts = [element.get(attr) or "" for attr in SEARCHED_ATTRIBUTES]
    parts.append(element.get_text())
    return " ".join(str(part) for part in parts).lower()


def filter_by_keyword(content: str, keyword: str, tags: Iterable[str]) -> str:
    """Return the outer markup of matching elements joined by ``KEYWORD_SEPARATOR``.

    Matching is a case-insensitive substring test, so a blank keyword keeps
    every element of the candidate tags. Empty ``tags`` or no matches yield
    ``""``; callers decide whether to fall back to unnarrowed content.
    """
    tag_names = normalize_tags(tags)
    needle = keyword.strip().lower()
    if not tag_names:
        return ""

    soup = BeautifulSoup(content, "html.parser")
    kept = [str(element) for element in soup.find_all(tag_names) if needle in _searchable_text(element)]

    logger.debug(
        "Keyword %r over tags %s kept %d element(s)",
        keyword,
        ", ".join(tag_names),
        len(kept),
    )
    return KEYWORD_SEPARATOR.join(kept)
