"""Cuehand Content Sanitizer — compacts rendered page HTML for the oracle.

Strips comments, ``<script>``/``<style>`` blocks, ``<svg>`` subtrees,
``<link>``/``<meta>`` tags and the bare tags of structural wrapper elements,
then drops blank lines.

The markup is tokenized with the ``html.parser`` tokenizer (the one
BeautifulSoup's default tree builder runs on) so that comments, raw-text
elements and malformed tags are recognised structurally. Removal works by
cutting character spans out of the original string rather than
re-serializing a tree: the result is always a subsequence of the input.
"""

from __future__ import annotations

import logging
from html.parser import HTMLParser

logger = logging.getLogger("cuehand.engine.sanitizer")

DEFAULT_WRAPPER_TAGS: frozenset[str] = frozenset(
    {"html", "body", "div", "span", "section", "main", "header", "footer", "nav"}
)

# div/span often carry layout hints worth keeping for selector generation
LAYOUT_PRESERVING_WRAPPER_TAGS: frozenset[str] = DEFAULT_WRAPPER_TAGS - {"div", "span"}

# Elements removed together with everything inside them
_RAW_TEXT_TAGS = frozenset({"script", "style"})
_VOID_NOISE_TAGS = frozenset({"link", "meta"})


class _SpanCollector(HTMLParser):
    """Tokenizes markup and records the ``[start, end)`` spans to cut."""

    def __init__(self, text: str, strip_svg: bool, wrapper_tags: frozenset[str]) -> None:
        super().__init__(convert_charrefs=False)
        self._text = text
        self._strip_svg = strip_svg
        self._wrapper_tags = wrapper_tags
        self._line_starts = [0] + [i + 1 for i, ch in enumerate(text) if ch == "\n"]
        self.spans: list[tuple[int, int]] = []
        self._raw_text_start: int | None = None
        self._svg_start: int | None = None
        self._svg_depth = 0

    # -- Position helpers ----------------------------------------------------

    def _offset(self) -> int:
        """Absolute offset of the construct currently being handled."""
        line, col = self.getpos()
        return self._line_starts[line - 1] + col

    def _tag_end(self, start: int) -> int:
        end = self._text.find(">", start)
        return len(self._text) if end == -1 else end + 1

    def _starttag_span(self) -> tuple[int, int]:
        start = self._offset()
        raw = self.get_starttag_text() or ""
        return start, start + len(raw)

    # -- Handlers --------------------------------------------------------------

    def parse_html_declaration(self, i: int) -> int:
        # Marked sections (<![CDATA[...]]>, <![if IE]>, unknown keywords) are
        # cut whole; an unterminated one runs to the end of the input
        rawdata = self.rawdata
        if not rawdata.startswith("<![", i):
            return super().parse_html_declaration(i)
        closer = "]]>" if rawdata.startswith("<![CDATA[", i) else ">"
        end = rawdata.find(closer, i + 3)
        stop = len(rawdata) if end == -1 else end + len(closer)
        start = self._offset()
        self.spans.append((start, start + stop - i))
        return stop

    def handle_comment(self, data: str) -> None:
        start = self._offset()
        if not self._text.startswith("<!--", start):
            # Bogus comment such as <!foo> or </ >
            self.spans.append((start, self._tag_end(start)))
            return
        ends = []
        for closer in ("-->", "--!>"):
            pos = self._text.find(closer, start + 2)
            if pos != -1:
                ends.append(pos + len(closer))
        self.spans.append((start, min(ends) if ends else len(self._text)))

    def handle_starttag(self, tag: str, attrs: list) -> None:
        start, end = self._starttag_span()
        if tag in _RAW_TEXT_TAGS:
            self._raw_text_start = start
        elif tag == "svg" and self._strip_svg:
            if self._svg_depth == 0:
                self._svg_start = start
            self._svg_depth += 1
        elif tag in _VOID_NOISE_TAGS or tag in self._wrapper_tags:
            self.spans.append((start, end))

    def handle_startendtag(self, tag: str, attrs: list) -> None:
        start, end = self._starttag_span()
        if tag in _RAW_TEXT_TAGS or tag in _VOID_NOISE_TAGS or tag in self._wrapper_tags:
            self.spans.append((start, end))
        elif tag == "svg" and self._strip_svg:
            self.spans.append((start, end))

    def handle_endtag(self, tag: str) -> None:
        start = self._offset()
        end = self._tag_end(start)
        if tag in _RAW_TEXT_TAGS and self._raw_text_start is not None:
            self.spans.append((self._raw_text_start, end))
            self._raw_text_start = None
        elif tag == "svg" and self._strip_svg and self._svg_depth:
            self._svg_depth -= 1
            if self._svg_depth == 0 and self._svg_start is not None:
                self.spans.append((self._svg_start, end))
                self._svg_start = None
        elif tag in self._wrapper_tags:
            self.spans.append((start, end))

    def close(self) -> None:
        # An unclosed comment is left buffered; it runs to the end of the input
        if self.rawdata.startswith("<!--"):
            self.spans.append((self._offset(), len(self._text)))
        super().close()
        # Unterminated raw-text or svg blocks run to the end of the input
        if self._raw_text_start is not None:
            self.spans.append((self._raw_text_start, len(self._text)))
        if self._svg_start is not None:
            self.spans.append((self._svg_start, len(self._text)))


def _cut(text: str, spans: list[tuple[int, int]]) -> str:
    """Remove the union of ``spans`` from ``text``."""
    if not spans:
        return text
    pieces: list[str] = []
    cursor = 0
    for start, end in sorted(spans):
        if end <= cursor:
            continue
        if start > cursor:
            pieces.append(text[cursor:start])
        cursor = max(cursor, end)
    pieces.append(text[cursor:])
    return "".join(pieces)


def _drop_blank_lines(text: str) -> str:
    return "\n".join(line for line in text.split("\n") if line.strip())


class ContentSanitizer:
    """Deterministic HTML noise stripper.

    ``sanitize`` is pure and total, never inserts characters and is
    idempotent: passes repeat until the text is a fixed point.
    """

    def __init__(
        self,
        strip_svg: bool = True,
        wrapper_tags: frozenset[str] | set[str] = DEFAULT_WRAPPER_TAGS,
    ) -> None:
        self._strip_svg = strip_svg
        self._wrapper_tags = frozenset(tag.lower() for tag in wrapper_tags)

    @classmethod
    def layout_preserving(cls, strip_svg: bool = True) -> ContentSanitizer:
        """Sanitizer that keeps ``div``/``span`` tags in place."""
        return cls(strip_svg=strip_svg, wrapper_tags=LAYOUT_PRESERVING_WRAPPER_TAGS)

    @property
    def wrapper_tags(self) -> frozenset[str]:
        return self._wrapper_tags

    def _single_pass(self, text: str) -> str:
        collector = _SpanCollector(text, self._strip_svg, self._wrapper_tags)
        collector.feed(text)
        collector.close()
        return _drop_blank_lines(_cut(text, collector.spans))

    def sanitize(self, raw: str) -> str:
        """Return the compact snapshot of ``raw``."""
        text = raw
        passes = 0
        while True:
            passes += 1
            cleaned = self._single_pass(text)
            if cleaned == text:
                break
            text = cleaned
        logger.debug("Sanitized %d -> %d chars in %d pass(es)", len(raw), len(text), passes)
        return text


def sanitize(
    raw: str,
    strip_svg: bool = True,
    wrapper_tags: frozenset[str] | set[str] = DEFAULT_WRAPPER_TAGS,
) -> str:
    """Module-level shortcut for ``ContentSanitizer(...).sanitize(raw)``."""
    return ContentSanitizer(strip_svg=strip_svg, wrapper_tags=wrapper_tags).sanitize(raw)
