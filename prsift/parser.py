"""Parser for CodeRabbit-style structured review bodies.

CodeRabbit posts review bodies made of nested collapsible blocks:

    <details>
    <summary>🧹 Nitpick comments (2)</summary><blockquote>

    <details>
    <summary>src/a.ts (1)</summary><blockquote>

    `10-12`: **Use const**

    ```diff
    - let x=1
    + const x=1
    ```

    </blockquote></details>

Each top-level ``<details>`` is a section (nit, duplicate, additional or
actionable), nested summaries set the current file, and every
``` `line-range`: **title** ``` line opens a suggestion item.

The parser is a line state machine. It never raises: anything it does not
recognise is skipped, so malformed markup yields fewer (or zero) sections.
"""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass, field

from .config import DESCRIPTION_LOOKAHEAD
from .models import CodeDiff, Severity, SuggestionCategory

UNKNOWN_FILE = "unknown-file"

# <summary>🧹 Nitpick comments (3)</summary>
SECTION_EMOJI_RE = re.compile(r"<summary>\s*([^\x00-\x7f\s]+)\s*([^<]+?)\s*\((\d+)\)\s*</summary>")
# <summary>Actionable comments posted: 2</summary>
SECTION_COUNT_RE = re.compile(r"<summary>\s*([^<]+?)\s*:\s*(\d+)\s*</summary>")
# <summary>`src/a.ts` (2)</summary>
FILE_RE = re.compile(r"<summary>\s*`?([^<`]+?)`?\s*\((\d+)\)\s*</summary>", re.IGNORECASE)
# `10-12`: **Title**   (backticks optional, possibly escaped)
ITEM_RE = re.compile(r"^(?:`|\\`)?(\d+(?:-\d+)?)(?:`|\\`)?:\s*\*\*(.*?)\*\*")

FENCE = "```"
ESCAPED_FENCE = "\\`\\`\\`"
STOP_PREFIXES = ("---", "</blockquote>", "<summary>", "<details>")
# Closing tags that carry no description text
NOISE_LINES = {"</details>", "</blockquote>", "</blockquote></details>", "<blockquote>"}

SEVERITY_BY_CATEGORY: dict[str, Severity] = {
    "nit": "low",
    "duplicate": "medium",
    "additional": "medium",
    "actionable": "high",
}


@dataclass
class ParsedItem:
    """A single line-anchored suggestion."""

    file_path: str
    line_range: str
    title: str
    description: str
    severity: Severity
    extracted_diff: CodeDiff | None = None


@dataclass
class ParsedSection:
    """A collapsible block of suggestions of one category."""

    category: SuggestionCategory
    title: str
    declared_count: int
    items: list[ParsedItem] = field(default_factory=list)


def category_for_emoji(emoji: str) -> SuggestionCategory:
    """Map a section emoji to its suggestion category (default actionable)."""
    if "🧹" in emoji:
        return "nit"
    if "♻" in emoji:
        return "duplicate"
    if "📜" in emoji:
        return "additional"
    return "actionable"


def _is_diff_open(line: str) -> bool:
    stripped = line.lstrip()
    return stripped.startswith(FENCE + "diff") or stripped.startswith(ESCAPED_FENCE + "diff")


def _is_fence(line: str) -> bool:
    stripped = line.lstrip()
    return stripped.startswith(FENCE) or stripped.startswith(ESCAPED_FENCE)


def extract_diff(block: list[str]) -> CodeDiff:
    """Split diff body lines into old (``-``) and new (``+``) text.

    ``---``/``+++`` file headers are skipped. Each side is dedented as a
    block, so ``- let x`` yields ``let x`` while relative indentation is kept.
    """
    old_lines = [line[1:] for line in block if line.startswith("-") and not line.startswith("---")]
    new_lines = [line[1:] for line in block if line.startswith("+") and not line.startswith("+++")]
    return CodeDiff(
        old=textwrap.dedent("\n".join(old_lines)),
        new=textwrap.dedent("\n".join(new_lines)),
    )


class SuggestionParser:
    """Line state machine over one review body.

    State is per instance: the open section and the current file context.
    Use ``parse_review_body`` for one-shot parsing.
    """

    def __init__(self, body: str, lookahead: int = DESCRIPTION_LOOKAHEAD):
        self.lines = body.splitlines() if body else []
        self.lookahead = lookahead
        self.sections: list[ParsedSection] = []
        self.current_section: ParsedSection | None = None
        self.current_file = ""

    def parse(self) -> list[ParsedSection]:
        i = 0
        while i < len(self.lines):
            i = self._step(i)
        return self.sections

    def _step(self, i: int) -> int:
        """Consume the line at ``i`` and return the index of the next line."""
        line = self.lines[i]

        if "<details>" in line:
            # Usually the summary sits on the next line; accept it inline too
            section, consumed = self._match_section(line), 1
            if section is None and i + 1 < len(self.lines):
                section, consumed = self._match_section(self.lines[i + 1]), 2
            if section is not None:
                self.sections.append(section)
                self.current_section = section
                self.current_file = ""
                return i + consumed

        if self.current_section is None:
            return i + 1

        file_match = FILE_RE.search(line)
        if file_match:
            self.current_file = file_match.group(1).strip()
            return i + 1

        item_match = ITEM_RE.match(line.strip())
        if item_match:
            item, next_index = self._read_item(self.current_section, i, item_match.group(1), item_match.group(2))
            self.current_section.items.append(item)
            return next_index

        return i + 1

    def _match_section(self, summary_line: str) -> ParsedSection | None:
        m = SECTION_EMOJI_RE.search(summary_line)
        if m:
            return ParsedSection(
                category=category_for_emoji(m.group(1)),
                title=m.group(2).strip(),
                declared_count=int(m.group(3)),
            )

        m = SECTION_COUNT_RE.search(summary_line)
        if m and "actionable" in m.group(1).lower():
            return ParsedSection(
                category="actionable",
                title=m.group(1).strip(),
                declared_count=int(m.group(2)),
            )

        return None

    def _read_item(self, section: ParsedSection, start: int, line_range: str, title: str) -> tuple[ParsedItem, int]:
        """Collect an item's description and diff from the look-ahead window."""
        description = [title]
        diff: CodeDiff | None = None
        block: list[str] = []
        in_block = False

        end = min(start + 1 + self.lookahead, len(self.lines))
        j = start + 1
        while j < end:
            line = self.lines[j]

            if in_block:
                description.append(line)
                if _is_fence(line):
                    diff = extract_diff(block)
                    j += 1
                    break
                block.append(line)
            elif _is_diff_open(line):
                in_block = True
                block = []
                description.append(line)
            elif line.startswith(STOP_PREFIXES) or ITEM_RE.match(line.strip()):
                break
            elif line.strip() and line.strip() not in NOISE_LINES:
                description.append(line)
            j += 1

        item = ParsedItem(
            file_path=self.current_file or UNKNOWN_FILE,
            line_range=line_range,
            title=title,
            description="\n".join(description),
            severity=SEVERITY_BY_CATEGORY[section.category],
            extracted_diff=diff,
        )
        return item, j


def parse_review_body(body: str | None) -> list[ParsedSection]:
    """Parse a review body into sections of suggestion items."""
    if not body:
        return []
    return SuggestionParser(body).parse()
