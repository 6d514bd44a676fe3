"""Review body extractor: turns parsed suggestion items into comments."""

from __future__ import annotations

import itertools
import logging

from ..models import Comment, FileContext, ReviewRecord, SuggestionMetadata, Topic
from ..parser import ParsedItem, parse_review_body
from .users import author_login, is_bot

logger = logging.getLogger(__name__)

# Checked in order; first topic with a matching keyword wins
TOPIC_KEYWORDS: list[tuple[Topic, tuple[str, ...]]] = [
    ("security", ("security", "vulnerability")),
    ("performance", ("performance", "slow", "optimize")),
    ("style", ("style", "format", "lint")),
    ("bug", ("error", "exception", "bug")),
]

EFFORT_QUICK = "Quick fix (1-2 minutes)"
EFFORT_MEDIUM = "Medium effort (2-5 minutes)"


class SyntheticIds:
    """Negative id sequence for comments synthesized during one request.

    Real GitHub ids are positive, so -1, -2, ... never collide with them.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(-1, -1)

    def next_id(self) -> int:
        return next(self._counter)


def parse_line_range(line_range: str | None) -> tuple[int | None, int | None]:
    """Parse "42" or "42-45" into (start, end).

    Both are None unless they are positive integers with end >= start.
    """
    if not line_range:
        return None, None

    start_text, _, end_text = line_range.strip().partition("-")
    try:
        start = int(start_text)
        end = int(end_text) if end_text else start
    except ValueError:
        return None, None

    if start < 1 or end < start:
        return None, None
    return start, end


def infer_topic(text: str) -> Topic:
    """Infer a topic from keywords in a suggestion description."""
    lowered = text.lower()
    for topic, keywords in TOPIC_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return topic
    return "general"


def generate_prompt(item: ParsedItem, category: str) -> str:
    """Build an agent-friendly prompt describing one suggestion."""
    location = f"{item.file_path}:{item.line_range}"
    priority = item.severity.capitalize()

    if item.extracted_diff is not None:
        return (
            f"CodeRabbit {category} suggestion for {location}\n\n"
            f"Current code:\n```\n{item.extracted_diff.old}\n```\n\n"
            f"Suggested change:\n```\n{item.extracted_diff.new}\n```\n\n"
            f"Context: {item.description}\n"
            f"Priority: {priority}"
        )

    return (
        f"CodeRabbit {category} suggestion for {location}\n\n"
        f"Description: {item.description}\n"
        f"Priority: {priority}"
    )


def extract_review_suggestions(
    review_data: dict,
    ids: SyntheticIds,
    extract_prompts: bool = True,
) -> list[Comment]:
    """Extract synthesized suggestion comments from one review body.

    Pending reviews and reviews without a body produce nothing.
    """
    review = ReviewRecord.model_validate(review_data)
    if not review.body or review.state == "PENDING":
        return []
    if review.submitted_at is None:
        logger.debug(f"Skipping review {review.id} without submitted_at")
        return []

    author = author_login(review.user)
    automated = is_bot(review.user)

    comments = []
    for section in parse_review_body(review.body):
        for item in section.items:
            line_start, line_end = parse_line_range(item.line_range)
            metadata = SuggestionMetadata(
                category=section.category,
                severity=item.severity,
                inferred_topic=infer_topic(item.description),
                file_context=FileContext(path=item.file_path, line_start=line_start, line_end=line_end),
                extracted_diff=item.extracted_diff,
                generated_prompt=generate_prompt(item, section.category) if extract_prompts else None,
                effort_estimate=EFFORT_QUICK if section.category == "nit" else EFFORT_MEDIUM,
            )
            comments.append(
                Comment(
                    id=ids.next_id(),
                    kind="review",
                    author=author,
                    author_role=review.author_association or "NONE",
                    is_automated=automated,
                    created_at=review.submitted_at,
                    updated_at=review.submitted_at,
                    file_path=item.file_path,
                    line_start=line_start,
                    line_end=line_end,
                    body=item.description,
                    html_url=review.html_url,
                    suggestion_metadata=metadata,
                )
            )

    if comments:
        logger.debug(f"Review {review.id} by {author}: {len(comments)} suggestions")
    return comments
