"""Filter, sort and group stages applied to one page of comments.

Filters are an ordered list of predicates; each stage sees the output of the
previous one. Sorting strategies are selected by name and rely on Python's
stable sort for ties.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from .models import Comment, StatusIndicators
from .threads import ThreadIndex

logger = logging.getLogger(__name__)

Predicate = Callable[[Comment], bool]

SUGGESTION_CATEGORIES = ("nit", "duplicate", "additional", "actionable")
CATEGORY_ORDER = {"actionable": 0, "nit": 1, "duplicate": 2, "additional": 3, "other": 4}


class SortStrategy(Enum):
    CHRONOLOGICAL = "chronological"
    BY_FILE = "by_file"
    BY_AUTHOR = "by_author"
    PRIORITY = "priority"


@dataclass
class SuggestionOptions:
    """Which synthesized suggestion categories to surface, and how."""

    include_nits: bool = True
    include_duplicates: bool = True
    include_additional: bool = True
    categories: list[str] | None = None  # Allow-list; None means all
    prioritize_actionable: bool = False
    group_by_type: bool = False
    extract_prompts: bool = True

    def allows(self, category: str) -> bool:
        """Check if a suggestion category passes the options.

        Actionable suggestions are never excluded.
        """
        if category == "actionable":
            return True
        if self.categories is not None and category not in self.categories:
            return False
        if category == "nit":
            return self.include_nits
        if category == "duplicate":
            return self.include_duplicates
        if category == "additional":
            return self.include_additional
        return True


@dataclass
class FilterOptions:
    include_bots: bool = True
    exclude_authors: list[str] = field(default_factory=list)
    suggestions: SuggestionOptions = field(default_factory=SuggestionOptions)


# --- Filters ----------------------------------------------------------------


def not_in_resolved_thread(threads: ThreadIndex) -> Predicate:
    """Drop inline comments whose review thread is resolved."""

    def predicate(comment: Comment) -> bool:
        if comment.kind != "review_comment":
            return True
        return not threads.is_resolved(comment.id)

    return predicate


def is_thread_starter(comment: Comment) -> bool:
    """Replies are never surfaced, only the comment that opened a thread."""
    return comment.in_reply_to is None


def bots_allowed(include_bots: bool) -> Predicate:
    def predicate(comment: Comment) -> bool:
        return include_bots or not comment.is_automated

    return predicate


def author_not_excluded(exclude_authors: Iterable[str]) -> Predicate:
    excluded = frozenset(exclude_authors)

    def predicate(comment: Comment) -> bool:
        return comment.author not in excluded

    return predicate


def suggestion_category_allowed(options: SuggestionOptions) -> Predicate:
    def predicate(comment: Comment) -> bool:
        if comment.suggestion_metadata is None:
            return True
        return options.allows(comment.suggestion_metadata.category)

    return predicate


def build_filters(options: FilterOptions, threads: ThreadIndex) -> list[Predicate]:
    """Filter stages in application order."""
    return [
        not_in_resolved_thread(threads),
        is_thread_starter,
        bots_allowed(options.include_bots),
        author_not_excluded(options.exclude_authors),
        suggestion_category_allowed(options.suggestions),
    ]


def filter_comments(
    comments: list[Comment],
    options: FilterOptions,
    threads: ThreadIndex | None = None,
) -> list[Comment]:
    """Apply every filter stage in order."""
    filtered = list(comments)
    for predicate in build_filters(options, threads or ThreadIndex()):
        filtered = [c for c in filtered if predicate(c)]
    logger.debug(f"Filtered {len(comments)} comments down to {len(filtered)}")
    return filtered


# --- Sorting ----------------------------------------------------------------


def _timestamp(comment: Comment) -> float:
    return comment.created_at.timestamp()


def _priority_key(entry: tuple[Comment, StatusIndicators]) -> tuple[int, int, float]:
    # Score desc, then needs-remote-action first, then newest first
    comment, status = entry
    return (-status.priority_score, -int(status.needs_remote_action), -_timestamp(comment))


def sort_comments(
    comments: list[Comment],
    strategy: SortStrategy | str = SortStrategy.PRIORITY,
    priority_ordering: bool = True,
) -> list[Comment]:
    """Return comments ordered by the given strategy.

    ``priority`` silently degrades to ``chronological`` when priority
    ordering is off or any comment lacks status indicators.
    """
    strategy = SortStrategy(strategy)

    if strategy is SortStrategy.PRIORITY:
        scored = [(c, c.status) for c in comments if c.status is not None]
        if priority_ordering and len(scored) == len(comments):
            return [c for c, _ in sorted(scored, key=_priority_key)]
        strategy = SortStrategy.CHRONOLOGICAL

    if strategy is SortStrategy.CHRONOLOGICAL:
        return sorted(comments, key=_timestamp)
    if strategy is SortStrategy.BY_FILE:
        return sorted(comments, key=lambda c: c.file_path or "")
    return sorted(comments, key=lambda c: c.author)


def _category(comment: Comment) -> str:
    if comment.suggestion_metadata is None:
        return "other"
    return comment.suggestion_metadata.category


def prioritize_actionable(comments: list[Comment]) -> list[Comment]:
    """Move actionable suggestions to the front, keeping relative order."""
    return sorted(comments, key=lambda c: 0 if _category(c) == "actionable" else 1)


def group_by_category(comments: list[Comment]) -> list[Comment]:
    """Group by suggestion category, ordered by file path within a group."""
    return sorted(comments, key=lambda c: (CATEGORY_ORDER.get(_category(c), 4), c.file_path or ""))


def apply_pipeline(
    comments: list[Comment],
    options: FilterOptions,
    threads: ThreadIndex | None = None,
    strategy: SortStrategy | str = SortStrategy.PRIORITY,
    priority_ordering: bool = True,
) -> list[Comment]:
    """Filter, sort, then optionally reorder by suggestion category."""
    result = filter_comments(comments, options, threads)
    result = sort_comments(result, strategy, priority_ordering)

    if options.suggestions.prioritize_actionable:
        result = prioritize_actionable(result)
    if options.suggestions.group_by_type:
        result = group_by_category(result)

    return result
