"""Aggregation of unresolved review feedback for one page of a pull request.

Fetches inline comments, discussion comments and reviews concurrently,
resolves review threads, parses review bodies into suggestions, scores,
filters and sorts the result, and emits the cursor for the next page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import trio

from .actions import build_actions
from .config import DEFAULT_PAGE_SIZE
from .errors import RemoteFetchError
from .extractors.comments import extract_issue_comment, extract_review_comment
from .extractors.reviews import SyntheticIds, extract_review_suggestions
from .github_client import GitHubClient, SourcePage
from .models import Comment, UnresolvedPage
from .pagination import SourcePagination, next_cursor, page_to_source_pagination
from .pipeline import FilterOptions, SortStrategy, SuggestionOptions, apply_pipeline
from .repo import PullRequestRef
from .review_config import ReviewConfig
from .status import apply_status
from .summary import build_summary
from .threads import resolve_threads

logger = logging.getLogger(__name__)


@dataclass
class FindOptions:
    """Options for one find_unresolved_comments call."""

    cursor: str | None = None
    include_bots: bool = True
    exclude_authors: list[str] = field(default_factory=list)
    sort: SortStrategy = SortStrategy.PRIORITY
    parse_review_bodies: bool = True
    include_status_indicators: bool = True
    priority_ordering: bool = True
    suggestions: SuggestionOptions = field(default_factory=SuggestionOptions)
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_config(cls, config: ReviewConfig, **overrides) -> FindOptions:
        """Build options from prsift.yaml defaults, then apply overrides."""
        options = cls(
            include_bots=config.include_bots,
            exclude_authors=list(config.exclude_authors),
            sort=config.sort,
            parse_review_bodies=config.parse_review_bodies,
            include_status_indicators=config.include_status_indicators,
            priority_ordering=config.priority_ordering,
            suggestions=config.suggestions,
        )
        for name, value in overrides.items():
            if not hasattr(options, name):
                raise TypeError(f"Unknown option: {name}")
            setattr(options, name, value)
        return options

    def filter_options(self) -> FilterOptions:
        return FilterOptions(
            include_bots=self.include_bots,
            exclude_authors=self.exclude_authors,
            suggestions=self.suggestions,
        )


@dataclass
class SourceData:
    """Raw records from the three sources for one page."""

    review_comments: SourcePage
    issue_comments: SourcePage
    reviews: SourcePage

    @property
    def has_more(self) -> bool:
        return self.review_comments.has_next or self.issue_comments.has_next or self.reviews.has_next


async def fetch_sources(
    client: GitHubClient,
    pr: PullRequestRef,
    pagination: SourcePagination,
    include_reviews: bool = True,
) -> SourceData:
    """Fetch one page from each source concurrently.

    The first failure cancels the remaining fetches and is re-raised.
    """
    empty = SourcePage(items=[], has_next=False)
    results: dict[str, SourcePage] = {"reviews": empty}
    errors: list[RemoteFetchError] = []

    async def fetch(name: str, method, nursery: trio.Nursery) -> None:
        try:
            results[name] = await method(pr, pagination.page, pagination.per_page)
        except RemoteFetchError as e:
            errors.append(e)
            nursery.cancel_scope.cancel()

    async with trio.open_nursery() as nursery:
        nursery.start_soon(fetch, "review_comments", client.list_review_comments, nursery)
        nursery.start_soon(fetch, "issue_comments", client.list_issue_comments, nursery)
        if include_reviews:
            nursery.start_soon(fetch, "reviews", client.list_reviews, nursery)

    if errors:
        raise errors[0]

    return SourceData(
        review_comments=results["review_comments"],
        issue_comments=results["issue_comments"],
        reviews=results["reviews"],
    )


def _with_actions(pr: PullRequestRef, comments: list[Comment]) -> list[Comment]:
    return [c.model_copy(update={"actions": build_actions(pr, c)}) for c in comments]


async def find_unresolved_comments(
    client: GitHubClient,
    pr: PullRequestRef,
    options: FindOptions | None = None,
) -> UnresolvedPage:
    """Find unresolved review feedback for one page of a pull request.

    Raises InvalidCursor for a bad cursor and RemoteFetchError when any
    source fetch fails. Thread resolution failures are not raised; affected
    comments simply stay unresolved.
    """
    options = options or FindOptions()
    pagination = page_to_source_pagination(options.cursor, options.page_size)

    sources = await fetch_sources(client, pr, pagination, include_reviews=options.parse_review_bodies)

    inline_ids = [item["id"] for item in sources.review_comments.items]
    threads = await resolve_threads(client, pr, inline_ids)

    ids = SyntheticIds()
    synthesized = [
        comment
        for review in sources.reviews.items
        for comment in extract_review_suggestions(review, ids, options.suggestions.extract_prompts)
    ]
    inline = [extract_review_comment(item, thread_id=threads.thread_for(item["id"])) for item in sources.review_comments.items]
    discussion = [extract_issue_comment(item) for item in sources.issue_comments.items]

    candidates = _with_actions(pr, synthesized + inline + discussion)
    if options.include_status_indicators:
        candidates = apply_status(candidates)

    comments = apply_pipeline(
        candidates,
        options.filter_options(),
        threads,
        options.sort,
        options.priority_ordering and options.include_status_indicators,
    )

    cursor = next_cursor(options.cursor, pagination.per_page, sources.has_more)
    logger.debug(
        f"{pr.full_name} page {pagination.page}: {len(inline)} inline, {len(discussion)} discussion, "
        f"{len(synthesized)} suggestions -> {len(comments)} unresolved, has_more={sources.has_more}"
    )

    return UnresolvedPage(
        pr=pr.full_name,
        unresolved_in_page=len(comments),
        comments=comments,
        next_cursor=cursor,
        summary=build_summary(comments, options.include_status_indicators, options.priority_ordering),
    )
