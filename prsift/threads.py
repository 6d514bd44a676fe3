"""Review thread resolution via the GitHub GraphQL API.

Maps inline review comment ids to their review thread node ids and records
which threads are resolved. The lookup fails open: any query failure is
logged and yields an empty index, so comments stay classified as unresolved.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

from .config import COMMENT_WINDOW, THREAD_WINDOW
from .errors import GraphQueryFailure

if TYPE_CHECKING:
    from .github_client import GitHubClient
    from .repo import PullRequestRef

logger = logging.getLogger(__name__)

REVIEW_THREADS_QUERY = """
query($owner: String!, $repo: String!, $pr: Int!, $threads: Int!, $comments: Int!) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $pr) {
      reviewThreads(first: $threads) {
        nodes {
          id
          isResolved
          comments(first: $comments) {
            nodes {
              databaseId
            }
          }
        }
      }
    }
  }
}
"""


# GraphQL response shape: repository.pullRequest.reviewThreads.nodes[]


class _CommentNode(BaseModel):
    databaseId: int | None = None


class _CommentConnection(BaseModel):
    nodes: list[_CommentNode] = Field(default_factory=list)


class _ThreadNode(BaseModel):
    id: str
    isResolved: bool
    comments: _CommentConnection = Field(default_factory=_CommentConnection)


class _ThreadConnection(BaseModel):
    nodes: list[_ThreadNode] = Field(default_factory=list)


class _PullRequestNode(BaseModel):
    reviewThreads: _ThreadConnection = Field(default_factory=_ThreadConnection)


class _RepositoryNode(BaseModel):
    pullRequest: _PullRequestNode | None = None


class _ReviewThreadsResponse(BaseModel):
    repository: _RepositoryNode | None = None


@dataclass
class ReviewThread:
    thread_id: str
    is_resolved: bool
    comment_ids: list[int] = field(default_factory=list)


@dataclass
class ThreadIndex:
    """Comment-to-thread mapping for one page of inline comments."""

    comment_threads: dict[int, str] = field(default_factory=dict)
    resolved_thread_ids: set[str] = field(default_factory=set)

    def thread_for(self, comment_id: int) -> str | None:
        return self.comment_threads.get(comment_id)

    def is_resolved(self, comment_id: int) -> bool:
        thread_id = self.comment_threads.get(comment_id)
        return thread_id is not None and thread_id in self.resolved_thread_ids


def parse_review_threads(data: dict) -> list[ReviewThread]:
    """Parse the GraphQL ``data`` payload into review threads.

    Raises GraphQueryFailure when the payload does not have the expected shape.
    """
    try:
        response = _ReviewThreadsResponse.model_validate(data or {})
    except ValidationError as e:
        raise GraphQueryFailure(f"Unexpected review thread payload: {e}") from e

    if response.repository is None or response.repository.pullRequest is None:
        return []

    return [
        ReviewThread(
            thread_id=node.id,
            is_resolved=node.isResolved,
            comment_ids=[c.databaseId for c in node.comments.nodes if c.databaseId],
        )
        for node in response.repository.pullRequest.reviewThreads.nodes
    ]


def build_thread_index(threads: list[ReviewThread], comment_ids: Iterable[int]) -> ThreadIndex:
    """Index threads, keeping only mappings for the requested comment ids."""
    wanted = set(comment_ids)
    index = ThreadIndex()

    for thread in threads:
        if thread.is_resolved:
            index.resolved_thread_ids.add(thread.thread_id)
        for comment_id in thread.comment_ids:
            if comment_id in wanted:
                index.comment_threads[comment_id] = thread.thread_id

    return index


async def resolve_threads(
    client: GitHubClient,
    pr: PullRequestRef,
    comment_ids: list[int],
) -> ThreadIndex:
    """Look up review threads for the given inline comment ids.

    No request is made for an empty id list.
    """
    if not comment_ids:
        return ThreadIndex()

    variables = {
        "owner": pr.owner,
        "repo": pr.repo,
        "pr": pr.number,
        "threads": THREAD_WINDOW,
        "comments": COMMENT_WINDOW,
    }

    try:
        data = await client.graphql(REVIEW_THREADS_QUERY, variables)
        threads = parse_review_threads(data)
    except GraphQueryFailure as e:
        logger.warning(f"Failed to fetch review threads for {pr.full_name}: {e}")
        return ThreadIndex()

    index = build_thread_index(threads, comment_ids)
    logger.debug(
        f"{pr.full_name}: {len(threads)} threads, {len(index.comment_threads)} comments mapped, "
        f"{len(index.resolved_thread_ids)} resolved"
    )
    return index
