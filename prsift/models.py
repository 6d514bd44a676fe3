"""Pydantic models for GitHub wire records and the unified comment model."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CommentKind = Literal["review_comment", "issue_comment", "review"]
SuggestionCategory = Literal["nit", "duplicate", "additional", "actionable"]
Severity = Literal["low", "medium", "high"]
Topic = Literal["security", "performance", "style", "bug", "general"]
ResolutionState = Literal["unresolved", "acknowledged", "in_progress", "resolved"]
SuggestedAction = Literal["reply", "resolve", "investigate", "ignore"]


# --- GitHub REST records -------------------------------------------------


class UserRecord(BaseModel):
    """``user`` object embedded in comment and review payloads."""
    model_config = ConfigDict(extra="ignore")

    login: str | None = None
    id: int | None = None
    type: str | None = None


class Reactions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_count: int = 0


class ReviewCommentRecord(BaseModel):
    """Inline review comment from ``GET /pulls/{n}/comments``."""
    model_config = ConfigDict(extra="ignore")

    id: int
    user: UserRecord | None = None
    author_association: str | None = None
    body: str | None = None
    path: str | None = None
    line: int | None = None
    start_line: int | None = None
    original_line: int | None = None
    position: int | None = None
    diff_hunk: str | None = None
    in_reply_to_id: int | None = None
    outdated: bool | None = None
    created_at: datetime
    updated_at: datetime
    html_url: str | None = None
    reactions: Reactions | None = None


class IssueCommentRecord(BaseModel):
    """PR-level discussion comment from ``GET /issues/{n}/comments``."""
    model_config = ConfigDict(extra="ignore")

    id: int
    user: UserRecord | None = None
    author_association: str | None = None
    body: str | None = None
    created_at: datetime
    updated_at: datetime
    html_url: str | None = None
    reactions: Reactions | None = None


class ReviewRecord(BaseModel):
    """Review event from ``GET /pulls/{n}/reviews``."""
    model_config = ConfigDict(extra="ignore")

    id: int
    user: UserRecord | None = None
    author_association: str | None = None
    body: str | None = None
    state: str
    submitted_at: datetime | None = None
    html_url: str | None = None


# --- Unified comment model -----------------------------------------------


class CodeDiff(BaseModel):
    """Old/new text pair extracted from a suggestion's diff block."""
    old: str
    new: str


class FileContext(BaseModel):
    path: str
    line_start: int | None = None
    line_end: int | None = None


class SuggestionMetadata(BaseModel):
    """Metadata attached to comments synthesized from review bodies."""
    category: SuggestionCategory
    severity: Severity
    inferred_topic: Topic
    file_context: FileContext
    extracted_diff: CodeDiff | None = None
    generated_prompt: str | None = None
    effort_estimate: str


class StatusIndicators(BaseModel):
    """Computed priority and workflow hints for a comment."""
    priority_score: int = Field(ge=0, le=100)
    needs_remote_action: bool
    has_reply: bool
    is_actionable: bool
    is_outdated: bool
    resolution_state: ResolutionState
    suggested_action: SuggestedAction


class ThreadAction(BaseModel):
    """Hint that a review thread can be resolved remotely."""
    tool: str = "resolve_review_thread"
    pr: str
    thread_id: str


class ActionCommands(BaseModel):
    """Templated follow-up commands for an agent or human."""
    reply_command: str
    resolve_condition: str
    view_in_browser: str
    resolve_thread: ThreadAction | None = None


class Comment(BaseModel):
    """Unified review feedback unit."""
    id: int
    kind: CommentKind
    author: str
    author_role: str = "NONE"
    is_automated: bool = False
    created_at: datetime
    updated_at: datetime
    file_path: str | None = None
    line_start: int | None = None
    line_end: int | None = None
    body: str = ""
    diff_hunk: str | None = None
    in_reply_to: int | None = None
    is_outdated: bool = False
    reaction_total: int | None = Field(default=None, ge=0)
    html_url: str | None = None
    thread_id: str | None = None
    suggestion_metadata: SuggestionMetadata | None = None
    status: StatusIndicators | None = None
    actions: ActionCommands | None = None


class PrioritySummary(BaseModel):
    high_priority: int = 0  # score >= 70
    medium_priority: int = 0  # 30-69
    low_priority: int = 0  # < 30
    needs_remote_action: int = 0
    has_replies: int = 0
    actionable_items: int = 0
    outdated_comments: int = 0


class StatusGroups(BaseModel):
    """Comment ids per resolution state."""
    unresolved: list[int] = Field(default_factory=list)
    acknowledged: list[int] = Field(default_factory=list)
    in_progress: list[int] = Field(default_factory=list)
    resolved: list[int] = Field(default_factory=list)


class Summary(BaseModel):
    comments_in_page: int
    by_author: dict[str, int]
    by_type: dict[str, int]
    bot_comments: int
    human_comments: int
    with_reactions: int
    priority_summary: PrioritySummary | None = None
    status_groups: StatusGroups | None = None


class UnresolvedPage(BaseModel):
    """One page of unresolved feedback."""
    pr: str
    unresolved_in_page: int
    comments: list[Comment]
    next_cursor: str | None = None
    summary: Summary
