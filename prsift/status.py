"""Status indicators: priority score, resolution state and suggested action."""

from __future__ import annotations

from .models import Comment, ResolutionState, StatusIndicators, SuggestedAction

SEVERITY_POINTS = {"high": 40, "medium": 25, "low": 10}
CATEGORY_POINTS = {"actionable": 30, "additional": 20, "nit": 5, "duplicate": 0}
AUTOMATED_ACTION_POINTS = 20
ACTIONABLE_POINTS = 15
REPLY_PENALTY = 10
OUTDATED_PENALTY = 20

ACTIONABLE_KEYWORDS = ("fix", "suggest", "change")


def has_reply(comment: Comment, candidates: list[Comment]) -> bool:
    """Check if any other comment replies to this one."""
    return any(c.in_reply_to == comment.id and c.id != comment.id for c in candidates)


def is_actionable(comment: Comment) -> bool:
    """Actionable suggestion category, or body asking for a change."""
    if comment.suggestion_metadata and comment.suggestion_metadata.category == "actionable":
        return True
    body = comment.body.lower()
    return any(keyword in body for keyword in ACTIONABLE_KEYWORDS)


def priority_score(
    comment: Comment,
    actionable: bool,
    replied: bool,
    needs_remote_action: bool,
) -> int:
    """Compute the 0-100 priority score."""
    score = 0

    metadata = comment.suggestion_metadata
    if metadata is not None:
        score += SEVERITY_POINTS.get(metadata.severity, 0)
        score += CATEGORY_POINTS.get(metadata.category, 0)

    if comment.is_automated and needs_remote_action:
        score += AUTOMATED_ACTION_POINTS
    if actionable:
        score += ACTIONABLE_POINTS
    if replied:
        score -= REPLY_PENALTY
    if comment.is_outdated:
        score -= OUTDATED_PENALTY

    return min(100, max(0, score))


def calculate_status(comment: Comment, candidates: list[Comment]) -> StatusIndicators:
    """Calculate status indicators for a comment.

    ``candidates`` is the full comment list for the page, used to detect
    replies.
    """
    # A known review thread means the comment can be resolved remotely
    needs_remote_action = comment.thread_id is not None
    replied = has_reply(comment, candidates)
    actionable = is_actionable(comment)
    score = priority_score(comment, actionable, replied, needs_remote_action)

    resolution_state: ResolutionState
    if replied and actionable:
        resolution_state = "in_progress"
    elif replied:
        resolution_state = "acknowledged"
    else:
        resolution_state = "unresolved"

    suggested_action: SuggestedAction
    if needs_remote_action and not replied:
        suggested_action = "resolve"
    elif actionable and not replied:
        suggested_action = "reply"
    elif score < 30:
        suggested_action = "ignore"
    else:
        suggested_action = "investigate"

    return StatusIndicators(
        priority_score=score,
        needs_remote_action=needs_remote_action,
        has_reply=replied,
        is_actionable=actionable,
        is_outdated=comment.is_outdated,
        resolution_state=resolution_state,
        suggested_action=suggested_action,
    )


def apply_status(comments: list[Comment]) -> list[Comment]:
    """Return copies of the comments with status indicators attached."""
    return [c.model_copy(update={"status": calculate_status(c, comments)}) for c in comments]
