"""Comment extractors (inline review comments and discussion comments)."""

from ..models import Comment, IssueCommentRecord, ReviewCommentRecord
from .users import author_login, is_bot


def extract_review_comment(comment_data: dict, thread_id: str | None = None) -> Comment:
    """Extract inline code review comment from GitHub API response."""
    record = ReviewCommentRecord.model_validate(comment_data)

    line_end = record.line or record.original_line
    line_start = record.start_line or line_end

    # REST only reports `outdated` on some payloads; otherwise a comment whose
    # anchor left the diff has neither line nor position
    if record.outdated is not None:
        is_outdated = record.outdated
    else:
        is_outdated = record.line is None and record.position is None

    return Comment(
        id=record.id,
        kind="review_comment",
        author=author_login(record.user),
        author_role=record.author_association or "NONE",
        is_automated=is_bot(record.user),
        created_at=record.created_at,
        updated_at=record.updated_at,
        file_path=record.path,
        line_start=line_start,
        line_end=line_end,
        body=record.body or "",
        diff_hunk=record.diff_hunk,
        in_reply_to=record.in_reply_to_id,
        is_outdated=is_outdated,
        reaction_total=record.reactions.total_count if record.reactions else None,
        html_url=record.html_url,
        thread_id=thread_id,
    )


def extract_issue_comment(comment_data: dict) -> Comment:
    """Extract PR-level discussion comment from GitHub API response."""
    record = IssueCommentRecord.model_validate(comment_data)

    return Comment(
        id=record.id,
        kind="issue_comment",
        author=author_login(record.user),
        author_role=record.author_association or "NONE",
        is_automated=is_bot(record.user),
        created_at=record.created_at,
        updated_at=record.updated_at,
        body=record.body or "",
        reaction_total=record.reactions.total_count if record.reactions else None,
        html_url=record.html_url,
    )
