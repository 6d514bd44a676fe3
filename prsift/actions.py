"""Templated follow-up commands for review comments.

These are hints only: the strings are meant to be filled in and run by a
human or an agent. Nothing here talks to GitHub.
"""

from .models import ActionCommands, Comment, ThreadAction
from .repo import PullRequestRef

REPLY_PLACEHOLDER = "YOUR_RESPONSE_HERE"


def build_actions(pr: PullRequestRef, comment: Comment) -> ActionCommands:
    """Build reply/view commands and the thread resolution hint for a comment."""
    repo = pr.repo_full_name

    if comment.kind == "review_comment" and comment.file_path:
        reply_command = (
            f"gh api -X POST /repos/{repo}/pulls/{pr.number}/comments/{comment.id}/replies "
            f'-f body="{REPLY_PLACEHOLDER}"'
        )
    else:
        reply_command = f'gh pr comment {pr.number} --repo {repo} --body "{REPLY_PLACEHOLDER}"'

    resolve_thread = None
    if comment.kind == "review_comment" and comment.thread_id:
        resolve_thread = ThreadAction(pr=pr.full_name, thread_id=comment.thread_id)

    first_line = comment.body.split("\n", 1)[0][:80]
    if resolve_thread is not None:
        resolve_condition = f'Resolve ONLY after you have verified the fix for: "{first_line}"'
    else:
        resolve_condition = "This comment has no review thread to resolve"

    return ActionCommands(
        reply_command=reply_command,
        resolve_condition=resolve_condition,
        view_in_browser=f"gh pr view {pr.number} --repo {repo} --web",
        resolve_thread=resolve_thread,
    )
