"""Factory helpers for GitHub wire records and unified comments."""

from datetime import UTC, datetime, timedelta

from prsift.models import Comment, FileContext, StatusIndicators, SuggestionMetadata

BASE_TIME = datetime(2025, 1, 11, 10, 0, tzinfo=UTC)


def make_user(**overrides) -> dict:
    base = {"id": 12345, "login": "octocat", "type": "User"}
    base.update(overrides)
    return base


def make_review_comment_data(**overrides) -> dict:
    base = {
        "id": 333,
        "user": make_user(),
        "author_association": "MEMBER",
        "body": "Consider refactoring",
        "path": "src/main.py",
        "line": 42,
        "start_line": None,
        "original_line": 42,
        "position": 5,
        "diff_hunk": "@@ -40,3 +40,3 @@",
        "in_reply_to_id": None,
        "created_at": "2025-01-11T10:00:00Z",
        "updated_at": "2025-01-11T10:00:00Z",
        "html_url": "https://github.com/acme/widgets/pull/7#discussion_r333",
        "reactions": {"total_count": 0},
    }
    base.update(overrides)
    return base


def make_issue_comment_data(**overrides) -> dict:
    base = {
        "id": 222,
        "user": make_user(),
        "author_association": "CONTRIBUTOR",
        "body": "Great work!",
        "created_at": "2025-01-11T10:00:00Z",
        "updated_at": "2025-01-11T10:00:00Z",
        "html_url": "https://github.com/acme/widgets/pull/7#issuecomment-222",
        "reactions": {"total_count": 3},
    }
    base.update(overrides)
    return base


def make_review_data(**overrides) -> dict:
    base = {
        "id": 111,
        "user": make_user(login="coderabbitai[bot]", type="Bot"),
        "author_association": "NONE",
        "state": "COMMENTED",
        "body": "",
        "submitted_at": "2025-01-11T09:00:00Z",
        "html_url": "https://github.com/acme/widgets/pull/7#pullrequestreview-111",
    }
    base.update(overrides)
    return base


def make_comment(**overrides) -> Comment:
    """Unified Comment with sensible defaults; ``minutes`` offsets created_at."""
    minutes = overrides.pop("minutes", 0)
    created = BASE_TIME + timedelta(minutes=minutes)
    base = {
        "id": 1,
        "kind": "issue_comment",
        "author": "octocat",
        "created_at": created,
        "updated_at": created,
        "body": "Looks fine",
    }
    base.update(overrides)
    return Comment(**base)


def make_suggestion(category: str = "nit", severity: str = "low", **overrides) -> Comment:
    path = overrides.pop("file_path", "src/a.ts")
    metadata = SuggestionMetadata(
        category=category,
        severity=severity,
        inferred_topic="general",
        file_context=FileContext(path=path, line_start=1, line_end=1),
        effort_estimate="Quick fix (1-2 minutes)",
    )
    overrides.setdefault("kind", "review")
    overrides.setdefault("is_automated", True)
    overrides.setdefault("author", "coderabbitai[bot]")
    return make_comment(file_path=path, suggestion_metadata=metadata, **overrides)


def make_status(score: int = 50, **overrides) -> StatusIndicators:
    base = {
        "priority_score": score,
        "needs_remote_action": False,
        "has_reply": False,
        "is_actionable": False,
        "is_outdated": False,
        "resolution_state": "unresolved",
        "suggested_action": "investigate",
    }
    base.update(overrides)
    return StatusIndicators(**base)


NIT_REVIEW_BODY = """**Actionable comments posted: 1**

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
<details>
<summary>src/b.ts (1)</summary><blockquote>

`3`: **Rename variable for style consistency**

The name does not follow the lint rules.

</blockquote></details>

</blockquote></details>
"""
