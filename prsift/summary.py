"""Summary counters for one page of comments."""

from collections import Counter

from .models import Comment, PrioritySummary, StatusGroups, Summary

HIGH_PRIORITY = 70
MEDIUM_PRIORITY = 30


def build_summary(
    comments: list[Comment],
    include_status_indicators: bool = True,
    priority_ordering: bool = True,
) -> Summary:
    """Aggregate author/type histograms, bot counts and priority buckets.

    ``priority_summary`` is only present when status indicators are on, and
    ``status_groups`` only when priority ordering is on as well.
    """
    by_author = Counter(c.author for c in comments)
    by_type = Counter(c.kind for c in comments)
    bot_count = sum(1 for c in comments if c.is_automated)
    with_reactions = sum(1 for c in comments if c.reaction_total)

    priority = PrioritySummary()
    groups = StatusGroups()

    for comment in comments:
        status = comment.status
        if status is None:
            continue

        if status.priority_score >= HIGH_PRIORITY:
            priority.high_priority += 1
        elif status.priority_score >= MEDIUM_PRIORITY:
            priority.medium_priority += 1
        else:
            priority.low_priority += 1

        priority.needs_remote_action += status.needs_remote_action
        priority.has_replies += status.has_reply
        priority.actionable_items += status.is_actionable
        priority.outdated_comments += status.is_outdated

        getattr(groups, status.resolution_state).append(comment.id)

    return Summary(
        comments_in_page=len(comments),
        by_author=dict(by_author),
        by_type=dict(by_type),
        bot_comments=bot_count,
        human_comments=len(comments) - bot_count,
        with_reactions=with_reactions,
        priority_summary=priority if include_status_indicators else None,
        status_groups=groups if include_status_indicators and priority_ordering else None,
    )
