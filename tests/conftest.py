"""Shared test fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from autotriage.models import Comment, IssueCandidate, LabelApplied, PageInfo, Timeline

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
LABEL = "E-needs-mcve"


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def make_issue(
    number: int = 1,
    *,
    created_days_ago: float = 400,
    labeled_days_ago: list[float] | None = None,
    comment_days_ago: list[float] | None = None,
    labels: list[str] | None = None,
    truncated: bool = False,
) -> IssueCandidate:
    labeled = [200] if labeled_days_ago is None else labeled_days_ago
    events = [LabelApplied(label=LABEL, created_at=days_ago(d)) for d in sorted(labeled, reverse=True)]
    return IssueCandidate(
        number=number,
        url=f"https://github.com/rust-lang/rust/issues/{number}",
        title=f"Issue {number}",
        created_at=days_ago(created_days_ago),
        labels=labels or [LABEL],
        comments=[Comment(author="alice", created_at=days_ago(d)) for d in comment_days_ago or []],
        timeline=Timeline(
            total_count=len(events),
            page_info=PageInfo(has_next_page=truncated, end_cursor="Y3Vyc29y" if truncated else None),
            events=events,
        ),
    )


def issue_node(
    number: int,
    *,
    created_at: str = "2023-01-01T00:00:00Z",
    labeled_at: str | None = "2023-01-02T00:00:00Z",
    comment_at: str | None = None,
    extra_labels: list[str] | None = None,
    timeline_has_next: bool = False,
) -> dict:
    """A raw issue node as returned by the GitHub GraphQL API."""
    events = []
    if labeled_at:
        events.append({"__typename": "LabeledEvent", "label": {"name": LABEL}, "createdAt": labeled_at})
    return {
        "number": number,
        "url": f"https://github.com/rust-lang/rust/issues/{number}",
        "title": f"Issue {number}",
        "createdAt": created_at,
        "labels": {"nodes": [{"name": LABEL}] + [{"name": n} for n in extra_labels or []]},
        "comments": {"nodes": [{"author": {"login": "bob"}, "createdAt": comment_at}] if comment_at else []},
        "timelineItems": {
            "totalCount": len(events),
            "pageInfo": {"hasNextPage": timeline_has_next, "endCursor": "abc" if timeline_has_next else None},
            "nodes": events,
        },
    }


def issues_page(nodes: list[dict], *, cursor: str | None = None, remaining: int = 4999) -> dict:
    return {
        "data": {
            "rateLimit": {"limit": 5000, "cost": 1, "remaining": remaining, "resetAt": "2024-06-01T13:00:00Z"},
            "repository": {
                "issues": {
                    "totalCount": len(nodes),
                    "pageInfo": {"hasNextPage": cursor is not None, "endCursor": cursor},
                    "nodes": nodes,
                }
            },
        }
    }


@pytest.fixture
def now() -> datetime:
    return NOW
