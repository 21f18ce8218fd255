"""Reconstruct when a label was last applied from an issue's timeline."""

from collections.abc import Iterable
from datetime import datetime, timedelta

from autotriage.errors import LabelHistoryInconsistent, LabelHistoryTruncated
from autotriage.models import IssueCandidate, LabelApplied, TimelineEvent


def label_age(
    events: Iterable[TimelineEvent],
    target_label: str,
    now: datetime,
    *,
    truncated: bool = False,
) -> timedelta:
    """Return how long ago ``target_label`` was most recently applied.

    ``events`` must be ordered oldest first; the query guarantees this and we
    never re-sort. The caller's query only returns issues that currently carry
    the label, so there is no trailing removal to look for and the last
    matching LabelApplied is the answer, even across remove/re-apply cycles.

    Raises LabelHistoryTruncated when the window did not hold the whole
    history, and LabelHistoryInconsistent when a complete history never
    applied the label.
    """
    if truncated:
        raise LabelHistoryTruncated("timeline has more label events than one window holds")

    last_applied_at: datetime | None = None
    for event in events:
        if isinstance(event, LabelApplied) and event.label == target_label:
            last_applied_at = event.created_at

    if last_applied_at is None:
        raise LabelHistoryInconsistent(f"no LabeledEvent for {target_label!r} although the issue carries it")
    return now - last_applied_at


def timeline_label_age(issue: IssueCandidate, target_label: str, now: datetime) -> timedelta:
    """label_age() for a fetched issue, tagging errors with the issue's URL."""
    timeline = issue.timeline
    if timeline is None:
        raise LabelHistoryInconsistent("issue has no timeline", url=issue.url, number=issue.number)
    try:
        return label_age(timeline.events, target_label, now, truncated=timeline.truncated)
    except LabelHistoryTruncated as exc:
        detail = f"{exc} ({timeline.total_count} events)"
        raise LabelHistoryTruncated(detail, url=issue.url, number=issue.number) from None
    except LabelHistoryInconsistent as exc:
        raise LabelHistoryInconsistent(str(exc), url=issue.url, number=issue.number) from None
