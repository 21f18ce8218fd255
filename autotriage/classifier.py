"""Combine label age and activity age into a single staleness verdict."""

import logging
from datetime import datetime, timedelta, timezone

from autotriage.errors import LabelHistoryError
from autotriage.models import IssueCandidate, StalenessVerdict
from autotriage.timeline import timeline_label_age

log = logging.getLogger(__name__)


def _months(age: timedelta) -> int:
    return age.days // 30


def excluded_label(issue: IssueCandidate, marker: str | None) -> str | None:
    """Return the first label containing ``marker`` (case-insensitive), if any."""
    if not marker:
        return None
    needle = marker.lower()
    for name in issue.labels:
        if needle in name.lower():
            return name
    return None


def activity_age(issue: IssueCandidate, now: datetime) -> timedelta:
    """Time since the most recent comment, or since creation if nobody commented."""
    last_activity_at = max((c.created_at for c in issue.comments), default=issue.created_at)
    return now - last_activity_at


def classify(
    issue: IssueCandidate,
    target_label: str,
    minimum_age: timedelta,
    exclude_if_label_contains: str | None,
    now: datetime | None = None,
) -> StalenessVerdict:
    """Decide how far ``issue`` is from being eligible for closure.

    Both signals must clear ``minimum_age`` on their own, so the younger of
    the two is binding. Label history errors propagate to the caller unless
    activity alone already rules the issue out, in which case the verdict
    carries no label age and a lower bound on the wait.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    activity = activity_age(issue, now)

    marker_label = excluded_label(issue, exclude_if_label_contains)
    if marker_label is not None:
        log.info("%s carries %r. Excluded.", issue.url, marker_label)
        return StalenessVerdict(
            number=issue.number,
            url=issue.url,
            title=issue.title,
            activity_age=activity,
            excluded_by=marker_label,
        )

    if activity < minimum_age:
        log.debug(
            "%s commented less than %d months ago, namely %d months ago. No action.",
            issue.url,
            _months(minimum_age),
            _months(activity),
        )
        try:
            label = timeline_label_age(issue, target_label, now)
        except LabelHistoryError as exc:
            # Activity alone already vetoes closure; the wait is at least this long
            log.debug("%s label history unavailable: %s", issue.url, exc)
            return StalenessVerdict(
                number=issue.number,
                url=issue.url,
                title=issue.title,
                activity_age=activity,
                time_until_eligible=minimum_age - activity,
            )
    else:
        label = timeline_label_age(issue, target_label, now)

    if label < minimum_age:
        log.debug(
            "%s labeled %s less than %d months ago, namely %d months ago. No action.",
            issue.url,
            target_label,
            _months(minimum_age),
            _months(label),
        )

    return StalenessVerdict(
        number=issue.number,
        url=issue.url,
        title=issue.title,
        activity_age=activity,
        label_age=label,
        time_until_eligible=minimum_age - min(label, activity),
    )
