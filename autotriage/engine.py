"""Run one triage pass: fetch, classify, rank, hand off."""

import logging
from datetime import datetime, timedelta, timezone

from autotriage.classifier import classify
from autotriage.errors import LabelHistoryError
from autotriage.models import SkippedIssue, StalenessVerdict, TriageReport
from autotriage.paginator import MAX_PAGES, MIN_RATE_LIMIT_REMAINING, PAGE_SIZE, fetch_issues
from autotriage.providers.base import GraphQLTransport, IssueActions
from autotriage.providers.dry_run import DryRunActions
from autotriage.ranker import dispatch, report

log = logging.getLogger(__name__)


def triage_old_label(
    client: GraphQLTransport,
    owner: str,
    repo: str,
    label: str,
    minimum_age: timedelta,
    *,
    exclude: str | None = "triaged",
    actions: IssueActions | None = None,
    now: datetime | None = None,
    page_size: int = PAGE_SIZE,
    max_pages: int = MAX_PAGES,
    min_remaining: int = MIN_RATE_LIMIT_REMAINING,
) -> TriageReport:
    """Classify every open ``label`` issue and hand the eligible ones to ``actions``.

    Issues whose label history cannot be determined are skipped with a
    warning. Transport, protocol and rate limit errors abort the run.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    actions = actions or DryRunActions()

    candidates, requests_made = fetch_issues(client, owner, repo, label, page_size, max_pages, min_remaining)

    verdicts: list[StalenessVerdict] = []
    skipped: list[SkippedIssue] = []
    for issue in candidates:
        try:
            verdicts.append(classify(issue, label, minimum_age, exclude, now))
        except LabelHistoryError as exc:
            log.warning("Skipping %s: %s", issue.url, exc)
            skipped.append(SkippedIssue(number=issue.number, url=issue.url, reason=type(exc).__name__))

    decisions = report(verdicts)
    reason = f"labeled {label} and inactive for at least {minimum_age.days} days"
    handed_off = dispatch(decisions, actions, reason)

    return TriageReport(
        decisions=decisions,
        excluded=[v for v in verdicts if v.excluded],
        skipped=skipped,
        requests_made=requests_made,
        handed_off=handed_off,
    )
