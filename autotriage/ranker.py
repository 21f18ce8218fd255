"""Order verdicts by urgency and hand eligible issues to the close/notify actions."""

import logging
from collections.abc import Iterable

from autotriage.models import Decision, StalenessVerdict
from autotriage.providers.base import IssueActions

log = logging.getLogger(__name__)


def rank(verdicts: Iterable[StalenessVerdict]) -> list[StalenessVerdict]:
    """Most overdue first; equal remaining time falls back to issue number.

    Excluded verdicts carry no remaining time and are dropped.
    """
    ranked = [v for v in verdicts if not v.excluded and v.time_until_eligible is not None]
    return sorted(ranked, key=lambda v: (v.time_until_eligible, v.number))


def report(verdicts: Iterable[StalenessVerdict]) -> list[Decision]:
    return [Decision.from_verdict(v) for v in rank(verdicts)]


def dispatch(decisions: Iterable[Decision], actions: IssueActions, reason: str) -> int:
    """Close and announce every eligible decision, in ranked order.

    Returns the number of issues handed off.
    """
    handed_off = 0
    for decision in decisions:
        if not decision.eligible_now:
            continue
        actions.close_issue(decision, reason)
        actions.notify(decision, reason)
        handed_off += 1
    log.info("Handed off %d issue(s) for closing", handed_off)
    return handed_off
