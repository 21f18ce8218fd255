"""Close/notify actions that only log what would happen."""

import logging

from autotriage.models import Decision
from autotriage.providers.base import IssueActions

log = logging.getLogger(__name__)


class DryRunActions(IssueActions):
    def __init__(self) -> None:
        self.closed: list[int] = []
        self.notified: list[int] = []

    def close_issue(self, decision: Decision, reason: str) -> None:
        log.warning("%s will be closed (%s). Dry run: not closing.", decision.verdict.url, reason)
        self.closed.append(decision.verdict.number)

    def notify(self, decision: Decision, reason: str) -> None:
        log.info("Would report #%d %r as closed: %s", decision.verdict.number, decision.verdict.title, reason)
        self.notified.append(decision.verdict.number)
