"""Error taxonomy for a triage run.

Everything derives from TriageError. LabelHistoryError and its subclasses are
scoped to a single issue: the engine skips that issue and carries on. Every
other TriageError aborts the whole run.
"""

from typing import Any


class TriageError(RuntimeError):
    pass


class TransportError(TriageError):
    """The GitHub API could not be reached or answered with an HTTP error."""


class GraphQlError(TriageError):
    def __init__(self, errors: list[Any]) -> None:
        self.errors = errors
        super().__init__(f"There were GraphQL errors: {errors}")


class ProtocolViolation(TriageError):
    """A response was missing a field the query guarantees."""


class RateLimitGuardTripped(TriageError):
    pass


class LabelHistoryError(TriageError):
    def __init__(self, message: str, url: str | None = None, number: int | None = None) -> None:
        self.url = url
        self.number = number
        super().__init__(f"{url}: {message}" if url else message)


class LabelHistoryInconsistent(LabelHistoryError):
    """No application of the target label was found in a complete timeline."""


class LabelHistoryTruncated(LabelHistoryError):
    """The timeline window overflowed, so the last application cannot be known."""
