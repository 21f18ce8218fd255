"""Abstract collaborators the decision engine depends on."""

from abc import ABC, abstractmethod
from typing import Any

from autotriage.models import Decision


class GraphQLTransport(ABC):
    @abstractmethod
    def post(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Send one query and return the decoded JSON body.

        Raises TransportError when the API cannot be reached.
        """


class IssueActions(ABC):
    @abstractmethod
    def close_issue(self, decision: Decision, reason: str) -> None: ...

    @abstractmethod
    def notify(self, decision: Decision, reason: str) -> None: ...
