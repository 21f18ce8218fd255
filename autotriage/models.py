"""Shared pydantic models — the contract between the GraphQL layer and the engine."""

import math
from datetime import datetime, timedelta
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator
from pydantic.alias_generators import to_camel

_GRAPHQL_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


def _nodes(value: Any) -> Any:
    # GraphQL connections arrive as {"nodes": [...]}; models hold the plain list
    if isinstance(value, dict):
        return value.get("nodes") or []
    return value


def _present(value: Any) -> Any:
    # GraphQL lists may hold null entries for items the viewer cannot see
    if isinstance(value, list):
        return [item for item in value if item is not None]
    return value


class Comment(BaseModel):
    model_config = _GRAPHQL_CONFIG

    author: str | None = None  # None for deleted ("ghost") accounts
    created_at: datetime

    @field_validator("author", mode="before")
    @classmethod
    def _author_login(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("login")
        return value


class _LabelEvent(BaseModel):
    model_config = _GRAPHQL_CONFIG

    label: str
    created_at: datetime

    @field_validator("label", mode="before")
    @classmethod
    def _label_name(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value["name"]
        return value


class LabelApplied(_LabelEvent):
    typename: Literal["LabeledEvent"] = Field("LabeledEvent", alias="__typename")


class LabelRemoved(_LabelEvent):
    typename: Literal["UnlabeledEvent"] = Field("UnlabeledEvent", alias="__typename")


class OtherEvent(BaseModel):
    """Any timeline item we do not act on, including types added to the schema later."""

    model_config = _GRAPHQL_CONFIG

    typename: str = Field("Other", alias="__typename")


def _event_kind(value: Any) -> str:
    if isinstance(value, dict):
        typename = value.get("__typename", value.get("typename"))
    else:
        typename = getattr(value, "typename", None)
    return typename if typename in ("LabeledEvent", "UnlabeledEvent") else "Other"


TimelineEvent = Annotated[
    Annotated[LabelApplied, Tag("LabeledEvent")]
    | Annotated[LabelRemoved, Tag("UnlabeledEvent")]
    | Annotated[OtherEvent, Tag("Other")],
    Discriminator(_event_kind),
]


class PageInfo(BaseModel):
    model_config = _GRAPHQL_CONFIG

    has_next_page: bool
    end_cursor: str | None = None  # only meaningful when has_next_page


class Timeline(BaseModel):
    """One window of an issue's label events, oldest first."""

    model_config = _GRAPHQL_CONFIG

    total_count: int = 0
    page_info: PageInfo = PageInfo(has_next_page=False)
    events: list[TimelineEvent] = Field(default_factory=list, alias="nodes")

    @field_validator("events", mode="before")
    @classmethod
    def _event_nodes(cls, value: Any) -> Any:
        return _present(value)

    @property
    def truncated(self) -> bool:
        return self.page_info.has_next_page


class IssueCandidate(BaseModel):
    model_config = _GRAPHQL_CONFIG

    number: int
    url: str
    title: str
    created_at: datetime
    labels: list[str] = []
    comments: list[Comment] = []  # oldest first, as returned by comments(last: N)
    timeline: Timeline | None = Field(None, alias="timelineItems")

    @field_validator("labels", mode="before")
    @classmethod
    def _label_names(cls, value: Any) -> Any:
        return [node["name"] if isinstance(node, dict) else node for node in _present(_nodes(value) or [])]

    @field_validator("comments", mode="before")
    @classmethod
    def _comment_nodes(cls, value: Any) -> Any:
        return _present(_nodes(value) or [])


class RateLimit(BaseModel):
    """GraphQL rateLimit field, reported alongside every page."""

    model_config = _GRAPHQL_CONFIG

    limit: int
    cost: int
    remaining: int
    reset_at: datetime


class StalenessVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    url: str
    title: str
    activity_age: timedelta
    label_age: timedelta | None = None  # None when excluded, or when activity vetoed and the timeline was unusable
    time_until_eligible: timedelta | None = None  # <= 0 means eligible now
    excluded_by: str | None = None  # the label that matched the exclusion marker

    @property
    def excluded(self) -> bool:
        return self.excluded_by is not None

    @property
    def eligible(self) -> bool:
        return not self.excluded and self.time_until_eligible is not None and self.time_until_eligible <= timedelta(0)


class Decision(BaseModel):
    """A ranked verdict, ready for the close/notify collaborators."""

    model_config = ConfigDict(frozen=True)

    verdict: StalenessVerdict
    eligible_now: bool
    days_remaining: int = 0

    @classmethod
    def from_verdict(cls, verdict: StalenessVerdict) -> "Decision":
        if verdict.eligible:
            return cls(verdict=verdict, eligible_now=True)
        remaining = verdict.time_until_eligible or timedelta(0)
        days = math.ceil(remaining / timedelta(days=1))
        return cls(verdict=verdict, eligible_now=False, days_remaining=days)


class SkippedIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    url: str
    reason: str


class TriageReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    decisions: list[Decision] = []
    excluded: list[StalenessVerdict] = []
    skipped: list[SkippedIssue] = []
    requests_made: int = 0
    handed_off: int = 0

    @property
    def eligible(self) -> list[Decision]:
        return [d for d in self.decisions if d.eligible_now]
