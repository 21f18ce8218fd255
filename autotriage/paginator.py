"""Fetch every open issue carrying a label, one GraphQL page at a time."""

import logging
from typing import Any

from pydantic import ValidationError

from autotriage.errors import GraphQlError, ProtocolViolation, RateLimitGuardTripped
from autotriage.models import IssueCandidate, PageInfo, RateLimit
from autotriage.providers.base import GraphQLTransport

MAX_PAGES = 100
PAGE_SIZE = 100
TIMELINE_WINDOW = 250
MIN_RATE_LIMIT_REMAINING = 50

log = logging.getLogger(__name__)

# Issues come back oldest first and timeline items oldest first; label_age()
# relies on the latter.
_OLD_LABEL_ISSUES = """
query OldLabelIssues($owner: String!, $name: String!, $label: String!, $first: Int!, $after: String) {
  rateLimit { limit cost remaining resetAt }
  repository(owner: $owner, name: $name) {
    issues(
      states: OPEN
      labels: [$label]
      first: $first
      after: $after
      orderBy: { field: CREATED_AT, direction: ASC }
    ) {
      totalCount
      pageInfo { hasNextPage endCursor }
      nodes {
        number
        url
        title
        createdAt
        labels(first: 100) { nodes { name } }
        comments(last: 1) { nodes { author { login } createdAt } }
        timelineItems(first: %(window)d, itemTypes: [LABELED_EVENT, UNLABELED_EVENT]) {
          totalCount
          pageInfo { hasNextPage endCursor }
          nodes {
            __typename
            ... on LabeledEvent { label { name } createdAt }
            ... on UnlabeledEvent { label { name } createdAt }
          }
        }
      }
    }
  }
}
""" % {"window": TIMELINE_WINDOW}


def _repository(body: dict[str, Any]) -> dict[str, Any]:
    errors = body.get("errors")
    if errors:
        raise GraphQlError(errors)
    data = body.get("data")
    if not data:
        raise ProtocolViolation("No data returned.")
    repository = data.get("repository")
    if not repository:
        raise ProtocolViolation("No repository.")
    return repository


def _check_quota(data: dict[str, Any], min_remaining: int) -> None:
    raw = data.get("rateLimit")
    if not raw:
        return
    rate_limit = RateLimit.model_validate(raw)
    floor = max(rate_limit.cost, min_remaining)
    if rate_limit.remaining < floor:
        raise RateLimitGuardTripped(
            f"Only {rate_limit.remaining}/{rate_limit.limit} rate limit points left "
            f"(need {floor}); resets at {rate_limit.reset_at.isoformat()}"
        )


def fetch_issues(
    client: GraphQLTransport,
    owner: str,
    repo: str,
    label: str,
    page_size: int = PAGE_SIZE,
    max_pages: int = MAX_PAGES,
    min_remaining: int = MIN_RATE_LIMIT_REMAINING,
) -> tuple[list[IssueCandidate], int]:
    """Return every open ``label`` issue in ``owner/repo``, in server order, and the number of requests made.

    Any error aborts the whole fetch; partial results are never returned. Null issue nodes are dropped.
    """
    issues: list[IssueCandidate] = []
    variables: dict[str, Any] = {"owner": owner, "name": repo, "label": label, "first": page_size, "after": None}

    for page in range(1, max_pages + 1):
        log.info("Running query for %s/%s page %d (rate limit affected)", owner, repo, page)
        body = client.post(_OLD_LABEL_ISSUES, variables)
        repository = _repository(body)

        try:
            connection = repository["issues"]
            issues.extend(IssueCandidate.model_validate(node) for node in connection["nodes"] if node is not None)
            page_info = PageInfo.model_validate(connection["pageInfo"])
        except (KeyError, TypeError, ValidationError) as exc:
            raise ProtocolViolation(f"Malformed issues page {page}: {exc}") from exc

        if not page_info.has_next_page:
            log.info("Fetched %d issue(s) labeled %s in %d request(s)", len(issues), label, page)
            return issues, page
        if not page_info.end_cursor:
            raise ProtocolViolation(f"Page {page} reports hasNextPage without an endCursor")

        _check_quota(body["data"], min_remaining)
        variables["after"] = page_info.end_cursor

    raise RateLimitGuardTripped(f"Gave up after {max_pages} pages of {label} issues in {owner}/{repo}")


def fetch_all(
    client: GraphQLTransport,
    owner: str,
    repo: str,
    label: str,
    page_size: int = PAGE_SIZE,
    max_pages: int = MAX_PAGES,
    min_remaining: int = MIN_RATE_LIMIT_REMAINING,
) -> list[IssueCandidate]:
    """Return every open ``label`` issue in ``owner/repo``, in server order."""
    issues, _ = fetch_issues(client, owner, repo, label, page_size, max_pages, min_remaining)
    return issues
