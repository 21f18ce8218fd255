"""GitHub GraphQL v4 transport."""

import logging
import subprocess
from datetime import datetime, timezone
from typing import Any

import httpx

from autotriage.errors import TransportError
from autotriage.providers.base import GraphQLTransport
from autotriage.settings import TriageSettings

ENDPOINT = "https://api.github.com/graphql"

# Below this many points left, every response is logged as a warning
RATE_LIMIT_WARN_REMAINING = 100

log = logging.getLogger(__name__)


def _log_rate_limit_headers(response: httpx.Response) -> None:
    try:
        remaining = int(response.headers["x-ratelimit-remaining"])
        limit = int(response.headers["x-ratelimit-limit"])
        reset = datetime.fromtimestamp(int(response.headers["x-ratelimit-reset"]), tz=timezone.utc)
    except (KeyError, ValueError):
        return
    if remaining <= RATE_LIMIT_WARN_REMAINING:
        log.warning("Approaching GitHub API rate limit: %d/%d remaining, resets at %s", remaining, limit, reset)
    else:
        log.debug("GitHub API rate limit: %d/%d remaining", remaining, limit)


class GitHubGraphQLClient(GraphQLTransport):
    def __init__(self, settings: TriageSettings) -> None:
        self._token = self._resolve_token(settings)
        self._headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }
        self.requests_made = 0

    def _resolve_token(self, settings: TriageSettings) -> str:
        if settings.github_auth == "gh-cli":
            result = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True,
                text=True,
            )
            if result.returncode != 0:
                raise RuntimeError("gh auth token failed. Run: gh auth login")
            return result.stdout.strip()
        if settings.github_token:
            return settings.github_token.get_secret_value()
        raise RuntimeError("No GitHub credentials. Set TRIAGE_GITHUB_TOKEN or github_auth = \"gh-cli\"")

    def post(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        self.requests_made += 1
        try:
            response = httpx.post(
                ENDPOINT,
                json={"query": query, "variables": variables},
                headers=self._headers,
                timeout=30,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"GitHub GraphQL request failed: {exc}") from exc

        _log_rate_limit_headers(response)
        if response.status_code == 401:
            raise TransportError("GitHub API returned 401. Check the token for the active rule profile.")
        try:
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise TransportError(f"GitHub API returned {response.status_code}: {response.text[:200]}") from exc
        except ValueError as exc:
            raise TransportError(f"GitHub API returned invalid JSON: {exc}") from exc
