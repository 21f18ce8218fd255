"""Tests for GitHubGraphQLClient using pytest-httpx."""

import json
import logging
from unittest.mock import MagicMock, patch

import httpx
import pytest
from conftest import LABEL, issue_node, issues_page
from pytest_httpx import HTTPXMock

from autotriage.errors import TransportError
from autotriage.paginator import fetch_all
from autotriage.providers.github import ENDPOINT, GitHubGraphQLClient
from autotriage.settings import TriageSettings


def _settings(**kwargs) -> TriageSettings:
    defaults = {"github_token": "ghp_test", "github_auth": "token"}
    defaults.update(kwargs)
    return TriageSettings(**defaults)  # type: ignore[call-arg]


class TestResolveToken:
    def test_manual_token(self) -> None:
        client = GitHubGraphQLClient(_settings(github_token="ghp_mytoken"))
        assert client._token == "ghp_mytoken"

    def test_ghcli_token(self) -> None:
        s = _settings(github_token=None, github_auth="gh-cli")
        mock_result = MagicMock()
        mock_result.returncode = 0
        mock_result.stdout = "ghp_from_cli\n"
        with patch("subprocess.run", return_value=mock_result):
            client = GitHubGraphQLClient(s)
        assert client._token == "ghp_from_cli"

    def test_ghcli_not_authenticated_raises(self) -> None:
        s = _settings(github_token=None, github_auth="gh-cli")
        with patch("subprocess.run", return_value=MagicMock(returncode=1)):
            with pytest.raises(RuntimeError, match="gh auth token failed"):
                GitHubGraphQLClient(s)

    def test_no_credentials_raises(self) -> None:
        with pytest.raises(RuntimeError, match="No GitHub credentials"):
            GitHubGraphQLClient(_settings(github_token=None))


class TestPost:
    def test_sends_query_and_token(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=ENDPOINT, method="POST", json={"data": {"viewer": {"login": "bors"}}})
        client = GitHubGraphQLClient(_settings())

        body = client.post("query { viewer { login } }", {"x": 1})

        assert body == {"data": {"viewer": {"login": "bors"}}}
        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["Authorization"] == "Bearer ghp_test"
        assert json.loads(request.content) == {"query": "query { viewer { login } }", "variables": {"x": 1}}
        assert client.requests_made == 1

    def test_401_raises_transport_error(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=ENDPOINT, status_code=401, json={"message": "Bad credentials"})
        with pytest.raises(TransportError, match="401"):
            GitHubGraphQLClient(_settings()).post("query", {})

    def test_server_error_raises_transport_error(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=ENDPOINT, status_code=502, text="Bad gateway")
        with pytest.raises(TransportError, match="502"):
            GitHubGraphQLClient(_settings()).post("query", {})

    def test_network_error_raises_transport_error(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_exception(httpx.ConnectTimeout("timed out"))
        with pytest.raises(TransportError, match="timed out"):
            GitHubGraphQLClient(_settings()).post("query", {})

    def test_invalid_json_raises_transport_error(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=ENDPOINT, text="<html>")
        with pytest.raises(TransportError, match="invalid JSON"):
            GitHubGraphQLClient(_settings()).post("query", {})

    def test_graphql_errors_pass_through(self, httpx_mock: HTTPXMock) -> None:
        # GitHub reports query errors with HTTP 200; the paginator decides what they mean
        httpx_mock.add_response(url=ENDPOINT, json={"errors": [{"message": "Field 'x' doesn't exist"}]})
        body = GitHubGraphQLClient(_settings()).post("query", {})
        assert body["errors"][0]["message"] == "Field 'x' doesn't exist"

    def test_low_rate_limit_headers_warn(self, httpx_mock: HTTPXMock, caplog: pytest.LogCaptureFixture) -> None:
        httpx_mock.add_response(
            url=ENDPOINT,
            json={"data": {}},
            headers={"x-ratelimit-remaining": "12", "x-ratelimit-limit": "5000", "x-ratelimit-reset": "1717243200"},
        )
        with caplog.at_level(logging.WARNING, logger="autotriage.providers.github"):
            GitHubGraphQLClient(_settings()).post("query", {})
        assert "12/5000" in caplog.text


class TestFetchAllOverHttp:
    def test_two_pages(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=ENDPOINT, json=issues_page([issue_node(1), issue_node(2)], cursor="c1"))
        httpx_mock.add_response(url=ENDPOINT, json=issues_page([issue_node(3)]))
        client = GitHubGraphQLClient(_settings())

        issues = fetch_all(client, "rust-lang", "rust", LABEL, page_size=2)

        assert [i.number for i in issues] == [1, 2, 3]
        assert client.requests_made == 2
        second = json.loads(httpx_mock.get_requests()[1].content)
        assert second["variables"]["after"] == "c1"
