"""Tests for the GitHub client's rate limiting and request timeouts."""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from repo_survey.infrastructure.github_client import GitHubClient


class FakeGraphQLSession:
    """Stands in for the gql client and its session."""

    def __init__(self, result):
        self.result = result
        self.calls = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def execute(self, document, variable_values=None):
        self.calls.append(variable_values)
        return self.result


def search_result(remaining=4999):
    return {
        "search": {
            "nodes": [{
                "databaseId": 1,
                "name": "engine",
                "nameWithOwner": "octocat/engine",
                "stargazerCount": 42,
                "owner": {"login": "octocat", "databaseId": 7},
            }]
        },
        "rateLimit": {"remaining": remaining, "resetAt": "2030-01-01T00:00:00Z"},
    }


def test_rate_limit_wait_is_not_bounded_by_request_timeout():
    """Waiting for the quota to reset may take longer than one request may."""
    client = GitHubClient("ghp_test", timeout=0.05)
    fake = FakeGraphQLSession(search_result())
    client._client = fake
    client._rate_limit_remaining = 5
    client._rate_limit_reset_at = datetime.now(timezone.utc) + timedelta(seconds=0.1)

    repos = asyncio.run(client.search_top("Rust", 10))

    assert [repo.slug for repo in repos] == ["octocat/engine"]
    assert fake.calls == [{"query": 'language:"Rust" sort:stars-desc', "first": 10}]
    assert client._rate_limit_remaining == 4999


def test_search_limit_is_capped():
    client = GitHubClient("ghp_test")
    fake = FakeGraphQLSession(search_result())
    client._client = fake

    asyncio.run(client.search_top("C", 500))

    assert fake.calls[0]["first"] == 100


def test_rejects_non_positive_timeout():
    with pytest.raises(ValueError):
        GitHubClient("ghp_test", timeout=0)
