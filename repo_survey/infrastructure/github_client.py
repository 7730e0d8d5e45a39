"""GitHub API client: GraphQL search plus REST reads, with rate limiting and retry logic."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiohttp
from gql import gql, Client
from gql.transport.aiohttp import AIOHTTPTransport
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)
from repo_survey.domain.exceptions import ForgeError, RateLimitException
from repo_survey.domain.github_interface import IGitHubClient
from repo_survey.domain.models import Commit, Issue, Repository
from repo_survey.infrastructure import payloads


logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (RateLimitException, asyncio.TimeoutError, aiohttp.ClientConnectionError)


def build_search_query(language: str) -> str:
    """Search qualifier for the most starred repositories of a language."""
    return f'language:"{language}" sort:stars-desc'


class GitHubClient(IGitHubClient):
    """GitHub API client with rate limiting and retry mechanisms.

    Implements the IGitHubClient port, providing an anti-corruption layer
    between the domain and GitHub's API. Search goes through GraphQL; forks,
    commits and issues through the REST API.
    """

    # GraphQL query to fetch the most starred repositories for a language
    SEARCH_QUERY = gql("""
        query SearchTopRepositories($query: String!, $first: Int!) {
            search(query: $query, type: REPOSITORY, first: $first) {
                nodes {
                    ... on Repository {
                        databaseId
                        name
                        nameWithOwner
                        url
                        stargazerCount
                        forkCount
                        isFork
                        hasIssuesEnabled
                        createdAt
                        primaryLanguage {
                            name
                        }
                        issues(states: OPEN) {
                            totalCount
                        }
                        owner {
                            login
                            url
                            ... on User {
                                databaseId
                            }
                            ... on Organization {
                                databaseId
                            }
                        }
                    }
                }
            }
            rateLimit {
                remaining
                resetAt
            }
        }
    """)

    def __init__(
        self,
        access_token: str,
        api_base: str = "https://api.github.com",
        graphql_url: str = "https://api.github.com/graphql",
        user_agent: str = "repo-survey/0.1",
        timeout: float = 30.0,
        commits_per_page: int = 100,
    ):
        """Initialize GitHub client.

        Args:
            access_token: GitHub personal access token
            api_base: REST API base URL
            graphql_url: GraphQL endpoint URL
            user_agent: Value of the User-Agent header
            timeout: Timeout of a single request attempt in seconds; rate-limit
                waits and retry backoff are not counted against it
            commits_per_page: Commits requested per listing (max 100)
        """
        self._access_token = access_token
        self._api_base = api_base.rstrip("/")
        self._graphql_url = graphql_url
        self._user_agent = user_agent
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self._timeout = timeout
        self._commits_per_page = min(commits_per_page, 100)  # GitHub max is 100
        self._transport: Optional[AIOHTTPTransport] = None
        self._client: Optional[Client] = None
        self._session: Optional[aiohttp.ClientSession] = None
        self._rate_limit_remaining: int = 5000
        self._rate_limit_reset_at: Optional[datetime] = None

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": self._user_agent,
        }

    async def _init_client(self) -> None:
        """Initialize the GraphQL client (lazy initialization)."""
        if self._client is None:
            self._transport = AIOHTTPTransport(
                url=self._graphql_url,
                headers=self._headers,
                timeout=int(self._timeout),
            )
            self._client = Client(
                transport=self._transport,
                fetch_schema_from_transport=False
            )

    async def _init_session(self) -> aiohttp.ClientSession:
        """Initialize the REST session (lazy initialization)."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self._headers,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            )
        return self._session

    async def _check_rate_limit(self) -> None:
        """Check and handle rate limiting."""
        if self._rate_limit_remaining <= 10:
            if self._rate_limit_reset_at:
                wait_time = (self._rate_limit_reset_at - datetime.now(timezone.utc)).total_seconds()
                if wait_time > 0:
                    logger.warning(
                        f"Rate limit nearly exhausted. Waiting {wait_time:.0f} seconds "
                        f"until reset at {self._rate_limit_reset_at}"
                    )
                    await asyncio.sleep(wait_time + 1)  # Add 1 second buffer

    def _record_rate_limit(self, headers: Any) -> None:
        """Update rate limit info from REST response headers."""
        remaining = headers.get("X-RateLimit-Remaining")
        reset = headers.get("X-RateLimit-Reset")
        if remaining is not None:
            self._rate_limit_remaining = int(remaining)
        if reset is not None:
            self._rate_limit_reset_at = datetime.fromtimestamp(int(reset), tz=timezone.utc)

    @retry(
        retry=retry_if_exception_type((RateLimitException, asyncio.TimeoutError)),
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=1, min=4, max=60),
        reraise=True
    )
    async def _execute_search(self, query: str, first: int) -> dict:
        """Execute the GraphQL search with retry logic.

        Raises:
            RateLimitException: When rate limit is hit
            ForgeError: For any other GraphQL failure
        """
        await self._init_client()
        await self._check_rate_limit()

        try:
            async with self._client as session:
                result = await asyncio.wait_for(
                    session.execute(
                        self.SEARCH_QUERY,
                        variable_values={"query": query, "first": first}
                    ),
                    timeout=self._timeout,
                )
        except Exception as e:
            logger.error(f"Error executing GraphQL query: {e}")
            if "rate limit" in str(e).lower():
                raise RateLimitException(str(e)) from e
            if isinstance(e, asyncio.TimeoutError):
                raise
            raise ForgeError(f"GraphQL search failed: {e}") from e

        # Update rate limit info
        rate_limit = result.get("rateLimit") or {}
        self._rate_limit_remaining = rate_limit.get("remaining", self._rate_limit_remaining)
        reset_at_str = rate_limit.get("resetAt")
        if reset_at_str:
            self._rate_limit_reset_at = datetime.fromisoformat(
                reset_at_str.replace("Z", "+00:00")
            )

        logger.info(
            f"Rate limit remaining: {self._rate_limit_remaining}, "
            f"resets at: {self._rate_limit_reset_at}"
        )

        return result

    @retry(
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=1, min=4, max=60),
        reraise=True
    )
    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a REST endpoint and decode the JSON body.

        Raises:
            RateLimitException: When GitHub reports an exhausted rate limit
            ForgeError: For any other non-success status
        """
        session = await self._init_session()
        await self._check_rate_limit()
        return await asyncio.wait_for(self._request(session, path, params), timeout=self._timeout)

    async def _request(
        self, session: aiohttp.ClientSession, path: str, params: Optional[Dict[str, Any]]
    ) -> Any:
        """Perform one GET attempt."""
        url = f"{self._api_base}/{path.lstrip('/')}"
        async with session.get(url, params=params) as response:
            self._record_rate_limit(response.headers)

            if response.status in (403, 429) and (
                response.headers.get("X-RateLimit-Remaining") == "0"
                or "rate limit" in (await response.text()).lower()
            ):
                raise RateLimitException(f"Rate limit hit for {path}")

            if response.status >= 400:
                body = await response.text()
                raise ForgeError(f"GET {path} returned {response.status}: {body[:200]}")

            return await response.json(content_type=None)

    async def search_top(self, language: str, limit: int) -> List[Repository]:
        """Fetch the most starred repositories for a language."""
        first = max(1, min(limit, 100))
        logger.info(f"Searching top {first} {language} repositories")
        result = await self._execute_search(build_search_query(language), first)
        nodes = (result.get("search") or {}).get("nodes") or []
        return [payloads.parse_search_node(node) for node in nodes if node]

    async def list_forks(self, owner: str, name: str) -> List[Repository]:
        data = await self._get_json(
            f"repos/{owner}/{name}/forks",
            {"sort": "newest", "per_page": 100, "page": 1},
        )
        return payloads.parse_repositories(data)

    async def list_recent_commits(self, owner: str, name: str) -> List[Commit]:
        data = await self._get_json(
            f"repos/{owner}/{name}/commits",
            {"per_page": self._commits_per_page, "page": 1},
        )
        return payloads.parse_commits(data)

    async def get_commit_detail(self, owner: str, name: str, sha: str) -> Commit:
        data = await self._get_json(f"repos/{owner}/{name}/commits/{sha}")
        return payloads.parse_commit(data)

    async def list_open_issues(self, owner: str, name: str) -> List[Issue]:
        data = await self._get_json(
            f"repos/{owner}/{name}/issues",
            {"state": "open", "per_page": 100, "page": 1},
        )
        return payloads.parse_issues(data)

    async def close(self) -> None:
        """Close the GraphQL transport and the REST session."""
        if self._transport:
            await self._transport.close()
            self._transport = None
            self._client = None
        if self._session:
            await self._session.close()
            self._session = None
