"""Enrichment pipeline building the repository / fork / commit / issue tree."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar, Union

from repo_survey.domain.github_interface import IGitHubClient
from repo_survey.domain.models import Commit, Issue, Repository


logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

MIN_SEARCH_LIMIT = 1
MAX_SEARCH_LIMIT = 100


@dataclass(frozen=True)
class EnrichmentLimits:
    """Tunable caps threaded into the pipeline."""
    search_limit: int = 10
    max_detailed_commits: int = 50
    max_forks_with_commits: int = 20
    max_concurrency: int = 5

    def __post_init__(self) -> None:
        if self.max_concurrency <= 0:
            raise ValueError("max_concurrency must be positive")
        if self.max_detailed_commits < 0:
            raise ValueError("max_detailed_commits must not be negative")
        if self.max_forks_with_commits < 0:
            raise ValueError("max_forks_with_commits must not be negative")


@dataclass
class _CommitsAndIssues:
    commits: Optional[List[Commit]] = None
    commit_count: int = 0
    issues: Optional[List[Issue]] = None


def clamp_limit(limit: int) -> int:
    return max(MIN_SEARCH_LIMIT, min(limit, MAX_SEARCH_LIMIT))


class EnrichmentPipeline:
    """Drives the four ordered fetch phases for one language.

    Only the search phase can fail the language. Every later sub-fetch is an
    independent unit: its failure is logged and leaves the corresponding field
    at its default while siblings and later phases carry on. Forge calls bound
    each HTTP attempt themselves, so an expired request surfaces here as an
    ordinary unit failure.
    """

    def __init__(self, github_client: IGitHubClient, limits: Optional[EnrichmentLimits] = None):
        """Initialize the pipeline.

        Args:
            github_client: GitHub API client implementation
            limits: Caps and timeouts; defaults apply when omitted
        """
        self._github_client = github_client
        self._limits = limits or EnrichmentLimits()
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def fetch_language_data(self, language: str, limit: Optional[int] = None) -> List[Repository]:
        """Fetch and enrich the top repositories of a language.

        Args:
            language: Language name to search for
            limit: Number of repositories, clamped to [1, 100]

        Returns:
            Enriched repositories in search ranking order

        Raises:
            Exception: Whatever the search call raised; the language is unusable
        """
        count = clamp_limit(self._limits.search_limit if limit is None else limit)
        self._semaphore = asyncio.Semaphore(self._limits.max_concurrency)

        logger.info(f"[1/4] Fetching top {count} {language} repositories...")
        repositories = await self._github_client.search_top(language, count)
        logger.info(f"Found {len(repositories)} repositories")

        logger.info("[2/4] Fetching commits and issues for each repository...")
        await self._enrich_with_commits_and_issues(repositories)

        logger.info("[3/4] Fetching forks for each repository...")
        await self._enrich_with_forks(repositories)

        logger.info("[4/4] Fetching commits for forked repositories...")
        await self._enrich_forks_with_commits(repositories)

        return repositories

    async def _fan_out(
        self,
        items: Sequence[T],
        unit: Callable[[T], Awaitable[R]],
    ) -> List[Union[R, BaseException]]:
        """Run ``unit`` for every item and return outcomes in input order.

        A unit that raises yields its exception in place; it never cancels or
        delays its siblings.
        """
        async def guarded(item: T) -> R:
            async with self._semaphore:
                return await unit(item)

        return await asyncio.gather(*(guarded(item) for item in items), return_exceptions=True)

    async def _enrich_with_commits_and_issues(self, repositories: List[Repository]) -> None:
        outcomes = await self._fan_out(repositories, self._fetch_commits_and_issues)

        for repository, outcome in zip(repositories, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(f"Failed to enrich {repository.slug}: {outcome}")
                continue
            if outcome.commits is not None:
                repository.commit_count = outcome.commit_count
                repository.recent_commits = outcome.commits
            if outcome.issues is not None:
                repository.issues = outcome.issues

    async def _fetch_commits_and_issues(self, repository: Repository) -> _CommitsAndIssues:
        owner, name = repository.owner.login, repository.name
        result = _CommitsAndIssues()

        try:
            commits = await self._github_client.list_recent_commits(owner, name)
        except Exception as e:
            logger.warning(f"Failed to fetch commits for {repository.slug}: {e}")
        else:
            logger.info(f"{repository.slug}: {len(commits)} commits")
            result.commit_count = len(commits)
            result.commits = await self._fetch_commit_details(repository, commits)

        try:
            result.issues = await self._github_client.list_open_issues(owner, name)
        except Exception as e:
            logger.warning(f"Failed to fetch issues for {repository.slug}: {e}")
        else:
            logger.info(f"{repository.slug}: {len(result.issues)} open issues")

        return result

    async def _fetch_commit_details(self, repository: Repository, commits: List[Commit]) -> List[Commit]:
        """Fetch file-level detail for the newest commits, one at a time."""
        detailed: List[Commit] = []
        for commit in commits[:self._limits.max_detailed_commits]:
            try:
                detailed.append(await self._github_client.get_commit_detail(
                    repository.owner.login, repository.name, commit.sha
                ))
            except Exception as e:
                logger.warning(f"Failed to fetch details for commit {commit.short_sha}: {e}")
        return detailed

    async def _enrich_with_forks(self, repositories: List[Repository]) -> None:
        outcomes = await self._fan_out(
            repositories,
            lambda repo: self._github_client.list_forks(repo.owner.login, repo.name),
        )

        for repository, outcome in zip(repositories, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(f"Failed to fetch forks for {repository.slug}: {outcome}")
                continue
            logger.info(f"{repository.slug}: {len(outcome)} forks")
            repository.attach_forks(outcome)

    async def _enrich_forks_with_commits(self, repositories: List[Repository]) -> None:
        targets: List[Tuple[Repository, Repository]] = [
            (repository, fork)
            for repository in repositories
            for fork in repository.forks[:self._limits.max_forks_with_commits]
        ]
        outcomes = await self._fan_out(
            targets,
            lambda pair: self._github_client.list_recent_commits(pair[1].owner.login, pair[1].name),
        )

        for (_, fork), outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(f"Failed to fetch commits for fork {fork.slug}: {outcome}")
                continue
            fork.commit_count = len(outcome)
            fork.recent_commits = outcome

        for repository in repositories:
            processed = repository.forks[:self._limits.max_forks_with_commits]
            with_commits = sum(1 for fork in processed if fork.commit_count > 0)
            if with_commits:
                logger.info(
                    f"{repository.slug}: fetched commits for "
                    f"{with_commits}/{len(processed)} forks"
                )
