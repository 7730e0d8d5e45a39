"""GitHub API interface (port) for fetching repository data.

This is the anti-corruption layer that shields the domain from GitHub API specifics.
Every method may raise ``ForgeError``; callers decide whether a failure is fatal.
"""
from abc import ABC, abstractmethod
from typing import List
from repo_survey.domain.models import Commit, Issue, Repository


class IGitHubClient(ABC):
    """Abstract interface for read-only GitHub API operations."""

    @abstractmethod
    async def search_top(self, language: str, limit: int) -> List[Repository]:
        """Fetch the most starred repositories for a language.

        Args:
            language: Language name as understood by GitHub search
            limit: Number of repositories to return (1-100)

        Returns:
            Repositories ordered by descending star count
        """
        pass

    @abstractmethod
    async def list_forks(self, owner: str, name: str) -> List[Repository]:
        """Fetch the newest forks of a repository (first page)."""
        pass

    @abstractmethod
    async def list_recent_commits(self, owner: str, name: str) -> List[Commit]:
        """Fetch recent commit summaries, newest first, without file changes."""
        pass

    @abstractmethod
    async def get_commit_detail(self, owner: str, name: str, sha: str) -> Commit:
        """Fetch a single commit including its file changes."""
        pass

    @abstractmethod
    async def list_open_issues(self, owner: str, name: str) -> List[Issue]:
        """Fetch open issues of a repository (pull requests excluded)."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        pass
