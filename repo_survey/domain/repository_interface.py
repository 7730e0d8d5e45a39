"""Repository interface (port) for data persistence.

This is the port in hexagonal architecture that the infrastructure layer implements.
"""
from abc import ABC, abstractmethod
from repo_survey.domain.models import Repository


class IRepositoryStorage(ABC):
    """Abstract interface for repository data storage."""

    @abstractmethod
    def save_repository(self, repository: Repository) -> None:
        """Save or update a finished repository record.

        Persists the repository, its owner and its open issues. Implementations
        raise ``StorageError`` when the record could not be written.

        Args:
            repository: Enriched Repository entity to persist
        """
        pass

    @abstractmethod
    def get_repository_count(self) -> int:
        """Get the total number of repositories in storage."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close any open connections."""
        pass
