"""Cloner interface (port) for checking repositories out to disk."""
from abc import ABC, abstractmethod
from pathlib import Path


class IRepositoryCloner(ABC):
    """Abstract interface for working-tree checkout and cleanup."""

    @abstractmethod
    async def clone(self, slug: str, destination: Path) -> None:
        """Clone ``owner/name`` into ``destination``.

        Raises:
            CloneError: When the checkout fails
        """
        pass

    @abstractmethod
    async def remove(self, path: Path) -> None:
        """Delete a working tree. Missing paths are ignored.

        Raises:
            CloneError: When the tree exists but cannot be deleted
        """
        pass
