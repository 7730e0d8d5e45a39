"""Git command-line implementation of the cloner port."""
import asyncio
import logging
import shutil
from pathlib import Path

from repo_survey.domain.cloner_interface import IRepositoryCloner
from repo_survey.domain.exceptions import CloneError


logger = logging.getLogger(__name__)


class GitCloner(IRepositoryCloner):
    """Shallow-clones GitHub repositories with the ``git`` executable."""

    def __init__(self, remote_base: str = "https://github.com", git_executable: str = "git"):
        self._remote_base = remote_base.rstrip("/")
        self._git = git_executable

    def remote_url(self, slug: str) -> str:
        return f"{self._remote_base}/{slug}.git"

    async def clone(self, slug: str, destination: Path) -> None:
        """Clone the latest commit only (``--depth 1``)."""
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Cloning {slug} to {destination}...")

        try:
            process = await asyncio.create_subprocess_exec(
                self._git, "clone", "--depth", "1", self.remote_url(slug), str(destination),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise CloneError("git command not found. Please install git.") from e

        _, stderr = await process.communicate()
        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise CloneError(f"Failed to clone repository {slug}: {message}")

        logger.info(f"Successfully cloned {slug}")

    async def remove(self, path: Path) -> None:
        path = Path(path)
        if not path.exists():
            return
        try:
            await asyncio.to_thread(shutil.rmtree, path)
        except OSError as e:
            raise CloneError(f"Failed to remove {path}: {e}") from e
