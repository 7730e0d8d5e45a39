"""Source-code heuristic and the clone-and-classify selection loop."""
import asyncio
import logging
import os
from pathlib import Path
from typing import FrozenSet, List, Optional, Set, Tuple

from repo_survey.domain.cloner_interface import IRepositoryCloner
from repo_survey.domain.exceptions import CloneError
from repo_survey.domain.models import ClassificationRules, Repository, SourceAnalysis


logger = logging.getLogger(__name__)

# Target-language sources plus the build, manifest and config files that come
# with real projects.
DEFAULT_SOURCE_EXTENSIONS: FrozenSet[str] = frozenset({
    "java", "c", "cpp", "cc", "cxx", "h", "hpp", "rs",
    "cmake", "makefile", "gradle", "maven", "pom", "cargo", "toml",
    "xml", "properties", "yaml", "yml", "json", "sh", "bat",
})

SKIPPED_DIRECTORIES = frozenset({".git"})


def file_extension(filename: str) -> str:
    """Lowercased extension without the dot, or '' when there is none."""
    return Path(filename).suffix.lower().lstrip(".")


def classify(root_path: Path, rules: ClassificationRules) -> SourceAnalysis:
    """Classify a working tree as source code or documentation.

    Files directly under ``root_path`` are at depth 0; subdirectories are
    walked while their depth does not exceed ``rules.max_depth``. Unreadable
    directories are skipped.

    Args:
        root_path: Root of the checked-out tree
        rules: Allowed extensions, ratio threshold and depth cap

    Returns:
        SourceAnalysis with counts, ratio and verdict
    """
    root = Path(root_path)
    allowed = {ext.lower().lstrip(".") for ext in rules.allowed_extensions}
    source_files = 0
    total_files = 0
    extensions: Set[str] = set()

    def on_error(error: OSError) -> None:
        logger.warning(f"Skipping unreadable directory {error.filename}: {error}")

    for directory, subdirectories, filenames in os.walk(root, onerror=on_error):
        depth = len(Path(directory).relative_to(root).parts)
        if depth >= rules.max_depth:
            subdirectories[:] = []
        else:
            subdirectories[:] = [d for d in subdirectories if d not in SKIPPED_DIRECTORIES]

        for filename in filenames:
            if not os.path.isfile(os.path.join(directory, filename)):
                continue
            total_files += 1
            extension = file_extension(filename)
            if extension:
                extensions.add(extension)
                if extension in allowed:
                    source_files += 1

    source_ratio = source_files / total_files if total_files else 0.0

    return SourceAnalysis(
        source_file_count=source_files,
        total_file_count=total_files,
        source_ratio=source_ratio,
        is_source_repo=source_ratio >= rules.min_source_ratio and source_files > 0,
        distinct_extensions=frozenset(extensions),
    )


class SourceRepositorySelector:
    """Picks the most popular candidate whose checkout looks like real source code.

    Candidates are handled strictly one at a time: clone, classify, then delete
    the working tree before the next one is attempted.
    """

    def __init__(self, cloner: IRepositoryCloner, rules: ClassificationRules, clone_base_dir: Path):
        self._cloner = cloner
        self._rules = rules
        self._clone_base_dir = Path(clone_base_dir)

    def clone_path(self, language: str, repository: Repository) -> Path:
        return self._clone_base_dir / f"{language.lower()}-{repository.name}"

    async def select(
        self, language: str, candidates: List[Repository]
    ) -> Optional[Tuple[Repository, SourceAnalysis]]:
        """Return the first accepted candidate with its analysis, or None."""
        logger.info(f"Analyzing {len(candidates)} {language} repositories for source code content...")
        ranked = sorted(candidates, key=lambda repo: repo.stars, reverse=True)

        for repository in ranked:
            destination = self.clone_path(language, repository)
            analysis = await self._inspect(repository, destination)
            await self._cleanup(destination)

            if analysis is None:
                continue
            if analysis.is_source_repo:
                logger.info(f"{repository.slug} appears to contain actual source code")
                return repository, analysis
            logger.info(f"{repository.slug} appears to be documentation/tutorial")

        logger.info(f"No suitable source code repository found for {language}")
        return None

    async def _inspect(self, repository: Repository, destination: Path) -> Optional[SourceAnalysis]:
        try:
            await self._cloner.clone(repository.slug, destination)
        except CloneError as e:
            logger.warning(f"Failed to clone {repository.slug}: {e}")
            return None

        try:
            analysis = await asyncio.to_thread(classify, destination, self._rules)
        except OSError as e:
            logger.warning(f"Failed to analyze {repository.slug}: {e}")
            return None

        logger.info(
            f"{repository.slug}: {analysis.source_file_count} source files, "
            f"{analysis.source_ratio * 100:.1f}% source ratio"
        )
        return analysis

    async def _cleanup(self, destination: Path) -> None:
        try:
            await self._cloner.remove(destination)
        except CloneError as e:
            logger.warning(f"Failed to clean up {destination}: {e}")
