"""Pure analytics over enriched repositories.

Nothing in this module performs I/O or raises on incomplete data: repositories
that were only partially enriched simply contribute zero or empty results.
"""
from collections import defaultdict
from typing import Any, Dict, List

from repo_survey.domain.models import (
    FileChange,
    LanguageReport,
    RepoMetrics,
    Repository,
)


TOP_FILES_COUNT = 3
MAX_FORKS_COUNTED = 20


def churn_score(change: FileChange) -> int:
    """Lines touched by a file change: ``changes``, or additions + deletions when zero."""
    if change.changes:
        return change.changes
    return change.additions + change.deletions


def top_changed_files(repository: Repository, limit: int = TOP_FILES_COUNT) -> List[str]:
    """Return the most churned filenames across the repository's detailed commits.

    Scores are summed per filename; ties are broken by ascending filename so
    the result does not depend on commit or file order.
    """
    scores: Dict[str, int] = defaultdict(int)
    for commit in repository.recent_commits:
        for change in commit.files:
            scores[change.filename] += churn_score(change)

    ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    return [filename for filename, _ in ranked[:limit]]


def count_new_commits(fork: Repository) -> int:
    """Count commits authored strictly after the fork was created.

    A fork without a creation timestamp cannot be assessed and counts 0;
    commits without an author date are ignored.
    """
    if fork.created_at is None:
        return 0
    return sum(
        1
        for commit in fork.recent_commits
        if commit.authored_at is not None and commit.authored_at > fork.created_at
    )


def new_fork_commit_count(repository: Repository, max_forks: int = MAX_FORKS_COUNTED) -> int:
    """Sum of new commits over the first ``max_forks`` forks of a repository."""
    return sum(count_new_commits(fork) for fork in repository.forks[:max_forks])


def build_language_report(language: str, repositories: List[Repository]) -> LanguageReport:
    """Aggregate per-language totals, keeping the input (ranking) order."""
    per_repo = [
        RepoMetrics(slug=repo.slug, top_changed_files=top_changed_files(repo))
        for repo in repositories
    ]
    return LanguageReport(
        language=language,
        repositories=list(repositories),
        total_stars=sum(repo.stars for repo in repositories),
        total_forks=sum(repo.forks_count for repo in repositories),
        total_open_issues=sum(len(repo.issues) for repo in repositories),
        total_commit_count=sum(repo.commit_count for repo in repositories),
        total_new_fork_commits=sum(new_fork_commit_count(repo) for repo in repositories),
        per_repo=per_repo,
    )


def aggregate(repositories: List[Repository]) -> Dict[str, Any]:
    """Plain-dict view of the language totals, suitable for export."""
    report = build_language_report("", repositories)
    return {
        "total_stars": report.total_stars,
        "total_forks": report.total_forks,
        "total_open_issues": report.total_open_issues,
        "total_commit_count": report.total_commit_count,
        "total_new_fork_commits": report.total_new_fork_commits,
        "per_repo": [
            {"slug": metrics.slug, "top_changed_files": metrics.top_changed_files}
            for metrics in report.per_repo
        ],
    }
