"""Domain models representing core business entities."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import FrozenSet, List, Optional


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Naive values (e.g. bare dates) are taken as UTC so every timestamp in the
    model can be compared with every other one.
    """
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Owner:
    """Account that owns a repository."""
    login: str
    id: int
    html_url: str = ""
    site_admin: bool = False


@dataclass(frozen=True)
class FileChange:
    """Per-file line counts of a single commit."""
    filename: str
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    status: str = ""


@dataclass(frozen=True)
class CommitAuthor:
    name: Optional[str] = None
    email: Optional[str] = None
    date: Optional[datetime] = None


@dataclass(frozen=True)
class Commit:
    """A commit, with file changes when fetched through the detail endpoint."""
    sha: str
    message: str
    author: Optional[CommitAuthor] = None
    files: List[FileChange] = field(default_factory=list)

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def authored_at(self) -> Optional[datetime]:
        return self.author.date if self.author else None


@dataclass(frozen=True)
class Issue:
    id: int
    number: int
    title: str
    state: str
    created_at: datetime
    updated_at: datetime
    body: Optional[str] = None
    html_url: Optional[str] = None


@dataclass
class Repository:
    """Repository entity, enriched in place by the enrichment pipeline.

    ``forks``, ``recent_commits``, ``issues`` and ``commit_count`` start empty
    and are only populated during enrichment. Forks are a depth-1 composition:
    a fork never carries forks of its own.
    """
    id: int
    name: str
    full_name: str
    owner: Owner
    html_url: str = ""
    stars: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    language: Optional[str] = None
    created_at: Optional[datetime] = None
    has_issues: bool = True
    is_fork: bool = False
    forks: List['Repository'] = field(default_factory=list)
    recent_commits: List[Commit] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)
    commit_count: int = 0

    @property
    def slug(self) -> str:
        """Returns the owner/name identifier."""
        return f"{self.owner.login}/{self.name}"

    def attach_forks(self, forks: List['Repository']) -> None:
        """Set the forks of this repository, enforcing the depth cap."""
        if self.is_fork:
            raise ValueError(f"{self.slug} is a fork and cannot carry forks")
        for fork in forks:
            if fork.forks:
                raise ValueError(f"Fork {fork.slug} already carries forks")
            fork.is_fork = True
        self.forks = list(forks)


@dataclass(frozen=True)
class ClassificationRules:
    """Tuning knobs for the source-code heuristic."""
    allowed_extensions: FrozenSet[str]
    min_source_ratio: float = 0.05
    max_depth: int = 3


@dataclass(frozen=True)
class SourceAnalysis:
    source_file_count: int
    total_file_count: int
    source_ratio: float
    is_source_repo: bool
    distinct_extensions: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class RepoMetrics:
    slug: str
    top_changed_files: List[str]


@dataclass
class LanguageReport:
    """Aggregated analytics for the top repositories of one language."""
    language: str
    repositories: List[Repository]
    total_stars: int
    total_forks: int
    total_open_issues: int
    total_commit_count: int
    total_new_fork_commits: int
    per_repo: List[RepoMetrics]


@dataclass(frozen=True)
class CrawlMetrics:
    """Metrics for a crawl operation."""
    languages_requested: int
    languages_reported: int
    repositories_enriched: int
    repositories_persisted: int
    duration_seconds: float
    errors_encountered: int
