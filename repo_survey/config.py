"""Configuration loaded from environment variables.

Entry scripts call ``load_dotenv`` first, so values may also come from a
``.env`` or ``env`` file.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, FrozenSet, List, Mapping, Optional, TypeVar

from repo_survey.application.enrichment_service import EnrichmentLimits
from repo_survey.application.source_classifier import DEFAULT_SOURCE_EXTENSIONS
from repo_survey.domain.exceptions import ConfigurationError
from repo_survey.domain.models import ClassificationRules


T = TypeVar("T")

DEFAULT_LANGUAGES = ["Java", "C", "C++", "Rust"]


def _parse(environ: Mapping[str, str], key: str, default: T, convert: Callable[[str], T]) -> T:
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return convert(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"Invalid value for {key}: {raw!r}") from e


def _split(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def get_connection_string(environ: Optional[Mapping[str, str]] = None) -> str:
    """Build PostgreSQL connection string from environment variables."""
    environ = os.environ if environ is None else environ
    host = environ.get("POSTGRES_HOST", "localhost")
    port = environ.get("POSTGRES_PORT", "5432")
    database = environ.get("POSTGRES_DB", "github_crawler")
    user = environ.get("POSTGRES_USER", "postgres")
    password = environ.get("POSTGRES_PASSWORD", "postgres")

    return f"host={host} port={port} dbname={database} user={user} password={password}"


@dataclass(frozen=True)
class GitHubSettings:
    token: str
    api_base: str = "https://api.github.com"
    graphql_url: str = "https://api.github.com/graphql"
    user_agent: str = "repo-survey/0.1"
    request_timeout: float = 30.0


@dataclass(frozen=True)
class AppConfig:
    """Everything the survey needs to run."""
    github: GitHubSettings
    languages: List[str] = field(default_factory=lambda: list(DEFAULT_LANGUAGES))
    limits: EnrichmentLimits = field(default_factory=EnrichmentLimits)
    rules: ClassificationRules = field(
        default_factory=lambda: ClassificationRules(allowed_extensions=DEFAULT_SOURCE_EXTENSIONS)
    )
    clone_base_dir: Path = Path("cloned_repos")
    connection_string: str = field(default_factory=lambda: get_connection_string({}))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Read configuration from ``environ`` (defaults to ``os.environ``).

        Raises:
            ConfigurationError: When GITHUB_TOKEN is missing or a value is malformed
        """
        environ = os.environ if environ is None else environ

        token = environ.get("GITHUB_TOKEN")
        if not token:
            raise ConfigurationError("GITHUB_TOKEN environment variable is required")

        github = GitHubSettings(
            token=token,
            api_base=environ.get("GITHUB_API_BASE", GitHubSettings.api_base),
            graphql_url=environ.get("GITHUB_GRAPHQL_URL", GitHubSettings.graphql_url),
            user_agent=environ.get("GITHUB_USER_AGENT", GitHubSettings.user_agent),
            request_timeout=_parse(environ, "REQUEST_TIMEOUT", GitHubSettings.request_timeout, float),
        )
        if github.request_timeout <= 0:
            raise ConfigurationError("REQUEST_TIMEOUT must be positive")

        try:
            limits = EnrichmentLimits(
                search_limit=_parse(environ, "TOP_REPOSITORIES", 10, int),
                max_detailed_commits=_parse(environ, "MAX_DETAILED_COMMITS", 50, int),
                max_forks_with_commits=_parse(environ, "MAX_FORKS_WITH_COMMITS", 20, int),
                max_concurrency=_parse(environ, "MAX_CONCURRENCY", 5, int),
            )
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        extensions: FrozenSet[str] = _parse(
            environ,
            "CLONE_SOURCE_EXTENSIONS",
            DEFAULT_SOURCE_EXTENSIONS,
            lambda raw: frozenset(ext.lower().lstrip(".") for ext in _split(raw)),
        )
        rules = ClassificationRules(
            allowed_extensions=extensions,
            min_source_ratio=_parse(environ, "CLONE_MIN_SOURCE_RATIO", 0.05, float),
            max_depth=_parse(environ, "CLONE_MAX_DEPTH", 3, int),
        )

        return cls(
            github=github,
            languages=_parse(environ, "TARGET_LANGUAGES", list(DEFAULT_LANGUAGES), _split),
            limits=limits,
            rules=rules,
            clone_base_dir=Path(environ.get("CLONE_BASE_DIR", "cloned_repos")),
            connection_string=get_connection_string(environ),
        )
