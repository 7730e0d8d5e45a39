"""Translation of GitHub API payloads into domain entities.

Each record declares which fields are required (missing or malformed ones
raise ``PayloadError``) and the default of every optional field. A malformed
optional value falls back to its default.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from repo_survey.domain.exceptions import PayloadError
from repo_survey.domain.models import (
    Commit,
    CommitAuthor,
    FileChange,
    Issue,
    Owner,
    Repository,
    parse_timestamp,
)


logger = logging.getLogger(__name__)


def _as_object(value: Any, context: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise PayloadError(f"Expected {context} to be an object")
    return value


def _as_list(value: Any, context: str) -> List[Any]:
    if not isinstance(value, list):
        raise PayloadError(f"Expected {context} to be an array")
    return value


def _required(data: Mapping[str, Any], key: str, context: str) -> Any:
    value = data.get(key)
    if value is None:
        raise PayloadError(f"{context} is missing required field '{key}'")
    return value


def _int(data: Mapping[str, Any], key: str, default: int = 0) -> int:
    value = data.get(key)
    return int(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else default


def _str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _timestamp(data: Mapping[str, Any], key: str, context: str, required: bool = False) -> Optional[datetime]:
    raw = _required(data, key, context) if required else _str(data, key)
    try:
        return parse_timestamp(raw)
    except (AttributeError, TypeError, ValueError) as e:
        if required:
            raise PayloadError(f"{context} has malformed '{key}': {raw!r}") from e
        logger.warning(f"Ignoring malformed '{key}' in {context}: {raw!r}")
        return None


def parse_owner(payload: Any) -> Owner:
    data = _as_object(payload, "owner")
    return Owner(
        login=_required(data, "login", "owner"),
        id=int(_required(data, "id", "owner")),
        html_url=_str(data, "html_url") or "",
        site_admin=bool(data.get("site_admin", False)),
    )


def parse_repository(payload: Any) -> Repository:
    """Build a Repository from a REST repository object (search hit or fork)."""
    data = _as_object(payload, "repository")
    has_issues = data.get("has_issues")
    return Repository(
        id=int(_required(data, "id", "repository")),
        name=_required(data, "name", "repository"),
        full_name=_required(data, "full_name", "repository"),
        owner=parse_owner(_required(data, "owner", "repository")),
        html_url=_str(data, "html_url") or "",
        stars=_int(data, "stargazers_count"),
        forks_count=_int(data, "forks_count"),
        open_issues_count=_int(data, "open_issues_count"),
        language=_str(data, "language"),
        created_at=_timestamp(data, "created_at", "repository"),
        has_issues=has_issues if isinstance(has_issues, bool) else True,
        is_fork=bool(data.get("fork", False)),
    )


def parse_search_node(payload: Any) -> Repository:
    """Build a Repository from a GraphQL ``search`` node."""
    data = _as_object(payload, "search node")
    owner = _as_object(_required(data, "owner", "search node"), "owner")
    language = data.get("primaryLanguage") or {}
    issues = data.get("issues") or {}
    return Repository(
        id=int(_required(data, "databaseId", "search node")),
        name=_required(data, "name", "search node"),
        full_name=_required(data, "nameWithOwner", "search node"),
        owner=Owner(
            login=_required(owner, "login", "owner"),
            id=_int(owner, "databaseId"),
            html_url=_str(owner, "url") or "",
        ),
        html_url=_str(data, "url") or "",
        stars=_int(data, "stargazerCount"),
        forks_count=_int(data, "forkCount"),
        open_issues_count=_int(issues, "totalCount"),
        language=_str(language, "name"),
        created_at=_timestamp(data, "createdAt", "search node"),
        has_issues=bool(data.get("hasIssuesEnabled", True)),
        is_fork=bool(data.get("isFork", False)),
    )


def parse_file_change(payload: Any) -> FileChange:
    data = _as_object(payload, "commit file")
    return FileChange(
        filename=_required(data, "filename", "commit file"),
        additions=_int(data, "additions"),
        deletions=_int(data, "deletions"),
        changes=_int(data, "changes"),
        status=_str(data, "status") or "",
    )


def parse_commit(payload: Any) -> Commit:
    """Build a Commit from a list or detail response item.

    ``files`` is only present on the detail endpoint and defaults to empty.
    """
    data = _as_object(payload, "commit")
    summary = _as_object(_required(data, "commit", "commit"), "commit summary")
    author_data = summary.get("author")
    author = None
    if author_data is not None:
        author_data = _as_object(author_data, "commit author")
        author = CommitAuthor(
            name=_str(author_data, "name"),
            email=_str(author_data, "email"),
            date=_timestamp(author_data, "date", "commit author"),
        )
    files = data.get("files") or []
    return Commit(
        sha=_required(data, "sha", "commit"),
        message=_required(summary, "message", "commit summary"),
        author=author,
        files=[parse_file_change(item) for item in _as_list(files, "commit files")],
    )


def parse_issue(payload: Any) -> Issue:
    data = _as_object(payload, "issue")
    return Issue(
        id=int(_required(data, "id", "issue")),
        number=int(_required(data, "number", "issue")),
        title=_required(data, "title", "issue"),
        state=_required(data, "state", "issue"),
        created_at=_timestamp(data, "created_at", "issue", required=True),
        updated_at=_timestamp(data, "updated_at", "issue", required=True),
        body=_str(data, "body"),
        html_url=_str(data, "html_url"),
    )


def is_pull_request(payload: Dict[str, Any]) -> bool:
    """The issues endpoint also lists pull requests; they carry a 'pull_request' key."""
    return isinstance(payload, Mapping) and "pull_request" in payload


def parse_repositories(payload: Any) -> List[Repository]:
    return [parse_repository(item) for item in _as_list(payload, "repositories response")]


def parse_commits(payload: Any) -> List[Commit]:
    return [parse_commit(item) for item in _as_list(payload, "commits response")]


def parse_issues(payload: Any) -> List[Issue]:
    return [
        parse_issue(item)
        for item in _as_list(payload, "issues response")
        if not is_pull_request(item)
    ]
