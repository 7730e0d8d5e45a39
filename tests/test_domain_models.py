"""Tests for domain models."""
from datetime import datetime, timezone

import pytest

from repo_survey.domain.models import (
    Commit,
    CommitAuthor,
    Owner,
    Repository,
    parse_timestamp,
)


def make_repository(login="facebook", name="react"):
    return Repository(
        id=10270250,
        name=name,
        full_name=f"{login}/{name}",
        owner=Owner(login=login, id=69631),
        stars=200000,
    )


def test_repository_creation():
    """Test creating a Repository entity with empty derived collections."""
    repo = make_repository()

    assert repo.owner.login == "facebook"
    assert repo.name == "react"
    assert repo.slug == "facebook/react"
    assert repo.stars == 200000
    assert repo.has_issues is True
    assert repo.forks == []
    assert repo.recent_commits == []
    assert repo.issues == []
    assert repo.commit_count == 0


def test_attach_forks_marks_forks():
    """Attached forks are flagged and kept in order."""
    repo = make_repository()
    forks = [make_repository(login="alice"), make_repository(login="bob")]

    repo.attach_forks(forks)

    assert [fork.slug for fork in repo.forks] == ["alice/react", "bob/react"]
    assert all(fork.is_fork for fork in repo.forks)


def test_fork_cannot_carry_forks():
    """Forks are capped at depth one."""
    repo = make_repository()
    fork = make_repository(login="alice")
    repo.attach_forks([fork])

    with pytest.raises(ValueError):
        fork.attach_forks([make_repository(login="carol")])


def test_fork_with_forks_cannot_be_attached():
    nested = make_repository(login="alice")
    nested.forks = [make_repository(login="carol")]

    with pytest.raises(ValueError):
        make_repository().attach_forks([nested])


def test_parse_timestamp_variants():
    """Zulu, offset and bare-date forms all become aware datetimes."""
    assert parse_timestamp("2024-01-10T00:00:00Z") == datetime(2024, 1, 10, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-10") == datetime(2024, 1, 10, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-10T02:00:00+02:00") == datetime(2024, 1, 10, tzinfo=timezone.utc)
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None


def test_commit_helpers():
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    commit = Commit(sha="0123456789", message="init", author=CommitAuthor(date=stamp))

    assert commit.short_sha == "0123456"
    assert commit.authored_at == stamp
    assert Commit(sha="1", message="m").authored_at is None
