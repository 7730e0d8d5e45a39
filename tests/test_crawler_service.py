"""Tests for the end-to-end crawler service."""
import asyncio

import pytest

from factories import (
    FakeCloner,
    FakeGitHubClient,
    FakeStorage,
    forge_failure,
    make_commit,
    make_file,
    make_repo,
)
from repo_survey.application.crawler_service import CrawlerService
from repo_survey.application.enrichment_service import EnrichmentPipeline
from repo_survey.application.source_classifier import SourceRepositorySelector
from repo_survey.domain.exceptions import StorageError
from repo_survey.domain.models import ClassificationRules


class PerLanguageClient(FakeGitHubClient):
    """Search results per language; a language mapped to an exception fails."""

    def __init__(self, by_language, **kwargs):
        super().__init__(**kwargs)
        self.by_language = by_language

    async def search_top(self, language, limit):
        result = self.by_language[language]
        if isinstance(result, BaseException):
            raise result
        return result


def build_service(client, cloner, storage, tmp_path):
    selector = SourceRepositorySelector(
        cloner,
        ClassificationRules(allowed_extensions=frozenset({"rs", "java"}), min_source_ratio=0.5),
        tmp_path,
    )
    return CrawlerService(client, EnrichmentPipeline(client), selector, storage)


def test_failed_language_is_skipped(tmp_path):
    """A search failure drops that language only."""
    rust = make_repo(login="rust-lang", name="rust", stars=100)
    rust_detail = make_commit("a1", [make_file("src/lib.rs", changes=3)])
    client = PerLanguageClient(
        {"Java": forge_failure("search down"), "Rust": [rust]},
        commits={"rust-lang/rust": [make_commit("a1")]},
        details={"a1": rust_detail},
    )
    storage = FakeStorage()
    cloner = FakeCloner({"rust-lang/rust": ["src/lib.rs", "Cargo.lock"]})

    reports, metrics = asyncio.run(
        build_service(client, cloner, storage, tmp_path).run(["Java", "Rust"])
    )

    assert [report.language for report in reports] == ["Rust"]
    assert reports[0].per_repo[0].top_changed_files == ["src/lib.rs"]
    assert storage.saved == [rust]
    assert metrics.languages_requested == 2
    assert metrics.languages_reported == 1
    assert metrics.repositories_persisted == 1
    assert metrics.errors_encountered == 1


def test_nothing_persisted_without_source_candidate(tmp_path):
    docs = make_repo(login="someone", name="interview-notes", stars=100)
    client = PerLanguageClient({"Java": [docs]})
    storage = FakeStorage()
    cloner = FakeCloner({"someone/interview-notes": ["README.md"]})

    reports, metrics = asyncio.run(build_service(client, cloner, storage, tmp_path).run(["Java"]))

    assert len(reports) == 1
    assert storage.saved == []
    assert metrics.repositories_persisted == 0


def test_storage_failure_propagates(tmp_path):
    repo = make_repo(name="engine", stars=5)
    client = PerLanguageClient({"Rust": [repo]})
    cloner = FakeCloner({"octocat/engine": ["main.rs"]})

    with pytest.raises(StorageError):
        asyncio.run(build_service(client, cloner, FakeStorage(fail=True), tmp_path).run(["Rust"]))


def test_close_releases_client_and_storage(tmp_path):
    client = PerLanguageClient({})
    storage = FakeStorage()
    service = build_service(client, FakeCloner({}), storage, tmp_path)

    asyncio.run(service.close())

    assert client.closed
    assert storage.closed
