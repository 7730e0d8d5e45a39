"""Tests for the analytics functions."""
from factories import make_commit, make_file, make_issue, make_repo
from repo_survey.application.metrics import (
    aggregate,
    build_language_report,
    churn_score,
    new_fork_commit_count,
    top_changed_files,
)


def test_churn_score_falls_back_to_additions_and_deletions():
    """A zero ``changes`` count is replaced by additions + deletions."""
    assert churn_score(make_file("a", additions=10, deletions=5, changes=0)) == 15


def test_churn_score_prefers_nonzero_changes():
    """A nonzero ``changes`` count wins regardless of the line counts."""
    assert churn_score(make_file("a", additions=100, deletions=100, changes=12)) == 12


def test_top_changed_files_sums_across_commits():
    """Scores for the same file add up across commits."""
    repo = make_repo()
    repo.recent_commits = [
        make_commit("x", [make_file("file1", changes=15), make_file("file2", changes=7)]),
        make_commit("y", [make_file("file1", changes=30), make_file("file3", changes=11)]),
    ]

    assert top_changed_files(repo) == ["file1", "file3", "file2"]


def test_top_changed_files_caps_at_three_distinct_names():
    """More than three files still yields three distinct names."""
    repo = make_repo()
    repo.recent_commits = [
        make_commit("a", [make_file(f"f{i}", changes=i + 1) for i in range(6)]),
        make_commit("b", [make_file("f5", changes=1), make_file("f0", changes=1)]),
    ]

    top = top_changed_files(repo)

    assert top == ["f5", "f4", "f3"]
    assert len(set(top)) == len(top)


def test_top_changed_files_breaks_ties_by_filename():
    """Equal scores are ordered by ascending filename."""
    repo = make_repo()
    repo.recent_commits = [
        make_commit("a", [make_file("zeta", changes=5), make_file("alpha", changes=5)]),
        make_commit("b", [make_file("mid", additions=3, deletions=2)]),
    ]

    assert top_changed_files(repo) == ["alpha", "mid", "zeta"]


def test_top_changed_files_mixes_fallback_scores():
    """Fallback scores compete with explicit ``changes`` values."""
    repo = make_repo()
    repo.recent_commits = [
        make_commit("a", [make_file("file1.rs", additions=10, deletions=5)]),
        make_commit("b", [make_file("file2.rs", changes=5)]),
    ]

    assert top_changed_files(repo) == ["file1.rs", "file2.rs"]


def test_top_changed_files_empty_without_file_data():
    """Repositories with no commits or no file changes have no top files."""
    repo = make_repo()
    assert top_changed_files(repo) == []

    repo.recent_commits = [make_commit("a")]
    assert top_changed_files(repo) == []


def test_new_fork_commits_counts_strictly_later_dates():
    """Only commits authored after the fork was created count."""
    repo = make_repo()
    fork = make_repo(login="someone", created_at="2024-01-10T00:00:00Z")
    fork.recent_commits = [
        make_commit("a", date="2024-01-05T00:00:00Z"),
        make_commit("b", date="2024-01-15T00:00:00Z"),
        make_commit("c", date="2024-01-20T00:00:00Z"),
    ]
    repo.attach_forks([fork])

    assert new_fork_commit_count(repo) == 2


def test_new_fork_commits_accepts_bare_dates():
    """Date-only author stamps compare against an aware creation time."""
    repo = make_repo()
    fork = make_repo(login="someone", created_at="2024-01-10T00:00:00Z")
    fork.recent_commits = [
        make_commit("a", date="2024-01-05"),
        make_commit("b", date="2024-01-15"),
        make_commit("c", date="2024-01-20"),
    ]
    repo.attach_forks([fork])

    assert new_fork_commit_count(repo) == 2


def test_new_fork_commits_equal_timestamp_is_not_new():
    repo = make_repo()
    fork = make_repo(login="someone", created_at="2024-01-10T00:00:00Z")
    fork.recent_commits = [make_commit("a", date="2024-01-10T00:00:00Z")]
    repo.attach_forks([fork])

    assert new_fork_commit_count(repo) == 0


def test_new_fork_commits_fork_without_creation_date():
    """A fork that cannot be dated contributes nothing."""
    repo = make_repo()
    fork = make_repo(login="someone")
    fork.recent_commits = [make_commit("a", date="2030-01-01T00:00:00Z")]
    repo.attach_forks([fork])

    assert new_fork_commit_count(repo) == 0


def test_new_fork_commits_ignores_undated_commits():
    repo = make_repo()
    fork = make_repo(login="someone", created_at="2024-01-10T00:00:00Z")
    fork.recent_commits = [make_commit("a"), make_commit("b", date="2024-02-01T00:00:00Z")]
    repo.attach_forks([fork])

    assert new_fork_commit_count(repo) == 1


def test_new_fork_commits_only_first_twenty_forks():
    """Forks beyond the twentieth are not counted."""
    repo = make_repo()
    forks = []
    for index in range(25):
        fork = make_repo(login=f"user{index}", created_at="2024-01-01T00:00:00Z", repo_id=index + 10)
        fork.recent_commits = [make_commit(f"c{index}", date="2024-06-01T00:00:00Z")]
        forks.append(fork)
    repo.attach_forks(forks)

    assert new_fork_commit_count(repo) == 20


def test_new_fork_commits_sums_over_forks():
    repo = make_repo()
    first = make_repo(login="one", created_at="2024-01-01T00:00:00Z")
    first.recent_commits = [
        make_commit("a", date="2024-02-01T00:00:00Z"),
        make_commit("b", date="2024-03-01T00:00:00Z"),
    ]
    second = make_repo(login="two", created_at="2024-05-01T00:00:00Z")
    second.recent_commits = [
        make_commit("c", date="2024-04-01T00:00:00Z"),
        make_commit("d", date="2024-06-01T00:00:00Z"),
    ]
    repo.attach_forks([first, second])

    assert new_fork_commit_count(repo) == 3


def test_language_report_totals():
    """Totals are plain sums and per-repo metrics keep input order."""
    repos = [
        make_repo(name="a", stars=100, forks_count=10),
        make_repo(name="b", stars=200, forks_count=15),
        make_repo(name="c", stars=50, forks_count=5),
    ]
    repos[0].issues = [make_issue(1), make_issue(2)]
    repos[2].issues = [make_issue(3)]
    repos[1].commit_count = 42
    repos[1].recent_commits = [make_commit("x", [make_file("main.rs", changes=3)])]

    report = build_language_report("Rust", repos)

    assert report.language == "Rust"
    assert report.total_stars == 350
    assert report.total_forks == 30
    assert report.total_open_issues == 3
    assert report.total_commit_count == 42
    assert report.total_new_fork_commits == 0
    assert [m.slug for m in report.per_repo] == ["octocat/a", "octocat/b", "octocat/c"]
    assert report.per_repo[1].top_changed_files == ["main.rs"]


def test_aggregate_of_nothing_is_zero():
    assert aggregate([]) == {
        "total_stars": 0,
        "total_forks": 0,
        "total_open_issues": 0,
        "total_commit_count": 0,
        "total_new_fork_commits": 0,
        "per_repo": [],
    }


def test_aggregate_returns_plain_dict():
    repos = [make_repo(name="a", stars=100), make_repo(name="b", stars=200), make_repo(name="c", stars=50)]

    summary = aggregate(repos)

    assert summary["total_stars"] == 350
    assert summary["per_repo"][0] == {"slug": "octocat/a", "top_changed_files": []}
