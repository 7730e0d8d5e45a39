"""Logs a human-readable summary of a language report."""
import logging

from repo_survey.domain.models import LanguageReport


logger = logging.getLogger(__name__)


class ReportPresenter:
    """Formats language reports for the console log."""

    def log_summary(self, report: LanguageReport) -> None:
        logger.info("=" * 50)
        logger.info(f"Language: {report.language}")
        logger.info(f"Total stars: {report.total_stars}")
        logger.info(f"Total forks: {report.total_forks}")
        logger.info("Top-3 most modified files per repo:")
        for metrics in report.per_repo:
            logger.info(f"  Repo name: {metrics.slug}")
            if not metrics.top_changed_files:
                logger.info("    No files modified in recent commits")
            for index, filename in enumerate(metrics.top_changed_files, start=1):
                logger.info(f"    File name{index}: {filename}")
        logger.info(f"New commits in forked repos: {report.total_new_fork_commits}")
        logger.info(f"Open issues in top repos: {report.total_open_issues}")
        logger.info("=" * 50)
