"""Crawler service orchestrating the per-language survey."""
import logging
import time
from typing import List, Optional, Tuple

from repo_survey.application.enrichment_service import EnrichmentPipeline
from repo_survey.application.metrics import build_language_report
from repo_survey.application.report_presenter import ReportPresenter
from repo_survey.application.source_classifier import SourceRepositorySelector
from repo_survey.domain.github_interface import IGitHubClient
from repo_survey.domain.models import CrawlMetrics, LanguageReport
from repo_survey.domain.repository_interface import IRepositoryStorage


logger = logging.getLogger(__name__)


class CrawlerService:
    """Application service for surveying the top repositories of each language.

    Coordinates enrichment, analytics, source selection and storage. A
    language whose search fails is skipped; a storage failure aborts the run.
    """

    def __init__(
        self,
        github_client: IGitHubClient,
        pipeline: EnrichmentPipeline,
        selector: SourceRepositorySelector,
        storage: IRepositoryStorage,
        presenter: Optional[ReportPresenter] = None,
    ):
        """Initialize crawler service.

        Args:
            github_client: GitHub API client implementation, closed by ``close``
            pipeline: Enrichment pipeline bound to the same client
            selector: Clone-and-classify loop
            storage: Repository storage implementation
            presenter: Report presenter; a default one is used when omitted
        """
        self._github_client = github_client
        self._pipeline = pipeline
        self._selector = selector
        self._storage = storage
        self._presenter = presenter or ReportPresenter()

    async def run(self, languages: List[str]) -> Tuple[List[LanguageReport], CrawlMetrics]:
        """Survey every language in order.

        Args:
            languages: Languages to survey

        Returns:
            Reports for the languages that could be fetched, plus run metrics

        Raises:
            StorageError: When a selected repository could not be persisted
        """
        start_time = time.time()
        reports: List[LanguageReport] = []
        enriched = 0
        persisted = 0
        errors = 0

        logger.info(f"Starting survey for {len(languages)} languages")

        for language in languages:
            logger.info(f"Processing {language} repositories...")
            try:
                repositories = await self._pipeline.fetch_language_data(language)
            except Exception as e:
                logger.error(f"Failed to process {language}: {e}")
                errors += 1
                continue

            enriched += len(repositories)
            report = build_language_report(language, repositories)
            self._presenter.log_summary(report)
            reports.append(report)

            selection = await self._selector.select(language, repositories)
            if selection is None:
                continue

            repository, analysis = selection
            logger.info(
                f"Best source code repository for {language}: {repository.slug} "
                f"({repository.stars} stars, {analysis.source_file_count} source files, "
                f"{analysis.source_ratio * 100:.1f}% source ratio, "
                f"extensions: {sorted(analysis.distinct_extensions)})"
            )
            self._storage.save_repository(repository)
            persisted += 1

        duration = time.time() - start_time
        metrics = CrawlMetrics(
            languages_requested=len(languages),
            languages_reported=len(reports),
            repositories_enriched=enriched,
            repositories_persisted=persisted,
            duration_seconds=duration,
            errors_encountered=errors,
        )

        logger.info(
            f"Survey completed: {len(reports)}/{len(languages)} languages, "
            f"{persisted} repositories persisted in {duration:.2f} seconds"
        )

        return reports, metrics

    async def close(self) -> None:
        """Close connections."""
        await self._github_client.close()
        self._storage.close()
