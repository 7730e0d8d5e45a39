"""Main entry point for the language survey.

This script wires the adapters together and runs the application service.
"""
import asyncio
import sys
import logging
from dotenv import load_dotenv
from repo_survey.application.crawler_service import CrawlerService
from repo_survey.application.enrichment_service import EnrichmentPipeline
from repo_survey.application.source_classifier import SourceRepositorySelector
from repo_survey.config import AppConfig
from repo_survey.domain.exceptions import ConfigurationError, StorageError
from repo_survey.infrastructure.git_cloner import GitCloner
from repo_survey.infrastructure.github_client import GitHubClient
from repo_survey.infrastructure.postgres_repository import PostgresRepositoryStorage

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Execute the survey."""
    try:
        config = AppConfig.from_env()
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"Starting survey for languages: {', '.join(config.languages)}")

    # Initialize infrastructure components
    try:
        storage = PostgresRepositoryStorage(config.connection_string)
    except StorageError as e:
        logger.error(str(e))
        sys.exit(1)

    github_client = GitHubClient(
        config.github.token,
        api_base=config.github.api_base,
        graphql_url=config.github.graphql_url,
        user_agent=config.github.user_agent,
        timeout=config.github.request_timeout,
    )

    # Initialize application service
    crawler = CrawlerService(
        github_client=github_client,
        pipeline=EnrichmentPipeline(github_client, config.limits),
        selector=SourceRepositorySelector(GitCloner(), config.rules, config.clone_base_dir),
        storage=storage,
    )

    try:
        _, metrics = await crawler.run(config.languages)

        # Log results
        logger.info("=" * 50)
        logger.info("Survey Metrics:")
        logger.info(f"  Languages reported: {metrics.languages_reported}/{metrics.languages_requested}")
        logger.info(f"  Repositories enriched: {metrics.repositories_enriched}")
        logger.info(f"  Repositories persisted: {metrics.repositories_persisted}")
        logger.info(f"  Duration: {metrics.duration_seconds:.2f} seconds")
        logger.info(f"  Errors: {metrics.errors_encountered}")
        logger.info("=" * 50)

        # Verify storage
        stored_count = storage.get_repository_count()
        logger.info(f"Total repositories in database: {stored_count}")

    except Exception as e:
        logger.error(f"Survey failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await crawler.close()


if __name__ == "__main__":
    asyncio.run(main())
