"""PostgreSQL repository implementation for data persistence."""
import logging
from datetime import datetime, timezone
import psycopg2
from psycopg2.extras import execute_values
from repo_survey.domain.exceptions import StorageError
from repo_survey.domain.models import Repository
from repo_survey.domain.repository_interface import IRepositoryStorage


logger = logging.getLogger(__name__)


UPSERT_OWNER = """
    INSERT INTO owners (login, github_id, html_url, site_admin, updated_at)
    VALUES (%s, %s, %s, %s, CURRENT_TIMESTAMP)
    ON CONFLICT (login)
    DO UPDATE SET
        github_id = EXCLUDED.github_id,
        html_url = EXCLUDED.html_url,
        site_admin = EXCLUDED.site_admin,
        updated_at = CURRENT_TIMESTAMP
"""

UPSERT_REPOSITORY = """
    INSERT INTO repositories (
        github_id, owner, name, full_name, html_url, language,
        star_count, forks_count, open_issues_count, commit_count,
        repo_created_at, crawled_at, updated_at
    )
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, CURRENT_TIMESTAMP)
    ON CONFLICT (owner, name)
    DO UPDATE SET
        github_id = EXCLUDED.github_id,
        html_url = EXCLUDED.html_url,
        language = EXCLUDED.language,
        star_count = EXCLUDED.star_count,
        forks_count = EXCLUDED.forks_count,
        open_issues_count = EXCLUDED.open_issues_count,
        commit_count = EXCLUDED.commit_count,
        repo_created_at = EXCLUDED.repo_created_at,
        crawled_at = EXCLUDED.crawled_at,
        updated_at = CURRENT_TIMESTAMP
    RETURNING id
"""

INSERT_ISSUES = """
    INSERT INTO issues (
        repository_id, github_id, issue_number, title, body, state,
        html_url, created_at, updated_at
    )
    VALUES %s
"""


class PostgresRepositoryStorage(IRepositoryStorage):
    """PostgreSQL implementation of repository storage.

    A repository is written together with its owner and its open issues in a
    single transaction; the issue set of a repository is replaced on every save.
    """

    def __init__(self, connection_string: str):
        """Initialize PostgreSQL connection.

        Args:
            connection_string: PostgreSQL connection string

        Raises:
            StorageError: When the database is unreachable
        """
        self._connection_string = connection_string
        try:
            self._conn = psycopg2.connect(connection_string)
        except psycopg2.Error as e:
            raise StorageError(f"Could not connect to PostgreSQL: {e}") from e
        self._conn.autocommit = False
        logger.info("Connected to PostgreSQL database")

    def save_repository(self, repository: Repository) -> None:
        """Upsert a repository, its owner and its open issues.

        Args:
            repository: Enriched Repository entity to persist

        Raises:
            StorageError: When any statement fails; the transaction is rolled back
        """
        cursor = self._conn.cursor()
        owner = repository.owner

        try:
            cursor.execute(UPSERT_OWNER, (owner.login, owner.id, owner.html_url, owner.site_admin))
            cursor.execute(
                UPSERT_REPOSITORY,
                (
                    repository.id,
                    owner.login,
                    repository.name,
                    repository.full_name,
                    repository.html_url,
                    repository.language,
                    repository.stars,
                    repository.forks_count,
                    repository.open_issues_count,
                    repository.commit_count,
                    repository.created_at,
                    datetime.now(timezone.utc),
                )
            )
            repository_id = cursor.fetchone()[0]

            cursor.execute("DELETE FROM issues WHERE repository_id = %s", (repository_id,))
            if repository.issues:
                values = [
                    (
                        repository_id,
                        issue.id,
                        issue.number,
                        issue.title,
                        issue.body,
                        issue.state,
                        issue.html_url,
                        issue.created_at,
                        issue.updated_at,
                    )
                    for issue in repository.issues
                ]
                execute_values(cursor, INSERT_ISSUES, values)

            self._conn.commit()
            logger.info(
                f"Saved {repository.slug} with {len(repository.issues)} open issues to database"
            )

        except Exception as e:
            self._conn.rollback()
            logger.error(f"Error saving repository {repository.slug}: {e}")
            raise StorageError(f"Failed to persist {repository.slug}: {e}") from e
        finally:
            cursor.close()

    def get_repository_count(self) -> int:
        """Get the total number of repositories in storage.

        Returns:
            Count of repositories
        """
        cursor = self._conn.cursor()
        try:
            cursor.execute("SELECT COUNT(*) FROM repositories")
            count = cursor.fetchone()[0]
            return count
        finally:
            cursor.close()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            logger.info("Closed PostgreSQL connection")
