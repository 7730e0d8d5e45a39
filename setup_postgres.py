"""Database initialization script.

Creates the owners, repositories and issues tables used by the survey store.
"""
import sys
import psycopg2
import logging
from dotenv import load_dotenv
from repo_survey.config import get_connection_string

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS owners (
        login VARCHAR(255) PRIMARY KEY,
        github_id BIGINT NOT NULL,
        html_url TEXT NOT NULL DEFAULT '',
        site_admin BOOLEAN NOT NULL DEFAULT FALSE,
        updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS repositories (
        id SERIAL PRIMARY KEY,
        github_id BIGINT NOT NULL,
        owner VARCHAR(255) NOT NULL REFERENCES owners(login),
        name VARCHAR(255) NOT NULL,
        full_name VARCHAR(511) NOT NULL,
        html_url TEXT NOT NULL DEFAULT '',
        language VARCHAR(100),
        star_count INTEGER NOT NULL DEFAULT 0,
        forks_count INTEGER NOT NULL DEFAULT 0,
        open_issues_count INTEGER NOT NULL DEFAULT 0,
        commit_count INTEGER NOT NULL DEFAULT 0,
        repo_created_at TIMESTAMPTZ,
        crawled_at TIMESTAMPTZ NOT NULL,
        created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
        CONSTRAINT repositories_owner_name_unique UNIQUE (owner, name)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_repositories_language_stars
    ON repositories(language, star_count DESC)
    """,
    """
    CREATE TABLE IF NOT EXISTS issues (
        id SERIAL PRIMARY KEY,
        repository_id INTEGER NOT NULL REFERENCES repositories(id) ON DELETE CASCADE,
        github_id BIGINT NOT NULL,
        issue_number INTEGER NOT NULL,
        title TEXT NOT NULL,
        body TEXT,
        state VARCHAR(50) NOT NULL,
        html_url TEXT,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL,
        CONSTRAINT issues_repo_number_unique UNIQUE (repository_id, issue_number)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_issues_repository_id
    ON issues(repository_id)
    """,
]


def create_schema(conn) -> None:
    """Create database schema.

    Repositories reference their owner by login; issues hang off repositories
    and are replaced wholesale whenever their repository is saved again.
    """
    cursor = conn.cursor()

    try:
        for statement in SCHEMA_STATEMENTS:
            cursor.execute(statement)

        conn.commit()
        logger.info("Database schema created successfully")

    except Exception as e:
        conn.rollback()
        logger.error(f"Error creating schema: {e}")
        raise
    finally:
        cursor.close()


def main():
    """Initialize the database."""
    try:
        conn_string = get_connection_string()
        logger.info("Connecting to database...")

        conn = psycopg2.connect(conn_string)
        conn.autocommit = False

        create_schema(conn)

        conn.close()
        logger.info("Database initialization completed successfully")

    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
