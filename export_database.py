"""Export the persisted repositories to CSV."""
import sys
import csv
import logging
import psycopg2
from dotenv import load_dotenv
from repo_survey.config import get_connection_string

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    'language', 'full_name', 'html_url', 'star_count', 'forks_count',
    'open_issues_count', 'commit_count', 'stored_issues', 'crawled_at'
]


def export_to_csv(output_file: str = "repositories.csv"):
    """Export stored repositories, one row each with its stored issue count.

    Args:
        output_file: Path to output CSV file
    """
    conn_string = get_connection_string()

    try:
        conn = psycopg2.connect(conn_string)
        cursor = conn.cursor()

        cursor.execute("""
            SELECT r.language, r.full_name, r.html_url, r.star_count, r.forks_count,
                   r.open_issues_count, r.commit_count, COUNT(i.id), r.crawled_at
            FROM repositories r
            LEFT JOIN issues i ON i.repository_id = r.id
            GROUP BY r.id
            ORDER BY r.language, r.star_count DESC
        """)

        with open(output_file, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(EXPORT_COLUMNS)

            row_count = 0
            for row in cursor:
                writer.writerow(row)
                row_count += 1

        logger.info(f"Exported {row_count} repositories to {output_file}")

        cursor.close()
        conn.close()

    except Exception as e:
        logger.error(f"Error exporting database: {e}")
        sys.exit(1)


if __name__ == "__main__":
    output_file = sys.argv[1] if len(sys.argv) > 1 else "repositories.csv"
    export_to_csv(output_file)
