"""Verify that the setup is correct before running the survey."""
import shutil
import sys
import psycopg2
from dotenv import load_dotenv
from repo_survey.config import AppConfig, get_connection_string
from repo_survey.domain.exceptions import ConfigurationError

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


def check_configuration():
    """Check that the environment parses into a valid configuration."""
    print("Checking configuration...")

    try:
        config = AppConfig.from_env()
    except ConfigurationError as e:
        print(f"FAIL {e}")
        return False

    print("OK   configuration is valid")
    print(f"     languages: {', '.join(config.languages)}")
    print(f"     min source ratio: {config.rules.min_source_ratio}")
    print(f"     clone directory: {config.clone_base_dir}")
    return True


def check_database():
    """Check PostgreSQL connection and that the survey tables exist."""
    print("\nChecking database...")

    try:
        conn = psycopg2.connect(get_connection_string())
    except Exception as e:
        print(f"FAIL could not connect to PostgreSQL: {e}")
        return False

    try:
        cursor = conn.cursor()
        cursor.execute("""
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = 'public'
              AND table_name IN ('owners', 'repositories', 'issues')
        """)
        found = {row[0] for row in cursor.fetchall()}
        cursor.close()
    finally:
        conn.close()

    missing = {'owners', 'repositories', 'issues'} - found
    if missing:
        print(f"FAIL missing tables: {', '.join(sorted(missing))}. Run 'python setup_postgres.py' first.")
        return False

    print("OK   database schema exists")
    return True


def check_git():
    """Check that the git executable used for cloning is available."""
    print("\nChecking git...")

    if shutil.which("git") is None:
        print("FAIL git executable not found on PATH")
        return False

    print("OK   git is available")
    return True


def main():
    """Run all verification checks."""
    checks = [
        ("Configuration", check_configuration),
        ("Database", check_database),
        ("Git", check_git),
    ]

    results = {}
    for name, check_func in checks:
        try:
            results[name] = check_func()
        except Exception as e:
            print(f"FAIL {name} check failed with exception: {e}")
            results[name] = False

    print("\nVerification Summary")
    for name, passed in results.items():
        print(f"{'PASS' if passed else 'FAIL'}: {name}")

    if all(results.values()):
        print("\nAll checks passed. Next step: python collect_languages.py")
        sys.exit(0)

    sys.exit(1)


if __name__ == "__main__":
    main()
