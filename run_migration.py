"""
Migration runner for SQL files in migrations/
Usage: python run_migration.py [migration_file.sql ...]
With no arguments every file in migrations/ is applied in name order.
"""
import logging
import sys
from pathlib import Path

from sqlalchemy import text

from app.database import engine

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def split_statements(sql: str) -> list[str]:
    """Drop comment lines, then split on semicolons"""
    lines = [line for line in sql.splitlines() if not line.strip().startswith('--')]
    return [s.strip() for s in "\n".join(lines).split(';') if s.strip()]


def run_migration(migration_file: Path):
    """Run a SQL migration file in a single transaction"""
    if not migration_file.exists():
        logger.error(f"Migration file not found: {migration_file}")
        sys.exit(1)

    logger.info(f"Reading migration file: {migration_file}")
    statements = split_statements(migration_file.read_text())
    logger.info(f"Found {len(statements)} SQL statements to execute")

    with engine.begin() as conn:
        for i, stmt in enumerate(statements, 1):
            logger.info(f"Executing statement {i}/{len(statements)}...")
            conn.execute(text(stmt))

    logger.info(f"✅ {migration_file.name} applied")


if __name__ == "__main__":
    files = [Path(arg) for arg in sys.argv[1:]] or sorted(MIGRATIONS_DIR.glob("*.sql"))

    try:
        for migration in files:
            run_migration(migration)
    except Exception as e:
        logger.error(f"❌ Migration failed: {e}")
        sys.exit(1)
