"""Simple migration runner for SQLite using provided SQL files in migrations/"""
from pathlib import Path
import sqlite3
import sys

from sqlalchemy.engine import make_url

BASE = Path(__file__).parent
if str(BASE) not in sys.path:
    sys.path.insert(0, str(BASE))
from course_library.config import settings

MIGRATIONS = sorted((BASE / "migrations").glob("*.sql"))


def sqlite_path(database_url: str) -> str:
    """Return the file path of a `sqlite:///...` URL."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database:
        raise SystemExit(f"run_migrations only supports file-based SQLite URLs, got {database_url!r}")
    return url.database


def run():
    """Execute pending SQL migration files against the configured SQLite database.

    Files under `migrations/` are applied in lexical order and recorded
    in a `schema_migrations` table so re-running is a no-op.
    """
    db_path = sqlite_path(settings.DATABASE_URL)
    print("Using database:", db_path)
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute("CREATE TABLE IF NOT EXISTS schema_migrations (name TEXT PRIMARY KEY)")
    applied = {row[0] for row in conn.execute("SELECT name FROM schema_migrations")}
    for m in MIGRATIONS:
        if m.name in applied:
            continue
        print("Applying:", m.name)
        conn.executescript(m.read_text(encoding="utf-8"))
        conn.execute("INSERT INTO schema_migrations (name) VALUES (?)", (m.name,))
    conn.commit()
    conn.close()
    print("Migrations applied.")

if __name__ == '__main__':
    run()
