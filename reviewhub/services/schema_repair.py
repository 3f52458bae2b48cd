# reviewhub/services/schema_repair.py
from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from reviewhub.core.logger import get_logger

logger = get_logger(__name__)

# Columns added to `repositories` after the first deployments: (name, DDL type, default)
REPOSITORY_COLUMNS = [
    ("description", "TEXT", "NULL"),
    ("language", "TEXT", "NULL"),
    ("is_private", "BOOLEAN", "false"),
    ("url", "TEXT", "NULL"),
]


def repository_columns(engine: Engine) -> list[str]:
    inspector = inspect(engine)
    if not inspector.has_table("repositories"):
        return []
    return [c["name"].lower() for c in inspector.get_columns("repositories")]


def fix_repository_schema(engine: Engine) -> list[str]:
    """
    Add any missing optional repository columns and backfill `url`.

    Meant to be run from the maintenance CLI, never from a request handler.
    Returns the names of the columns that were added.
    """
    cols = repository_columns(engine)
    if not cols:
        logger.warning("repositories table does not exist; run init-db first")
        return []

    added = []
    for name, ddl_type, default in REPOSITORY_COLUMNS:
        if name in cols:
            continue
        logger.info("Adding missing column: repositories.%s", name)
        with engine.begin() as conn:
            conn.execute(text(f"ALTER TABLE repositories ADD COLUMN {name} {ddl_type} DEFAULT {default}"))
        added.append(name)

    if "url" in added:
        with engine.begin() as conn:
            conn.execute(text(
                "UPDATE repositories SET url = 'https://github.com/' || full_name WHERE url IS NULL"
            ))
        logger.info("Backfilled repository urls")

    return added
