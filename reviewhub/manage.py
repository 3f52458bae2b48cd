# reviewhub/manage.py
"""Maintenance commands. Run as `python -m reviewhub.manage <command>`."""
import argparse
import sys

from reviewhub.core.config import settings
from reviewhub.core.db import Database
from reviewhub.services.repository_ownership import repair_repository_ownership
from reviewhub.services.schema_repair import fix_repository_schema


def init_db(database: Database) -> int:
    database.create_all()
    print(f"Tables created on {database.engine.url.render_as_string(hide_password=True)}")
    return 0


def fix_schema(database: Database) -> int:
    added = fix_repository_schema(database.engine)
    if added:
        print("Added columns: " + ", ".join(added))
    else:
        print("Repository schema already up to date")
    return 0


def fix_repositories(database: Database) -> int:
    db = database.session()
    try:
        result = repair_repository_ownership(db)
    finally:
        db.close()

    if result.error:
        print(f"Error fixing repositories: {result.error}", file=sys.stderr)
        return 1

    for r in result.results:
        line = f"{r.status:8} {r.repository}"
        if r.new_user_id is not None:
            line += f" ({r.old_user_id} -> {r.new_user_id})"
        elif r.reason:
            line += f" ({r.reason})"
        print(line)
    print(f"Processed {result.processed} repositories")
    return 0


COMMANDS = {
    "init-db": init_db,
    "fix-schema": fix_schema,
    "fix-repositories": fix_repositories,
}


def main(argv=None, database: Database | None = None) -> int:
    parser = argparse.ArgumentParser(prog="reviewhub.manage", description=__doc__)
    parser.add_argument("command", choices=sorted(COMMANDS))
    parser.add_argument("--database-url", default=None, help="overrides DATABASE_URL")
    args = parser.parse_args(argv)

    if database is None:
        database = Database(args.database_url or settings.DATABASE_URL)
    return COMMANDS[args.command](database)


if __name__ == "__main__":
    sys.exit(main())
