from __future__ import annotations

import sys

import click

from aycl_api.core.config import get_settings
from aycl_api.core.database import Database
from aycl_api.db.migrate import run_migrations
from aycl_api.db.seed import run_seeds
from aycl_api.logging import configure_logging


def _database() -> Database:
    settings = get_settings()
    return Database(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
    )


@click.group()
def main() -> None:
    """Database maintenance commands."""
    configure_logging(get_settings().log_level)


@main.command()
@click.option(
    "--directory",
    "-d",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory of .sql migration files (defaults to MIGRATIONS_DIR).",
)
def migrate(directory: str | None) -> None:
    """Apply pending schema migrations."""
    database = _database()
    try:
        applied = run_migrations(database, directory or get_settings().migrations_dir)
    except Exception:
        click.echo("Migration failed", err=True)
        sys.exit(1)
    finally:
        database.dispose()
    click.echo(f"Applied {len(applied)} migration(s)")


@main.command()
@click.option(
    "--directory",
    "-d",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory of .sql seed files (defaults to SEEDS_DIR).",
)
def seed(directory: str | None) -> None:
    """Load seed data."""
    database = _database()
    try:
        executed = run_seeds(database, directory or get_settings().seeds_dir)
    except Exception:
        click.echo("Seeding failed", err=True)
        sys.exit(1)
    finally:
        database.dispose()
    click.echo(f"Executed {len(executed)} seed file(s)")


if __name__ == "__main__":
    main()
