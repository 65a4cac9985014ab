"""SQL-file schema migrations.

Files in the migrations directory are applied in file-name order. Each file
runs in its own transaction together with the row that records it in
``schema_migrations``, so a file is either fully applied and recorded or not
at all. The first failure stops the run.
"""

from __future__ import annotations

import logging
from pathlib import Path

import sqlparse
from sqlalchemy import Column, DateTime, Engine, Integer, MetaData, String, Table, insert, select

from aycl_api.core.database import Database, utcnow
from aycl_api.metrics import observe_migration_applied


logger = logging.getLogger("aycl_api.migrations")

metadata = MetaData()

schema_migrations = Table(
    "schema_migrations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("executed_at", DateTime(timezone=True), nullable=False, default=utcnow),
)


def _resolve_engine(target: Database | Engine) -> Engine:
    return target.engine if isinstance(target, Database) else target


def list_sql_files(directory: str | Path) -> list[Path]:
    return sorted(Path(directory).glob("*.sql"), key=lambda path: path.name)


def split_statements(sql: str) -> list[str]:
    """Split a SQL script into statements, dropping comment-only fragments."""
    return [
        statement
        for statement in sqlparse.split(sql)
        if sqlparse.format(statement, strip_comments=True).strip()
    ]


def run_migrations(target: Database | Engine, directory: str | Path) -> list[str]:
    """Apply pending migrations and return the names applied by this run."""
    engine = _resolve_engine(target)
    metadata.create_all(engine, tables=[schema_migrations])

    with engine.connect() as connection:
        applied = set(connection.scalars(select(schema_migrations.c.name)))

    executed: list[str] = []
    for path in list_sql_files(directory):
        if path.name in applied:
            continue
        sql = path.read_text(encoding="utf-8")
        try:
            with engine.begin() as connection:
                raw = connection.execution_options(no_parameters=True)
                for statement in split_statements(sql):
                    raw.exec_driver_sql(statement)
                connection.execute(insert(schema_migrations).values(name=path.name, executed_at=utcnow()))
        except Exception as exc:
            logger.error("migration.failed", extra={"file": path.name, "error": str(exc)})
            raise
        observe_migration_applied()
        logger.info("migration.applied", extra={"file": path.name})
        executed.append(path.name)

    if not executed:
        logger.info("migration.up_to_date")
    return executed
