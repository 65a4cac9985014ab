from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import Engine

from aycl_api.core.database import Database
from aycl_api.db.migrate import list_sql_files, split_statements


logger = logging.getLogger("aycl_api.seeds")


def run_seeds(target: Database | Engine, directory: str | Path) -> list[str]:
    """Execute every seed file in order, one transaction per file.

    Seeds are not tracked; they are written to be safe to run again.
    """
    engine = target.engine if isinstance(target, Database) else target

    executed: list[str] = []
    for path in list_sql_files(directory):
        sql = path.read_text(encoding="utf-8")
        try:
            with engine.begin() as connection:
                raw = connection.execution_options(no_parameters=True)
                for statement in split_statements(sql):
                    raw.exec_driver_sql(statement)
        except Exception as exc:
            logger.error("seed.failed", extra={"file": path.name, "error": str(exc)})
            raise
        logger.info("seed.applied", extra={"file": path.name})
        executed.append(path.name)
    return executed
