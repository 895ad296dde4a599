"""Create the users/tasks/subtasks/sessions schema.

Run ``python -m taskapi.db.create_tables`` against ``DATABASE_URL``; the API
lifespan calls create_all() itself when AUTO_CREATE_TABLES is on.
"""
from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from .session import Base, get_engine
from . import models  # noqa: F401  # registers tables on Base.metadata

logger = logging.getLogger(__name__)


def create_all() -> list[str]:
    """Create missing tables and return the names that did not exist before."""
    engine = get_engine()
    existing = set(inspect(engine).get_table_names())
    Base.metadata.create_all(bind=engine)
    created = [name for name in Base.metadata.tables if name not in existing]
    if created:
        logger.info("created tables: %s", ", ".join(sorted(created)))
    return created


def main() -> int:
    from taskapi.core.logging_setup import setup_logging

    setup_logging()
    try:
        created = create_all()
    except SQLAlchemyError:
        logger.exception("schema creation failed for %s", get_engine().url.render_as_string(hide_password=True))
        return 1
    if not created:
        logger.info("schema already up to date")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
