"""
Database maintenance commands.

    python -m careercoach.db_tools check   # create missing tables and list them
    python -m careercoach.db_tools reset   # drop and recreate every table
    python -m careercoach.db_tools clear   # delete all rows, keep the schema
"""
import argparse
import logging
from typing import Dict, List

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from careercoach.database import Base, engine as default_engine
from careercoach import models  # noqa: F401

logger = logging.getLogger(__name__)


def check_and_create_tables(engine: Engine) -> Dict[str, List[str]]:
    """Create missing tables and return each table's columns"""
    before = set(inspect(engine).get_table_names())
    Base.metadata.create_all(bind=engine)

    inspector = inspect(engine)
    tables = {}
    for table_name in inspector.get_table_names():
        tables[table_name] = [col["name"] for col in inspector.get_columns(table_name)]
        if table_name not in before:
            logger.info("Created table %s", table_name)
    return tables


def reset_database(engine: Engine) -> None:
    """Drop every table and create the schema again"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    logger.info("Database reset")


def clear_database(engine: Engine) -> Dict[str, int]:
    """Delete all rows (children first) and return deleted counts per table"""
    deleted = {}
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            result = conn.execute(table.delete())
            deleted[table.name] = result.rowcount
    logger.info("Cleared rows: %s", deleted)
    return deleted


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Career Coach database maintenance")
    parser.add_argument("command", choices=["check", "reset", "clear"])
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    if args.command == "check":
        for table_name, columns in check_and_create_tables(default_engine).items():
            print(f"✅ {table_name}: {', '.join(columns)}")
    elif args.command == "reset":
        reset_database(default_engine)
        print("✅ Database reset complete")
    else:
        for table_name, count in clear_database(default_engine).items():
            print(f"🗑️ {table_name}: {count} rows deleted")


if __name__ == "__main__":
    main()
