"""Database factory functions for creating ledger source instances."""

import os
from pathlib import Path
from typing import Optional

from finsight.database.sqlalchemy_db import SQLAlchemyLedger


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyLedger:
    """Create a SQLite ledger source.

    Args:
        database_path: Path to SQLite database file. If None, checks FINSIGHT_DB_PATH
            environment variable, then defaults to ~/.finsight/finsight.db

    Returns:
        SQLAlchemyLedger instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("FINSIGHT_DB_PATH")

    if database_path is None:
        db_dir = Path.home() / ".finsight"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "finsight.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyLedger(database_url)
