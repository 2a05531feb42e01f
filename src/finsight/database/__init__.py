"""Ledger source layer for finsight application."""

from finsight.database.base import LedgerSource
from finsight.database.factories import create_sqlite_database

__all__ = ["LedgerSource", "create_sqlite_database"]
