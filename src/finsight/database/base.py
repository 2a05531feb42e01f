"""Abstract ledger source interface."""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from finsight.domain.entities import (
    Budget,
    Category,
    LedgerSnapshot,
    SavingsGoal,
    Transaction,
)


class LedgerSource(ABC):
    """Read-only access to a user's ledger in the external data store."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the data store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the data store."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """List a user's transactions in a date range, in ascending id order."""
        pass

    @abstractmethod
    def list_categories(self, user_id: str) -> list[Category]:
        """List a user's categories."""
        pass

    @abstractmethod
    def list_budgets(self, user_id: str) -> list[Budget]:
        """List a user's category budgets."""
        pass

    @abstractmethod
    def list_goals(self, user_id: str) -> list[SavingsGoal]:
        """List a user's savings goals."""
        pass

    @abstractmethod
    def get_opening_balance(self, user_id: str) -> Decimal:
        """Get a user's opening balance, 0 if none is recorded."""
        pass

    def load_snapshot(self, user_id: str, end_date: Optional[date] = None) -> LedgerSnapshot:
        """Load everything the analysis pipeline needs for one user.

        Args:
            user_id: Ledger owner
            end_date: Optional last transaction date to include

        Returns:
            LedgerSnapshot
        """
        return LedgerSnapshot(
            transactions=tuple(self.list_transactions(user_id, end_date=end_date)),
            categories=tuple(self.list_categories(user_id)),
            budgets=tuple(self.list_budgets(user_id)),
            goals=tuple(self.list_goals(user_id)),
            opening_balance=self.get_opening_balance(user_id),
        )
