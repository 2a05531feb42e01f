"""Validation of raw ledger records into a LedgerSnapshot.

This is the boundary of the analysis pipeline: malformed records are
rejected here with ValidationError, so every downstream component can
assume well-formed input.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Type, TypeVar

from finsight.domain.entities import (
    Budget,
    BudgetPeriod,
    Category,
    LedgerSnapshot,
    SavingsGoal,
    Transaction,
    TransactionType,
)
from finsight.domain.errors import (
    ValidationError,
    invalid_amount,
    invalid_choice,
    invalid_date,
    missing_field,
)
from finsight.utils.amount_parser import parse_amount
from finsight.utils.date_parser import parse_absolute_date

E = TypeVar("E", bound=Enum)


def _require(record: Mapping[str, Any], name: str, field_name: str) -> Any:
    value = record.get(field_name)
    if value is None:
        raise ValidationError(missing_field(name, field_name))
    return value


def _amount(record: Mapping[str, Any], name: str, field_name: str) -> Decimal:
    raw = _require(record, name, field_name)
    try:
        value = parse_amount(raw)
    except (ValueError, TypeError):
        raise ValidationError(invalid_amount(name, raw))
    if value < 0:
        raise ValidationError(invalid_amount(name, raw))
    return value


def _date(record: Mapping[str, Any], name: str, field_name: str, required: bool = True):
    raw = record.get(field_name)
    if raw is None:
        if required:
            raise ValidationError(missing_field(name, field_name))
        return None
    try:
        return parse_absolute_date(raw)
    except ValueError:
        raise ValidationError(invalid_date(name, raw))


def _choice(
    record: Mapping[str, Any],
    name: str,
    field_name: str,
    enum_type: Type[E],
    default: Optional[E] = None,
) -> E:
    raw = record.get(field_name)
    if raw is None and default is not None:
        return default
    if isinstance(raw, enum_type):
        return raw
    try:
        return enum_type(str(raw).strip().lower())
    except ValueError:
        raise ValidationError(invalid_choice(name, field_name, raw, list(enum_type)))


def _optional_id(record: Mapping[str, Any], field_name: str) -> Optional[str]:
    value = record.get(field_name)
    return None if value is None else str(value)


def parse_transaction(record: Mapping[str, Any]) -> Transaction:
    """Validate one raw transaction record."""
    txn_id = str(_require(record, "transaction", "id"))
    name = f"transaction {txn_id}"
    return Transaction(
        id=txn_id,
        category_id=_optional_id(record, "category_id"),
        amount=_amount(record, name, "amount"),
        date=_date(record, name, "date"),
        type=_choice(record, name, "type", TransactionType),
        description=record.get("description") or None,
    )


def parse_category(record: Mapping[str, Any]) -> Category:
    """Validate one raw category record."""
    category_id = str(_require(record, "category", "id"))
    name = f"category {category_id}"
    return Category(
        id=category_id,
        name=str(_require(record, name, "name")),
        type=_choice(record, name, "type", TransactionType),
        color=record.get("color"),
        icon=record.get("icon"),
    )


def parse_budget(record: Mapping[str, Any]) -> Budget:
    """Validate one raw category budget record."""
    category_id = str(_require(record, "budget", "category_id"))
    name = f"budget for category {category_id}"
    return Budget(
        category_id=category_id,
        amount=_amount(record, name, "amount"),
        period=_choice(record, name, "period", BudgetPeriod, BudgetPeriod.MONTHLY),
        id=_optional_id(record, "id"),
    )


def parse_goal(record: Mapping[str, Any]) -> SavingsGoal:
    """Validate one raw savings goal record."""
    goal_id = _optional_id(record, "id")
    name = f"savings goal {goal_id or record.get('name') or '?'}"
    return SavingsGoal(
        target_amount=_amount(record, name, "target_amount"),
        current_amount=_amount(record, name, "current_amount"),
        deadline=_date(record, name, "deadline", required=False),
        id=goal_id,
        name=record.get("name"),
    )


def build_snapshot(
    transactions: Iterable[Mapping[str, Any]] = (),
    categories: Iterable[Mapping[str, Any]] = (),
    category_budgets: Iterable[Mapping[str, Any]] = (),
    savings_goals: Iterable[Mapping[str, Any]] = (),
    opening_balance: Any = 0,
) -> LedgerSnapshot:
    """Validate raw ledger records and build a snapshot.

    Args:
        transactions: Transaction mappings (id, category_id, amount, date, type, description)
        categories: Category mappings (id, name, type, color, icon)
        category_budgets: Budget mappings (category_id, amount, period, id)
        savings_goals: Goal mappings (target_amount, current_amount, deadline, id, name)
        opening_balance: Opening balance; may be negative

    Returns:
        LedgerSnapshot with transactions in input order

    Raises:
        ValidationError: If any record is malformed
    """
    try:
        balance = parse_amount(opening_balance)
    except (ValueError, TypeError):
        raise ValidationError(invalid_amount("opening balance", opening_balance))

    return LedgerSnapshot(
        transactions=tuple(parse_transaction(record) for record in transactions),
        categories=tuple(parse_category(record) for record in categories),
        budgets=tuple(parse_budget(record) for record in category_budgets),
        goals=tuple(parse_goal(record) for record in savings_goals),
        opening_balance=balance,
    )
