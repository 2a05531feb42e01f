"""Mapper functions to convert SQLAlchemy rows into domain entities.

Rows go through the same validation as any other raw ledger record, so a
malformed row is rejected with ValidationError instead of reaching the
analysis pipeline.
"""

from finsight.domain import entities as domain
from finsight.domain.snapshot import (
    parse_budget,
    parse_category,
    parse_goal,
    parse_transaction,
)
from finsight.database.models import (
    Category as ORMCategory,
    CategoryBudget as ORMCategoryBudget,
    SavingsGoal as ORMSavingsGoal,
    Transaction as ORMTransaction,
)


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return parse_category(
        {
            "id": orm_category.id,
            "name": orm_category.name,
            "type": orm_category.category_type,
            "color": orm_category.color,
            "icon": orm_category.icon,
        }
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return parse_transaction(
        {
            "id": orm_transaction.id,
            "category_id": orm_transaction.category_id,
            "amount": orm_transaction.amount,
            "date": orm_transaction.date,
            "type": orm_transaction.transaction_type,
            "description": orm_transaction.description,
        }
    )


def budget_to_domain(orm_budget: ORMCategoryBudget) -> domain.Budget:
    """Convert SQLAlchemy CategoryBudget model to domain Budget entity."""
    return parse_budget(
        {
            "id": orm_budget.id,
            "category_id": orm_budget.category_id,
            "amount": orm_budget.amount,
            "period": orm_budget.period,
        }
    )


def goal_to_domain(orm_goal: ORMSavingsGoal) -> domain.SavingsGoal:
    """Convert SQLAlchemy SavingsGoal model to domain SavingsGoal entity."""
    return parse_goal(
        {
            "id": orm_goal.id,
            "name": orm_goal.name,
            "target_amount": orm_goal.target_amount,
            "current_amount": orm_goal.current_amount,
            "deadline": orm_goal.deadline,
        }
    )
