"""Recurring transaction detection.

Transactions are grouped by category and direction, clustered by similar
amount, and each cluster's date spacing is classified into a frequency.
Clustering is first-match in encounter order over a canonically sorted
input, which keeps the output reproducible for a given ledger.
"""

import logging
from collections import Counter
from datetime import date, timedelta
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from dateutil.relativedelta import relativedelta

from finsight.domain.entities import (
    Category,
    Frequency,
    RecurringPattern,
    Transaction,
    TransactionType,
)
from finsight.domain.stats import decimal_mean, mean, regularity, to_money

logger = logging.getLogger(__name__)

MIN_OCCURRENCES = 3
AMOUNT_TOLERANCE = Decimal("0.10")
MIN_CONFIDENCE = 60.0

# Inclusive bounds on the mean interval in days.
FREQUENCY_BANDS: tuple[tuple[Frequency, float, float], ...] = (
    (Frequency.WEEKLY, 5, 9),
    (Frequency.BI_WEEKLY, 12, 16),
    (Frequency.MONTHLY, 25, 35),
    (Frequency.QUARTERLY, 85, 95),
)


def canonical_order(transactions: Sequence[Transaction]) -> list[Transaction]:
    """Sort transactions by date, then id."""
    return sorted(transactions, key=lambda txn: (txn.date, str(txn.id)))


def group_by_category(
    transactions: Sequence[Transaction],
) -> dict[tuple[Optional[str], TransactionType], list[Transaction]]:
    """Group transactions by (category_id, type), preserving encounter order."""
    groups: dict[tuple[Optional[str], TransactionType], list[Transaction]] = {}
    for txn in transactions:
        groups.setdefault((txn.category_id, txn.type), []).append(txn)
    return groups


def amounts_match(amount: Decimal, representative: Decimal) -> bool:
    """Return True if ``amount`` is within tolerance of ``representative``."""
    if representative == 0:
        return amount == 0
    return abs(amount - representative) <= representative * AMOUNT_TOLERANCE


def cluster_by_amount(transactions: Sequence[Transaction]) -> list[list[Transaction]]:
    """Cluster transactions by amount similarity.

    Each cluster's representative amount is the amount of its first member.
    A transaction joins the first cluster it matches, otherwise it starts a
    new one.
    """
    clusters: list[list[Transaction]] = []
    for txn in transactions:
        for cluster in clusters:
            if amounts_match(txn.amount, cluster[0].amount):
                cluster.append(txn)
                break
        else:
            clusters.append([txn])
    return clusters


def day_intervals(transactions: Sequence[Transaction]) -> list[int]:
    """Return day gaps between consecutive transactions (sorted by date)."""
    dates = [txn.date for txn in transactions]
    return [(later - earlier).days for earlier, later in zip(dates, dates[1:])]


def classify_frequency(mean_interval: float) -> Optional[Frequency]:
    """Map a mean interval to a frequency band, or None if outside all bands."""
    for frequency, lower, upper in FREQUENCY_BANDS:
        if lower <= mean_interval <= upper:
            return frequency
    return None


def modal_value(values: Sequence[int]) -> int:
    """Most common value; ties resolve to the one seen first."""
    return Counter(values).most_common(1)[0][0]


def next_expected_date(
    last: date, frequency: Frequency, day_of_month: Optional[int] = None
) -> date:
    """Project the next occurrence after ``last``.

    Monthly patterns are pinned to ``day_of_month`` when given, clamped to
    the length of the month. The pinned date nearest to one calendar month
    after ``last`` wins, so a payment that slipped across a month end does
    not push the projection a whole cycle out.
    """
    if frequency == Frequency.WEEKLY:
        return last + timedelta(days=7)
    if frequency == Frequency.BI_WEEKLY:
        return last + timedelta(days=14)
    if frequency == Frequency.MONTHLY:
        target = last + relativedelta(months=1)
        if day_of_month is None:
            return target
        candidates = [
            target + relativedelta(months=shift, day=day_of_month) for shift in (-1, 0, 1)
        ]
        return min(
            (candidate for candidate in candidates if candidate > last),
            key=lambda candidate: abs((candidate - target).days),
        )
    return last + relativedelta(months=3)


def analyze_cluster(
    cluster: Sequence[Transaction], category: Optional[Category]
) -> Optional[RecurringPattern]:
    """Build a pattern from one amount cluster, or None if it is not regular."""
    members = sorted(cluster, key=lambda txn: (txn.date, str(txn.id)))
    intervals = day_intervals(members)
    mean_interval = float(mean(intervals))
    if mean_interval <= 0:
        return None

    confidence = regularity(intervals)
    if confidence < MIN_CONFIDENCE:
        return None

    frequency = classify_frequency(mean_interval)
    if frequency is None:
        return None

    day_of_month = None
    day_of_week = None
    if frequency in (Frequency.MONTHLY, Frequency.QUARTERLY):
        day_of_month = modal_value([txn.date.day for txn in members])
    else:
        day_of_week = modal_value([txn.date.weekday() for txn in members])

    pinned_day = day_of_month if frequency == Frequency.MONTHLY else None
    category_name = category.name if category is not None else None
    description = members[0].description or category_name or "Uncategorized"

    return RecurringPattern(
        category_id=members[0].category_id,
        category_name=category_name,
        description=description,
        transaction_type=members[0].type,
        avg_amount=to_money(decimal_mean([txn.amount for txn in members])),
        frequency=frequency,
        confidence=confidence,
        mean_interval_days=mean_interval,
        next_expected_date=next_expected_date(members[-1].date, frequency, pinned_day),
        transactions=tuple(members),
        day_of_month=day_of_month,
        day_of_week=day_of_week,
    )


def detect_recurring(
    transactions: Sequence[Transaction],
    categories: Mapping[str, Category],
) -> list[RecurringPattern]:
    """Detect recurring patterns, most confident first.

    Args:
        transactions: Ledger transactions in any order
        categories: Category lookup by id; unknown ids are tolerated

    Returns:
        Patterns sorted by descending confidence
    """
    patterns: list[RecurringPattern] = []
    groups = group_by_category(canonical_order(transactions))

    for (category_id, txn_type), members in groups.items():
        if len(members) < MIN_OCCURRENCES:
            continue
        category = categories.get(category_id) if category_id is not None else None
        for cluster in cluster_by_amount(members):
            if len(cluster) < MIN_OCCURRENCES:
                continue
            pattern = analyze_cluster(cluster, category)
            if pattern is None:
                logger.debug(
                    "No regular pattern in %d %s transactions of category %s",
                    len(cluster),
                    txn_type.value,
                    category_id,
                )
                continue
            patterns.append(pattern)

    patterns.sort(key=lambda pattern: -pattern.confidence)
    logger.debug("Detected %d recurring patterns", len(patterns))
    return patterns


def upcoming_patterns(
    patterns: Sequence[RecurringPattern], now: date, horizon_days: int
) -> list[RecurringPattern]:
    """Return patterns expected within ``horizon_days`` of ``now`` (inclusive)."""
    return [
        pattern
        for pattern in patterns
        if 0 <= (pattern.next_expected_date - now).days <= horizon_days
    ]
