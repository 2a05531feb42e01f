"""Calendar-aligned time bucketing of transactions."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from finsight.domain.entities import Bucket, BucketUnit, Transaction, TransactionType


def align_start(day: date, unit: BucketUnit) -> date:
    """Return the first day of the calendar unit containing ``day``."""
    if unit == BucketUnit.DAY:
        return day
    if unit == BucketUnit.WEEK:
        return day - timedelta(days=day.weekday())
    if unit == BucketUnit.MONTH:
        return day.replace(day=1)
    if unit == BucketUnit.YEAR:
        return day.replace(month=1, day=1)
    raise ValueError(f"Unknown bucket unit: {unit!r}")


def unit_step(unit: BucketUnit) -> relativedelta:
    """Return the length of one bucket."""
    return {
        BucketUnit.DAY: relativedelta(days=1),
        BucketUnit.WEEK: relativedelta(weeks=1),
        BucketUnit.MONTH: relativedelta(months=1),
        BucketUnit.YEAR: relativedelta(years=1),
    }[unit]


def bucket_label(start: date, unit: BucketUnit) -> str:
    if unit == BucketUnit.DAY:
        return start.isoformat()
    if unit == BucketUnit.WEEK:
        year, week, _ = start.isocalendar()
        return f"{year}-W{week:02d}"
    if unit == BucketUnit.MONTH:
        return start.strftime("%Y-%m")
    return start.strftime("%Y")


def sum_by_type(transactions: Iterable[Transaction]) -> tuple[Decimal, Decimal, int]:
    """Return (income, expense, count) for the given transactions."""
    income = Decimal("0")
    expense = Decimal("0")
    count = 0
    for txn in transactions:
        if txn.type == TransactionType.INCOME:
            income += txn.amount
        else:
            expense += txn.amount
        count += 1
    return income, expense, count


def transactions_between(
    transactions: Iterable[Transaction],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[Transaction]:
    """Return transactions dated within ``[start, end]`` (inclusive, open if None)."""
    return [
        txn
        for txn in transactions
        if (start is None or txn.date >= start) and (end is None or txn.date <= end)
    ]


def bucket_transactions(
    transactions: Sequence[Transaction],
    unit: BucketUnit,
    start: date,
    end: date,
) -> list[Bucket]:
    """Partition transactions into contiguous calendar buckets.

    The first bucket starts at the calendar boundary at or before ``start``
    and the last bucket is cut at ``end``. Only transactions dated within
    ``[start, end]`` are counted, so a range that begins mid-unit does not
    pick up the earlier days of its first bucket. Buckets without
    transactions are still returned.

    Args:
        transactions: Transactions to aggregate
        unit: Bucket size
        start: First day that must be covered
        end: Last day that must be covered

    Returns:
        Ordered list of buckets, empty if ``end`` precedes ``start``
    """
    if end < start:
        return []

    step = unit_step(unit)
    starts: list[date] = []
    cursor = align_start(start, unit)
    while cursor <= end:
        starts.append(cursor)
        cursor = cursor + step

    index = {bucket_start: i for i, bucket_start in enumerate(starts)}
    totals = [[Decimal("0"), Decimal("0"), 0] for _ in starts]

    for txn in transactions:
        if txn.date < start or txn.date > end:
            continue
        slot = totals[index[align_start(txn.date, unit)]]
        if txn.type == TransactionType.INCOME:
            slot[0] += txn.amount
        else:
            slot[1] += txn.amount
        slot[2] += 1

    buckets = []
    for i, bucket_start in enumerate(starts):
        natural_end = bucket_start + step - timedelta(days=1)
        income, expense, count = totals[i]
        buckets.append(
            Bucket(
                start=bucket_start,
                end=min(natural_end, end),
                label=bucket_label(bucket_start, unit),
                income_total=income,
                expense_total=expense,
                transaction_count=count,
            )
        )
    return buckets


def custom_bucket(transactions: Sequence[Transaction], start: date, end: date) -> Bucket:
    """Aggregate transactions over an explicit inclusive range."""
    income, expense, count = sum_by_type(transactions_between(transactions, start, end))
    return Bucket(
        start=start,
        end=end,
        label=f"{start.isoformat()}..{end.isoformat()}",
        income_total=income,
        expense_total=expense,
        transaction_count=count,
    )


def trailing_months(
    transactions: Sequence[Transaction], now: date, count: int
) -> list[Bucket]:
    """Return ``count`` month buckets ending with the current, partial month."""
    if count <= 0:
        return []
    first = now.replace(day=1) - relativedelta(months=count - 1)
    return bucket_transactions(transactions, BucketUnit.MONTH, first, now)


def trailing_weeks(
    transactions: Sequence[Transaction], now: date, count: int
) -> list[Bucket]:
    """Return ``count`` Monday-aligned week buckets ending with the current week."""
    if count <= 0:
        return []
    first = align_start(now, BucketUnit.WEEK) - timedelta(weeks=count - 1)
    return bucket_transactions(transactions, BucketUnit.WEEK, first, now)
