"""
Derived views over a ledger snapshot.

Every function here is pure: it takes a list of transactions and
returns new values. Arithmetic stays in Decimal, so a long-lived ledger
does not drift by fractions of a cent.
"""

import datetime as dt
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence, Union

from expense_tracker.models.summary import (
    CategoryShare,
    CategorySummary,
    QuickStats,
    Totals,
    TrendPoint,
)
from expense_tracker.models.transaction import (
    DEFAULT_CATEGORIES,
    Transaction,
    resolve_category,
)

DateLike = Union[dt.date, dt.datetime]

_ZERO = Decimal("0")
_ONE_DECIMAL = Decimal("0.1")


def _calendar_day(value: DateLike) -> dt.date:
    """Calendar date of a date or datetime; aware datetimes are read in UTC."""
    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt.timezone.utc)
        return value.date()
    return value


def _today() -> dt.date:
    return dt.datetime.now(dt.timezone.utc).date()


def _reference_day(reference_date: Optional[DateLike]) -> dt.date:
    if reference_date is None:
        return _today()
    return _calendar_day(reference_date)


def _transaction_day(tx: Transaction) -> dt.date:
    """Calendar day of a transaction; undated entries count as today."""
    return _calendar_day(tx.date) if tx.date is not None else _today()


def compute_totals(transactions: Sequence[Transaction]) -> Totals:
    """
    Income, expense and balance.

    income  = sum of non-negative amounts
    expense = sum of |amount| for negative amounts
    balance = income - expense
    """
    income = _ZERO
    expense = _ZERO
    for tx in transactions:
        if tx.is_income:
            income += tx.amount
        else:
            expense += abs(tx.amount)
    return Totals(income=income, expense=expense, balance=income - expense)


def category_breakdown(
    transactions: Sequence[Transaction],
    limit: Optional[int] = None,
) -> Optional[list[CategoryShare]]:
    """
    Share of total expense per category, largest first.

    Income is ignored. Returns None when there are no expenses at all.
    """
    buckets: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    for tx in transactions:
        if tx.is_expense:
            buckets[resolve_category(tx.category)] += abs(tx.amount)

    if not buckets:
        return None

    total = sum(buckets.values(), _ZERO)
    ordered = sorted(buckets.items(), key=lambda item: (-item[1], item[0]))
    if limit is not None:
        ordered = ordered[:limit]

    return [
        CategoryShare(
            category=category,
            amount=amount,
            percentage=(amount / total * 100).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP),
        )
        for category, amount in ordered
    ]


def trend(
    transactions: Sequence[Transaction],
    days: int = 7,
    reference_date: Optional[DateLike] = None,
) -> list[TrendPoint]:
    """
    Daily expense totals for the ``days`` days ending at ``reference_date``.

    Points run oldest to newest and days without expenses report 0.
    Transactions without a date count toward today, whatever the
    reference date.
    """
    if days < 1:
        raise ValueError(f"days must be at least 1, got {days}")

    end = _reference_day(reference_date)
    window = [end - dt.timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    buckets: dict[dt.date, Decimal] = {day: _ZERO for day in window}

    for tx in transactions:
        if not tx.is_expense:
            continue
        day = _transaction_day(tx)
        if day in buckets:
            buckets[day] += abs(tx.amount)

    return [TrendPoint(date=day, amount=buckets[day]) for day in window]


def quick_stats(
    transactions: Sequence[Transaction],
    reference_date: Optional[DateLike] = None,
) -> QuickStats:
    """
    Month total, average absolute amount and count.

    An undated transaction is counted in the current month.
    """
    ref = _reference_day(reference_date)

    month_total = _ZERO
    for tx in transactions:
        day = _transaction_day(tx)
        if day.year == ref.year and day.month == ref.month:
            month_total += abs(tx.amount)

    count = len(transactions)
    if count:
        avg = sum((abs(tx.amount) for tx in transactions), _ZERO) / count
    else:
        avg = _ZERO

    return QuickStats(month_total=month_total, avg_transaction_abs=avg, count=count)


def category_summary(transactions: Sequence[Transaction]) -> list[CategorySummary]:
    """One row per registry category, in registry order, including empty ones."""
    data: dict[str, dict] = defaultdict(
        lambda: {"income": _ZERO, "expense": _ZERO, "count": 0}
    )
    for tx in transactions:
        row = data[resolve_category(tx.category)]
        if tx.is_income:
            row["income"] += tx.amount
        else:
            row["expense"] += abs(tx.amount)
        row["count"] += 1

    summaries = []
    for key, info in DEFAULT_CATEGORIES.items():
        row = data.get(key, {"income": _ZERO, "expense": _ZERO, "count": 0})
        summaries.append(
            CategorySummary(
                category=key,
                name=info.name,
                icon=info.icon,
                income=row["income"],
                expense=row["expense"],
                count=row["count"],
            )
        )
    return summaries


def recent_transactions(
    transactions: Sequence[Transaction],
    limit: int = 5,
) -> list[Transaction]:
    """The first ``limit`` entries of a newest-first snapshot."""
    return list(transactions[:max(limit, 0)])
