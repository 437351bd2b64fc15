"""
Result models for the aggregation functions.

All amounts are Decimal. Expense figures are reported as positive
magnitudes; only ``Totals.balance`` can be negative.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.models.transaction import Transaction


class Totals(BaseModel):
    """Running totals over a list of transactions."""
    model_config = ConfigDict(frozen=True)

    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")

    def __add__(self, other: "Totals") -> "Totals":
        if not isinstance(other, Totals):
            return NotImplemented
        return Totals(
            income=self.income + other.income,
            expense=self.expense + other.expense,
            balance=self.balance + other.balance,
        )


class CategoryShare(BaseModel):
    """One category's slice of total expense."""
    model_config = ConfigDict(frozen=True)

    category: str
    amount: Decimal = Field(..., ge=0)
    percentage: Decimal = Field(
        ...,
        ge=0,
        le=100,
        description="Share of total expense, one decimal place"
    )


class TrendPoint(BaseModel):
    """Expense total for one calendar day."""
    model_config = ConfigDict(frozen=True)

    date: dt.date
    amount: Decimal = Field(..., ge=0)


class QuickStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    month_total: Decimal = Field(
        ...,
        ge=0,
        description="Sum of absolute amounts in the reference month"
    )
    avg_transaction_abs: Decimal = Field(
        ...,
        ge=0,
        description="Mean absolute amount over all transactions"
    )
    count: int = Field(..., ge=0)


class CategorySummary(BaseModel):
    """Income, expense and count for one registry category."""
    model_config = ConfigDict(frozen=True)

    category: str
    name: str
    icon: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    count: int = 0


class Dashboard(BaseModel):
    """Everything the dashboard screen shows, computed from one snapshot."""
    model_config = ConfigDict(frozen=True)

    totals: Totals
    recent: list[Transaction] = Field(default_factory=list)
    # None when there are no expenses to break down
    breakdown: Optional[list[CategoryShare]] = None
    trend: list[TrendPoint] = Field(default_factory=list)
    quick_stats: QuickStats
