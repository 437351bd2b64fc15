"""
Core Data Models for the Expense Tracker

These models define the schemas for everything the ledger stores.
They are designed to:
1. Enforce type safety at runtime
2. Keep money in Decimal from input to storage and back
3. Be serializable for local storage and backups

DESIGN DECISION: Transactions are frozen. A snapshot handed to the
aggregator or a UI can be shared freely; the ledger is the only place
where the sequence changes.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class CategoryKey(str, Enum):
    """
    Keys of the fixed category registry.

    Anything outside this set is filed under OTHER.
    """
    FOOD = "food"
    TRANSPORT = "transport"
    SHOPPING = "shopping"
    ENTERTAINMENT = "entertainment"
    BILLS = "bills"
    HEALTH = "health"
    SALARY = "salary"
    FREELANCE = "freelance"
    INVESTMENT = "investment"
    OTHER = "other"


class TransactionType(str, Enum):
    """Direction chosen on the entry form; decides the amount's sign."""
    INCOME = "income"
    EXPENSE = "expense"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


# =============================================================================
# CATEGORY REGISTRY
# =============================================================================

class Category(BaseModel):
    """Display information for one category."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=50)
    icon: str = Field(..., min_length=1, max_length=8)
    color: str = Field(..., pattern="^#[0-9a-fA-F]{6}$")


DEFAULT_CATEGORIES: dict[str, Category] = {
    CategoryKey.FOOD.value: Category(name="Food & Dining", icon="🍽️", color="#f59e0b"),
    CategoryKey.TRANSPORT.value: Category(name="Transportation", icon="🚗", color="#3b82f6"),
    CategoryKey.SHOPPING.value: Category(name="Shopping", icon="🛍️", color="#ec4899"),
    CategoryKey.ENTERTAINMENT.value: Category(name="Entertainment", icon="🎬", color="#8b5cf6"),
    CategoryKey.BILLS.value: Category(name="Bills & Utilities", icon="💡", color="#ef4444"),
    CategoryKey.HEALTH.value: Category(name="Health & Fitness", icon="🏥", color="#10b981"),
    CategoryKey.SALARY.value: Category(name="Salary", icon="💰", color="#059669"),
    CategoryKey.FREELANCE.value: Category(name="Freelance", icon="💼", color="#0891b2"),
    CategoryKey.INVESTMENT.value: Category(name="Investment", icon="📈", color="#7c3aed"),
    CategoryKey.OTHER.value: Category(name="Other", icon="📝", color="#6b7280"),
}


def resolve_category(value: Any) -> str:
    """Return a registry key for ``value``, falling back to ``"other"``."""
    if isinstance(value, CategoryKey):
        return value.value
    if isinstance(value, str):
        key = value.strip().lower()
        if key in DEFAULT_CATEGORIES:
            return key
    return CategoryKey.OTHER.value


def category_info(key: Any) -> Category:
    """Look up display information, using OTHER for unknown keys."""
    return DEFAULT_CATEGORIES[resolve_category(key)]


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class Transaction(BaseModel):
    """
    A single ledger entry.

    The sign of ``amount`` encodes direction:
    - amount >= 0 -> income
    - amount < 0  -> expense

    ``date`` is set by the ledger at creation. Entries restored from
    older storage may not carry one.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True,
        extra="ignore",
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier"
    )
    title: str = Field(
        ...,
        min_length=1,
        description="What the money was for"
    )
    amount: Decimal = Field(
        ...,
        description="Signed amount in the base currency"
    )
    category: str = Field(
        default=CategoryKey.OTHER.value,
        description="Key into the category registry"
    )
    date: Optional[dt.datetime] = Field(
        default=None,
        description="Creation timestamp (UTC)"
    )

    @field_validator('category', mode='before')
    @classmethod
    def coerce_category(cls, v: Any) -> str:
        """Unknown or missing categories become 'other'."""
        return resolve_category(v)

    @field_validator('amount', mode='before')
    @classmethod
    def amount_from_float(cls, v: Any) -> Any:
        # Go through repr so 4.5 becomes Decimal("4.5"), not its binary expansion
        if isinstance(v, float):
            return Decimal(repr(v))
        return v

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, amount: Decimal) -> float:
        """Stored as a JSON number so existing backups stay readable."""
        return float(amount)

    @property
    def is_income(self) -> bool:
        """Return ``True`` when the transaction represents money received."""
        return self.amount >= 0

    @property
    def is_expense(self) -> bool:
        """Return ``True`` when the transaction represents money paid out."""
        return self.amount < 0

    @property
    def magnitude(self) -> Decimal:
        return abs(self.amount)

    def to_storage_dict(self) -> dict:
        """Convert to the JSON-ready dict used by storage and backups."""
        return self.model_dump(mode="json", exclude_none=True)


# =============================================================================
# USER SETTINGS
# =============================================================================

class UserSettings(BaseModel):
    """
    Per-user preferences.

    Persisted separately from transactions; changing the theme never
    touches the ledger.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    theme: Theme = Field(
        default=Theme.LIGHT,
        description="UI theme"
    )
    currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="ISO 4217 currency code used for display"
    )

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        if not v.isalpha():
            raise ValueError(f"Invalid currency code: {v}")
        return v.upper()
