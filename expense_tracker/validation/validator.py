"""
Transaction Input Validation

Rules run in a fixed order and the first failure wins, so the user
always sees the same message for the same input:

1. Title present (after trimming)
2. Amount present
3. Amount is a finite number
4. Amount is non-zero (strictly positive for unsigned form input)
5. Amount magnitude within the configured maximum
6. Amount survives storage as a JSON number (no digits beyond what a
   double can hold)

The same rules gate entries loaded from storage or imported from a
backup, where failures drop the entry instead of raising.

IMPORTANT: Validation NEVER silently fixes amounts. Bad input is
reported, not rounded or clamped.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from numbers import Real
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from expense_tracker.config import get_settings
from expense_tracker.models.transaction import Transaction


class ValidationRule(str, Enum):
    """The rules, in evaluation order."""
    EMPTY_TITLE = "empty_title"
    EMPTY_AMOUNT = "empty_amount"
    NOT_A_NUMBER = "not_a_number"
    NOT_POSITIVE = "not_positive"
    TOO_LARGE = "too_large"
    TOO_PRECISE = "too_precise"


RULE_MESSAGES: dict[ValidationRule, str] = {
    ValidationRule.EMPTY_TITLE: "Please enter a transaction title.",
    ValidationRule.EMPTY_AMOUNT: "Please enter an amount.",
    ValidationRule.NOT_A_NUMBER: "Amount must be a valid number.",
    ValidationRule.NOT_POSITIVE: "Please enter a positive amount.",
    ValidationRule.TOO_LARGE: "Amount is too large.",
    ValidationRule.TOO_PRECISE: "Amount has too many digits.",
}


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        pattern="^(title|amount)$",
        description="Field with the issue"
    )
    rule: ValidationRule
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )

    @classmethod
    def for_rule(cls, rule: ValidationRule) -> "ValidationIssue":
        field = "title" if rule == ValidationRule.EMPTY_TITLE else "amount"
        return cls(field=field, rule=rule, message=RULE_MESSAGES[rule])


class ValidationError(Exception):
    """User input violates one of the transaction rules."""

    def __init__(self, issue: ValidationIssue):
        super().__init__(issue.message)
        self.issue = issue

    @property
    def rule(self) -> ValidationRule:
        return self.issue.rule

    @property
    def message(self) -> str:
        return self.issue.message


def has_storage_shape(entry: Any) -> bool:
    """
    Structural check for entries read from storage.

    ``title`` and ``id`` must be text and ``amount`` a number. Booleans
    are not numbers here even though Python says they are.
    """
    if not isinstance(entry, Mapping):
        return False
    amount = entry.get("amount")
    return (
        isinstance(entry.get("title"), str)
        and isinstance(entry.get("id"), str)
        and isinstance(amount, (Real, Decimal))
        and not isinstance(amount, bool)
    )


class TransactionValidator:
    """
    Applies the ordered transaction rules.

    ``allow_negative=True`` validates a signed ledger amount (direction
    already applied); ``allow_negative=False`` validates what a user typed
    into the amount box, where the sign comes from the income/expense
    choice instead.
    """

    def __init__(self, max_amount: Optional[Decimal] = None):
        if max_amount is None:
            max_amount = get_settings().ledger.max_amount
        self._max_amount = Decimal(max_amount)

    @property
    def max_amount(self) -> Decimal:
        return self._max_amount

    def _check_title(self, title: Any) -> tuple[Optional[str], Optional[ValidationRule]]:
        text = "" if title is None else str(title)
        text = text.strip()
        if not text:
            return None, ValidationRule.EMPTY_TITLE
        return text, None

    def _check_amount(
        self,
        amount: Any,
        allow_negative: bool,
    ) -> tuple[Optional[Decimal], Optional[ValidationRule]]:
        if amount is None:
            return None, ValidationRule.EMPTY_AMOUNT
        if isinstance(amount, str):
            raw = amount.strip()
            if not raw:
                return None, ValidationRule.EMPTY_AMOUNT
            try:
                value = Decimal(raw)
            except InvalidOperation:
                return None, ValidationRule.NOT_A_NUMBER
        elif isinstance(amount, bool):
            return None, ValidationRule.NOT_A_NUMBER
        elif isinstance(amount, Decimal):
            value = amount
        elif isinstance(amount, int):
            value = Decimal(amount)
        elif isinstance(amount, float):
            value = Decimal(repr(amount))
        else:
            return None, ValidationRule.NOT_A_NUMBER

        if not value.is_finite():
            return None, ValidationRule.NOT_A_NUMBER
        if value == 0 or (value < 0 and not allow_negative):
            return None, ValidationRule.NOT_POSITIVE
        if abs(value) > self._max_amount:
            return None, ValidationRule.TOO_LARGE
        if Decimal(repr(float(value))) != value:
            return None, ValidationRule.TOO_PRECISE
        return value, None

    def check(
        self,
        title: Any,
        amount: Any,
        allow_negative: bool = True,
    ) -> Optional[ValidationIssue]:
        """Return the first violated rule, or None when the input is valid."""
        _, rule = self._check_title(title)
        if rule is None:
            _, rule = self._check_amount(amount, allow_negative)
        return ValidationIssue.for_rule(rule) if rule else None

    def validate(
        self,
        title: Any,
        amount: Any,
        allow_negative: bool = True,
    ) -> tuple[str, Decimal]:
        """
        Validate and normalize a title/amount pair.

        Returns:
            (trimmed_title, amount_as_decimal)

        Raises:
            ValidationError: With the first violated rule
        """
        clean_title, rule = self._check_title(title)
        if rule is not None:
            raise ValidationError(ValidationIssue.for_rule(rule))
        value, rule = self._check_amount(amount, allow_negative)
        if rule is not None:
            raise ValidationError(ValidationIssue.for_rule(rule))
        return clean_title, value

    def is_valid_transaction(self, tx: Transaction) -> bool:
        """Whether an existing Transaction still passes the rules."""
        return self.check(tx.title, tx.amount) is None
