"""Data models for ``personal_ledger``.

Two families live here:

- Frozen dataclasses for the in-memory domain (``Transaction``,
  ``CategoryRule``) and for the structured report payloads the engines return.
- Pydantic models describing the fixed-shape persisted JSON document. The
  document is validated directly into these models; there is no untyped
  key/value inspection before deserializing substructures.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ParseError

OTHER_CATEGORY = "Other"
"""Sentinel category of a transaction that no rule has classified."""

ZERO = Decimal("0")

# A field named ``date`` would shadow the type inside a pydantic class body.
_Date = date


def to_decimal(raw: object) -> Decimal:
    """Coerce ``raw`` to a finite ``Decimal`` using invariant conventions.

    Strings must use ``.`` as the decimal point and no thousands separators.
    Floats are converted through ``str`` to avoid binary artefacts.
    """

    if isinstance(raw, Decimal):
        d = raw
    elif isinstance(raw, bool):
        raise ParseError(f"invalid amount: {raw!r}")
    elif isinstance(raw, (int, float)):
        d = Decimal(str(raw))
    elif isinstance(raw, str):
        s = raw.strip()
        if not s:
            raise ParseError("amount is empty")
        try:
            d = Decimal(s)
        except InvalidOperation as exc:
            raise ParseError(f"invalid amount: {raw!r}") from exc
    else:
        raise ParseError(f"invalid amount: {raw!r}")
    if not d.is_finite():
        raise ParseError(f"invalid amount: {raw!r}")
    return d


# ---------------------------------------------------------------------------
# Domain records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    """A single dated money movement.

    Attributes
    ----------
    date:
        Calendar date of the movement.
    amount:
        Signed amount: positive is income, negative (or zero) is expense.
    category:
        Spending category. ``"Other"`` (or empty) means "not yet classified"
        and lets the ledger classify the record from its note on ``add``.
    note:
        Free text; the classifier matches rules against it.
    tags:
        Unordered set of labels.
    """

    date: date
    amount: Decimal
    category: str = OTHER_CATEGORY
    note: str = ""
    tags: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        # frozen: normalize via object.__setattr__
        if isinstance(self.date, datetime):
            object.__setattr__(self, "date", self.date.date())
        if not isinstance(self.date, date):
            raise ParseError(f"invalid date: {self.date!r}")
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "category", (self.category or "").strip())
        object.__setattr__(self, "note", self.note or "")
        object.__setattr__(self, "tags", _normalize_tags(self.tags))

    @property
    def is_income(self) -> bool:
        return self.amount > 0

    @property
    def magnitude(self) -> Decimal:
        return abs(self.amount)

    @property
    def needs_category(self) -> bool:
        return not self.category or self.category == OTHER_CATEGORY

    def with_category(self, category: str) -> Transaction:
        return dataclasses.replace(self, category=category)


def _normalize_tags(tags: Iterable[str] | str | None) -> frozenset[str]:
    if tags is None:
        return frozenset()
    if isinstance(tags, str):
        tags = tags.split(";")
    return frozenset(t.strip() for t in tags if t and t.strip())


@dataclass(frozen=True, slots=True)
class CategoryRule:
    """A case-insensitive pattern and the category it assigns."""

    pattern: str
    category: str


@dataclass(frozen=True, slots=True)
class CategoryAmount:
    category: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class TagTotal:
    tag: str
    expenses: Decimal


# ---------------------------------------------------------------------------
# Report payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MonthReport:
    """Totals for one calendar month.

    ``categories`` holds the expense magnitude per category, largest first.
    ``budget`` is ``None`` when no budget is configured; ``usage`` is then
    ``None`` as well.
    """

    year: int
    month: int
    income: Decimal
    expenses: Decimal
    balance: Decimal
    categories: tuple[CategoryAmount, ...]
    budget: Decimal | None = None
    usage: Decimal | None = None

    @property
    def exceeded(self) -> bool:
        return self.usage is not None and self.usage > 1


@dataclass(frozen=True, slots=True)
class MonthRow:
    month: int
    name: str
    income: Decimal
    expenses: Decimal

    @property
    def balance(self) -> Decimal:
        return self.income - self.expenses


@dataclass(frozen=True, slots=True)
class YearReport:
    year: int
    months: tuple[MonthRow, ...]
    total_income: Decimal
    total_expenses: Decimal

    @property
    def total_balance(self) -> Decimal:
        return self.total_income - self.total_expenses


@dataclass(frozen=True, slots=True)
class AllTimeReport:
    first_date: date
    last_date: date
    count: int
    total_income: Decimal
    total_expenses: Decimal
    avg_monthly_income: Decimal
    avg_monthly_expenses: Decimal
    top_categories: tuple[CategoryAmount, ...]

    @property
    def net_balance(self) -> Decimal:
        return self.total_income - self.total_expenses


@dataclass(frozen=True, slots=True)
class PeriodAmount:
    """Expense total for a calendar month (``day`` is always 1)."""

    period: date
    amount: Decimal


@dataclass(frozen=True, slots=True)
class WeekdayAmount:
    weekday: int
    name: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class SpendingPatterns:
    by_weekday: tuple[WeekdayAmount, ...]
    monthly_trend: tuple[PeriodAmount, ...]


@dataclass(frozen=True, slots=True)
class ForecastPoint:
    year: int
    month: int
    label: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class Forecast:
    """Flat moving-average projection.

    ``history`` is the chronological monthly expense series the average was
    taken from; ``window`` is how many of its trailing entries were averaged.
    """

    average: Decimal
    window: int
    history: tuple[PeriodAmount, ...]
    points: tuple[ForecastPoint, ...]


@dataclass(frozen=True, slots=True)
class BudgetWarning:
    year: int
    month: int
    month_name: str
    expenses: Decimal
    budget: Decimal
    usage: Decimal

    @property
    def percent(self) -> int:
        return int((self.usage * 100).to_integral_value())

    def message(self) -> str:
        return f"Warning: {self.percent}% of budget used in {self.month_name}"


@dataclass(frozen=True, slots=True)
class AddOutcome:
    """Result of adding a transaction through the context."""

    transaction: Transaction
    warning: BudgetWarning | None = None


# ---------------------------------------------------------------------------
# Persisted document (fixed shape)
# ---------------------------------------------------------------------------


class TransactionRecord(BaseModel):
    """One transaction as stored in the JSON document."""

    model_config = ConfigDict(extra="ignore")

    date: _Date
    amount: Decimal
    category: str = OTHER_CATEGORY
    note: str = ""
    tags: list[str] = Field(default_factory=list)

    @field_validator("amount")
    @classmethod
    def _finite_amount(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("amount must be finite")
        return v

    @field_validator("note", "category", mode="before")
    @classmethod
    def _none_to_empty(cls, v: object) -> object:
        return "" if v is None else v

    @classmethod
    def from_transaction(cls, tx: Transaction) -> TransactionRecord:
        return cls(
            date=tx.date,
            amount=tx.amount,
            category=tx.category,
            note=tx.note,
            tags=sorted(tx.tags),
        )

    def to_transaction(self) -> Transaction:
        return Transaction(
            date=self.date,
            amount=self.amount,
            category=self.category,
            note=self.note,
            tags=frozenset(self.tags),
        )


class LedgerDocument(BaseModel):
    """Top-level schema of the data file and its backup.

    Only ``transactions`` is required; the other fields are optional so that
    partially written or older documents still load.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    transactions: list[TransactionRecord]
    category_rules: dict[str, str] = Field(default_factory=dict, alias="categoryRules")
    monthly_budget: Decimal = Field(default=ZERO, alias="monthlyBudget")
    last_saved: datetime | None = Field(default=None, alias="lastSaved")
