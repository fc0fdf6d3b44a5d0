"""The ledger: the single owner of all transaction records."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from decimal import Decimal

from .classifier import CategoryClassifier
from .errors import OutOfRangeError
from .logging_setup import get_logger
from .models import ZERO, TagTotal, Transaction

_logger = get_logger("personal_ledger.ledger")


def _by_date(tx: Transaction):
    return tx.date


class Ledger:
    """Date-ordered transaction collection.

    Invariants
    ----------
    - After ``add`` the records are sorted ascending by date; records sharing
      a date keep their insertion order (``list.sort`` is stable).
    - ``edit`` replaces a record in place and neither reclassifies nor
      re-sorts. This asymmetry with ``add`` is intentional.
    - Records passed to the constructor keep their given (persisted) order,
      so indices survive a save and reload.
    - Every mutation calls ``on_change`` before returning.
    """

    def __init__(
        self,
        classifier: CategoryClassifier,
        transactions: Iterable[Transaction] = (),
        *,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._classifier = classifier
        self._items: list[Transaction] = list(transactions)
        self._on_change = on_change

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(tuple(self._items))

    def __getitem__(self, index: int) -> Transaction:
        self._check_index(index)
        return self._items[index]

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return tuple(self._items)

    def set_listener(self, on_change: Callable[[], None] | None) -> None:
        self._on_change = on_change

    # ---- mutations -----------------------------------------------------------

    def add(self, transaction: Transaction) -> Transaction:
        """Insert ``transaction`` and return the stored (possibly reclassified) record."""

        if transaction.needs_category:
            transaction = transaction.with_category(self._classifier.classify(transaction.note))
        self._items.append(transaction)
        self._items.sort(key=_by_date)
        _logger.debug(
            "added %s %s [%s]", transaction.date.isoformat(), transaction.amount, transaction.category
        )
        self._changed()
        return transaction

    def edit(self, index: int, transaction: Transaction) -> None:
        self._check_index(index)
        self._items[index] = transaction
        self._changed()

    def delete(self, index: int) -> Transaction:
        self._check_index(index)
        removed = self._items.pop(index)
        self._changed()
        return removed

    # ---- queries -------------------------------------------------------------

    def search(self, term: str) -> list[Transaction]:
        """Case-insensitive substring match on note or category, in ledger order."""

        needle = (term or "").casefold()
        return [
            t for t in self._items if needle in t.note.casefold() or needle in t.category.casefold()
        ]

    def monthly_expenses(self, year: int, month: int) -> Decimal:
        return sum(
            (
                t.magnitude
                for t in self._items
                if not t.is_income and t.date.year == year and t.date.month == month
            ),
            ZERO,
        )

    def tag_totals(self) -> list[TagTotal]:
        """Distinct tags in first-seen order with the expenses carrying them."""

        totals: dict[str, Decimal] = {}
        for t in self._items:
            for tag in sorted(t.tags):
                totals.setdefault(tag, ZERO)
                if not t.is_income:
                    totals[tag] += t.magnitude
        return [TagTotal(tag, amount) for tag, amount in totals.items()]

    # ---- internals -----------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._items):
            raise OutOfRangeError(index, len(self._items))

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()


__all__ = ["Ledger"]
