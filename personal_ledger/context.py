"""Process-lifetime context tying the engine components together.

``LedgerContext`` owns the single ledger, the classifier, the monthly budget,
the report engines and the persistence gateway. It is built once after load
(:func:`open_context`) and closed at process end. Every mutation goes through
it so that the report cache is marked dirty and the new state is persisted
before the call returns.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from os import PathLike

from .aggregation import AggregationEngine
from .classifier import CategoryClassifier
from .config import LedgerSettings, load_settings
from .csv_io import read_transactions, write_transactions
from .errors import StorageError, ValidationError
from .forecast import ForecastEngine
from .ledger import Ledger
from .logging_setup import get_logger
from .models import (
    ZERO,
    AddOutcome,
    AllTimeReport,
    CategoryRule,
    Forecast,
    MonthReport,
    SpendingPatterns,
    TagTotal,
    Transaction,
    YearReport,
    to_decimal,
)
from .persistence import LoadedState, PersistenceGateway

_logger = get_logger("personal_ledger.context")


class LedgerContext:
    """Explicit replacement for process-global ledger state."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        state: LoadedState | None = None,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        state = state or LoadedState()
        self.gateway = gateway
        self.load_source = state.source
        self.last_save_error: str | None = None
        self._budget: Decimal = state.budget if state.budget > 0 else ZERO
        self._today = today

        self.classifier = CategoryClassifier(state.rules or {})
        self.classifier.seed_defaults()

        self.ledger = Ledger(self.classifier, state.transactions)
        self.reports = AggregationEngine(self.ledger, budget=self._get_budget, today=today)
        self.forecasts = ForecastEngine(self.ledger, budget=self._get_budget, today=today)

        # Listeners are attached last so construction does not persist.
        self.classifier.set_listener(self._mutated)
        self.ledger.set_listener(self._mutated)

    # ---- state ---------------------------------------------------------------

    @property
    def budget(self) -> Decimal:
        return self._budget

    def today(self) -> date:
        return self._today()

    def _get_budget(self) -> Decimal:
        return self._budget

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self.ledger.transactions

    @property
    def rules(self) -> tuple[CategoryRule, ...]:
        return self.classifier.rules

    # ---- mutations -----------------------------------------------------------

    def add_transaction(self, transaction: Transaction) -> AddOutcome:
        stored = self.ledger.add(transaction)
        warning = self.forecasts.check_budget(stored.date)
        return AddOutcome(transaction=stored, warning=warning)

    def edit_transaction(self, index: int, transaction: Transaction) -> None:
        self.ledger.edit(index, transaction)

    def delete_transaction(self, index: int) -> Transaction:
        return self.ledger.delete(index)

    def add_rule(self, pattern: str, category: str) -> CategoryRule:
        return self.classifier.add_rule(pattern, category)

    def set_budget(self, amount: Decimal | int | float | str) -> Decimal:
        value = to_decimal(amount)
        if value < 0:
            raise ValidationError("Budget cannot be negative")
        self._budget = value
        self._mutated()
        return value

    def import_csv(self, path: str | PathLike[str]) -> list[AddOutcome]:
        """Import every row of ``path``; nothing is added if any row is malformed."""

        parsed = read_transactions(path)
        outcomes = [self.add_transaction(t) for t in parsed]
        _logger.info("Imported %d transactions from %s", len(outcomes), path)
        return outcomes

    def export_csv(self, path: str | PathLike[str]) -> int:
        count = write_transactions(path, self.ledger)
        _logger.info("Exported %d transactions to %s", count, path)
        return count

    # ---- queries -------------------------------------------------------------

    def search(self, term: str) -> list[Transaction]:
        return self.ledger.search(term)

    def report(self, period: str = "month") -> MonthReport | YearReport | AllTimeReport | None:
        return self.reports.report(period)

    def spending_patterns(self) -> SpendingPatterns | None:
        return self.reports.spending_patterns()

    def forecast(self, months_ahead: int = 1) -> Forecast | None:
        return self.forecasts.forecast(months_ahead)

    def tag_totals(self) -> list[TagTotal]:
        return self.ledger.tag_totals()

    # ---- persistence ---------------------------------------------------------

    def save(self) -> None:
        """Persist the full state; raises :class:`StorageError` on failure."""

        self.gateway.save(self.ledger, self.classifier.as_mapping(), self._budget)
        self.last_save_error = None

    def close(self) -> None:
        """Retry a save that failed earlier in the session, if any."""

        if self.last_save_error is not None:
            self._persist()

    def _mutated(self) -> None:
        self.reports.mark_dirty()
        self._persist()

    def _persist(self) -> None:
        try:
            self.save()
        except StorageError as exc:
            # In-memory state stays authoritative for the rest of the session.
            self.last_save_error = str(exc)
            _logger.error("%s", exc)


def open_context(
    settings: LedgerSettings | None = None,
    *,
    data_file: str | PathLike[str] | None = None,
    today: Callable[[], date] = date.today,
) -> LedgerContext:
    """Load persisted state and build the context for this process."""

    settings = settings or load_settings(data_file)
    gateway = PersistenceGateway(settings.data_file, settings.backup_file)
    return LedgerContext(gateway, gateway.load(), today=today)


__all__ = ["LedgerContext", "open_context"]
