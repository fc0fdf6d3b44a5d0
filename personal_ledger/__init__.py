"""Public interface for the ``personal_ledger`` package.

This module exposes the engine components, the process context and the public
models/types as the stable import surface. There is no runtime logic here, only
symbol re-exports.
"""

from .aggregation import AggregationEngine
from .classifier import DEFAULT_RULES, CategoryClassifier
from .config import LedgerSettings, load_settings
from .context import LedgerContext, open_context
from .errors import LedgerError, OutOfRangeError, ParseError, StorageError, ValidationError
from .forecast import ForecastEngine
from .ledger import Ledger
from .models import (
    AddOutcome,
    AllTimeReport,
    BudgetWarning,
    CategoryAmount,
    CategoryRule,
    Forecast,
    ForecastPoint,
    MonthReport,
    MonthRow,
    SpendingPatterns,
    TagTotal,
    Transaction,
    YearReport,
)
from .persistence import LoadedState, PersistenceGateway

__all__ = [
    # Engines / context
    "AggregationEngine",
    "CategoryClassifier",
    "DEFAULT_RULES",
    "ForecastEngine",
    "Ledger",
    "LedgerContext",
    "LedgerSettings",
    "LoadedState",
    "PersistenceGateway",
    "load_settings",
    "open_context",
    # Errors
    "LedgerError",
    "OutOfRangeError",
    "ParseError",
    "StorageError",
    "ValidationError",
    # Models / types
    "AddOutcome",
    "AllTimeReport",
    "BudgetWarning",
    "CategoryAmount",
    "CategoryRule",
    "Forecast",
    "ForecastPoint",
    "MonthReport",
    "MonthRow",
    "SpendingPatterns",
    "TagTotal",
    "Transaction",
    "YearReport",
]
