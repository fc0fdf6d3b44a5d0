"""Rule-based transaction categorization.

Rules are ``(pattern, category)`` pairs kept in insertion order. A note is
matched against each pattern case-insensitively (regex search, so a plain
keyword matches anywhere in the note) and the first matching rule wins.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping

from .errors import ValidationError
from .logging_setup import get_logger
from .models import OTHER_CATEGORY, CategoryRule

_logger = get_logger("personal_ledger.classifier")

DEFAULT_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(r"(food|grocery|supermarket|cafe|restaurant|lunch|dinner|breakfast)", "Food"),
    CategoryRule(r"(transport|taxi|bus|metro|gas|fuel)", "Transport"),
    CategoryRule(r"(utilities|electricity|water|gas|internet)", "Utilities"),
    CategoryRule(r"(rent|mortgage|housing)", "Rent"),
    CategoryRule(r"(health|doctor|pharmacy|hospital|medicine)", "Health"),
    CategoryRule(r"(entertainment|movie|theater|concert|hobby)", "Entertainment"),
    CategoryRule(r"(clothes|shoes|shopping)", "Clothing"),
    CategoryRule(r"(salary|income|deposit|transfer)", "Income"),
    CategoryRule(r"(gift|bonus|reward)", "Bonus"),
)


def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        raise ValidationError(f"Invalid pattern {pattern!r}: {exc}") from exc


class CategoryClassifier:
    """Ordered, first-match-wins pattern matcher over transaction notes.

    ``on_change`` is invoked after every rule mutation so the owner can
    invalidate report caches and persist.
    """

    def __init__(
        self,
        rules: Mapping[str, str] | Iterable[CategoryRule] = (),
        *,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._rules: dict[str, str] = {}
        self._compiled: dict[str, re.Pattern[str]] = {}
        self._on_change = on_change
        items = rules.items() if isinstance(rules, Mapping) else ((r.pattern, r.category) for r in rules)
        for pattern, category in items:
            try:
                self._put(pattern, category)
            except ValidationError as exc:
                _logger.warning("skipping category rule: %s", exc)

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def rules(self) -> tuple[CategoryRule, ...]:
        return tuple(CategoryRule(p, c) for p, c in self._rules.items())

    def as_mapping(self) -> dict[str, str]:
        """Return a copy of the rules as an insertion-ordered mapping."""

        return dict(self._rules)

    def set_listener(self, on_change: Callable[[], None] | None) -> None:
        self._on_change = on_change

    def classify(self, note: str | None) -> str:
        if not note:
            return OTHER_CATEGORY
        for pattern, category in self._rules.items():
            if self._compiled[pattern].search(note):
                return category
        return OTHER_CATEGORY

    def add_rule(self, pattern: str, category: str) -> CategoryRule:
        """Add a rule, or replace the category of an existing identical pattern.

        A replaced rule keeps its position in the evaluation order.
        """

        pattern = (pattern or "").strip()
        category = (category or "").strip()
        if not pattern or not category:
            raise ValidationError("Pattern and category cannot be empty")
        self._put(pattern, category)
        _logger.info("category rule %r -> %s", pattern, category)
        if self._on_change is not None:
            self._on_change()
        return CategoryRule(pattern, category)

    def seed_defaults(self) -> bool:
        """Install :data:`DEFAULT_RULES` when no rules exist.

        Returns ``True`` when rules were installed. Existing rules are never
        touched, so calling this repeatedly is harmless.
        """

        if self._rules:
            return False
        for rule in DEFAULT_RULES:
            self._put(rule.pattern, rule.category)
        _logger.debug("seeded %d default category rules", len(DEFAULT_RULES))
        return True

    def _put(self, pattern: str, category: str) -> None:
        compiled = _compile(pattern)
        self._compiled[pattern] = compiled
        self._rules[pattern] = category


__all__ = ["CategoryClassifier", "DEFAULT_RULES"]
