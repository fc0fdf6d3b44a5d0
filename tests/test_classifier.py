import pytest

from personal_ledger.classifier import DEFAULT_RULES, CategoryClassifier
from personal_ledger.errors import ValidationError
from personal_ledger.models import CategoryRule


def test_seed_defaults_only_when_empty():
    c = CategoryClassifier()
    assert c.seed_defaults() is True
    assert c.rules == DEFAULT_RULES
    assert c.seed_defaults() is False
    assert len(c) == len(DEFAULT_RULES)


def test_seed_defaults_keeps_existing_rules():
    c = CategoryClassifier({"coffee": "Cafe"})
    assert c.seed_defaults() is False
    assert c.rules == (CategoryRule("coffee", "Cafe"),)


@pytest.mark.parametrize(
    "note, expected",
    [
        ("Lunch with team", "Food"),
        ("SUPERMARKET run", "Food"),
        ("Taxi home", "Transport"),
        ("Monthly salary", "Income"),
        ("Birthday gift", "Bonus"),
        ("something unrelated", "Other"),
        ("", "Other"),
        (None, "Other"),
    ],
)
def test_classify_with_defaults(classifier, note, expected):
    assert classifier.classify(note) == expected


def test_first_matching_rule_wins():
    # "gas" appears in both Transport and Utilities; Transport comes first.
    c = CategoryClassifier()
    c.seed_defaults()
    assert c.classify("gas station") == "Transport"


def test_add_rule_replaces_in_place_and_notifies():
    calls = []
    c = CategoryClassifier({"a": "First", "b": "Second"}, on_change=lambda: calls.append(1))
    rule = c.add_rule("  a ", " Replaced ")
    assert rule == CategoryRule("a", "Replaced")
    assert [r.pattern for r in c.rules] == ["a", "b"]
    assert c.classify("ab") == "Replaced"
    assert calls == [1]


def test_add_rule_appends_new_pattern_last():
    c = CategoryClassifier({"x": "X"})
    c.add_rule("y", "Y")
    assert c.as_mapping() == {"x": "X", "y": "Y"}


@pytest.mark.parametrize("pattern, category", [("", "Food"), ("food", ""), ("   ", "  ")])
def test_add_rule_rejects_empty_fields(pattern, category):
    c = CategoryClassifier()
    with pytest.raises(ValidationError, match="cannot be empty"):
        c.add_rule(pattern, category)
    assert len(c) == 0


def test_add_rule_rejects_invalid_regex():
    c = CategoryClassifier()
    with pytest.raises(ValidationError):
        c.add_rule("(unclosed", "Broken")
    assert len(c) == 0


def test_constructor_skips_invalid_stored_patterns():
    c = CategoryClassifier({"(bad": "Broken", "ok": "Fine"})
    assert c.as_mapping() == {"ok": "Fine"}


def test_as_mapping_is_a_copy():
    c = CategoryClassifier({"x": "X"})
    m = c.as_mapping()
    m["y"] = "Y"
    assert len(c) == 1
