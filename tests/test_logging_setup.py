import io
import logging

import pytest

from personal_ledger.logging_setup import (
    PACKAGE_LOGGER,
    configure_logging,
    get_logger,
    resolve_level,
)


@pytest.fixture
def pkg_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def test_default_level_is_warning():
    assert resolve_level() == logging.WARNING


@pytest.mark.parametrize(("verbose", "expected"), [(1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)])
def test_verbose_count_raises_detail(verbose, expected):
    assert resolve_level(verbose=verbose) == expected


def test_environment_applies_without_flags(monkeypatch):
    monkeypatch.setenv("PERSONAL_LEDGER_LOG_LEVEL", "error")
    assert resolve_level() == logging.ERROR
    assert resolve_level(verbose=1) == logging.INFO
    assert resolve_level("debug", verbose=1) == logging.DEBUG


def test_unknown_names_fall_back(monkeypatch):
    monkeypatch.setenv("PERSONAL_LEDGER_LOG_LEVEL", "chatty")
    assert resolve_level("loud") == logging.WARNING
    assert resolve_level("15") == 15


def test_configure_replaces_its_own_handler(pkg_logger):
    first, second = io.StringIO(), io.StringIO()

    configure_logging(stream=first)
    assert configure_logging(verbose=1, stream=second) == logging.INFO

    get_logger("personal_ledger.tests").info("loaded %d", 3)
    assert first.getvalue() == ""
    assert second.getvalue() == "INFO: loaded 3\n"
    assert not pkg_logger.propagate


def test_debug_records_carry_logger_name(pkg_logger):
    out = io.StringIO()
    configure_logging("DEBUG", stream=out)

    get_logger("personal_ledger.cache").debug("cleared")

    assert out.getvalue().rstrip().endswith("DEBUG personal_ledger.cache: cleared")


def test_warning_level_hides_info(pkg_logger):
    out = io.StringIO()
    configure_logging(stream=out)

    log = get_logger("personal_ledger.persistence")
    log.info("no data file")
    log.warning("restored from backup")

    assert out.getvalue() == "WARNING: restored from backup\n"
