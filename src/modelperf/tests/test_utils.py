import logging

import pytest

from modelperf.logging import configure_logging
from modelperf.utils import str_to_bool


@pytest.mark.parametrize(
    "value, expected",
    [
        ("True", True),
        ("t", True),
        ("YES", True),
        ("false", False),
        ("N", False),
        (True, True),
        (False, False),
    ],
)
def test_str_to_bool(value, expected):
    assert str_to_bool(value) is expected


def test_str_to_bool_default():
    assert str_to_bool("unknown") is False
    assert str_to_bool("unknown", default=True) is True


@pytest.mark.parametrize(
    "level, expected",
    [("DEBUG", logging.DEBUG), ("warning", logging.WARNING), ("verbose", logging.INFO)],
)
def test_configure_logging_level(monkeypatch, level, expected):
    monkeypatch.setenv("LOG_LEVEL", level)
    logger = configure_logging("modelperf.tests.logging")
    assert logger.level == expected
