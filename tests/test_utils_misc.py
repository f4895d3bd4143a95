import logging

import pytest
from rich.logging import RichHandler

from quillcheck.utils.constants import SENTENCE_END_RX, WORD_RX, count_words
from quillcheck.utils.logging import ROOT_LOGGER, configure_logging, get_logger, parse_level
from quillcheck.utils.timing import Timing, elapsed_ms_since


def test_word_regex_handles_apostrophes_and_digits() -> None:
    assert WORD_RX.findall("Don't stop o’clock 42 times_two") == [
        "Don't",
        "stop",
        "o’clock",
        "times",
        "two",
    ]
    assert count_words("") == 0
    assert count_words("One, two; three.") == 3


def test_sentence_end_regex() -> None:
    assert [m.end() for m in SENTENCE_END_RX.finditer("Hi. Ok?! 3.5 end.")] == [4, 9, 17]


def test_get_logger_namespace() -> None:
    assert get_logger("quillcheck.suggest").name == "quillcheck.suggest"
    assert get_logger("tests").name == "quillcheck.tests"
    assert get_logger(ROOT_LOGGER).name == "quillcheck"


def test_parse_level() -> None:
    assert parse_level("debug") == logging.DEBUG
    assert parse_level(" Warning ") == logging.WARNING
    assert parse_level(logging.ERROR) == logging.ERROR
    with pytest.raises(ValueError):
        parse_level("LOUD")


def test_configure_logging_is_idempotent() -> None:
    logger = configure_logging("INFO")
    configure_logging("DEBUG")
    handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
    assert len(handlers) == 1
    assert logger.level == logging.DEBUG
    configure_logging("WARNING")


def test_timing() -> None:
    with Timing() as t:
        pass
    assert t.ms >= 0.0
    assert elapsed_ms_since(0.0) >= 0
