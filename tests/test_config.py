"""Tests for environment-driven settings."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from tictactoe_ai.config import Settings, load_settings, setup_logging
from tictactoe_ai.session import AI_THINK_DELAY


def test_defaults_when_environment_is_empty():
    settings = load_settings({})
    assert settings == Settings()
    assert settings.think_delay == AI_THINK_DELAY
    assert settings.log_file is None


def test_values_are_read_from_environment():
    settings = load_settings(
        {
            "TICTACTOE_HOST": "127.0.0.1",
            "TICTACTOE_PORT": "9001",
            "TICTACTOE_THINK_DELAY": "0.25",
            "TICTACTOE_LOG_LEVEL": "debug",
            "TICTACTOE_LOG_FILE": "  ",
        }
    )
    assert settings.host == "127.0.0.1"
    assert settings.port == 9001
    assert settings.think_delay == 0.25
    assert settings.log_level == "DEBUG"
    assert settings.log_file is None


@pytest.mark.parametrize(
    "name, value",
    [
        ("TICTACTOE_PORT", "eighty"),
        ("TICTACTOE_THINK_DELAY", "-1"),
    ],
)
def test_bad_numbers_name_the_variable(name, value):
    with pytest.raises(ValueError, match=name):
        load_settings({name: value})


def test_setup_logging_adds_rotating_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging(Settings(log_level="WARNING", log_file=str(tmp_path / "game.log")))
        assert root.level == logging.WARNING
        assert any(isinstance(h, RotatingFileHandler) for h in root.handlers)
    finally:
        for handler in root.handlers:
            if handler not in saved_handlers:
                handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
