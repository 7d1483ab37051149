"""Tests for logging configuration and error details."""
import logging
from pathlib import Path

import pytest

from flowdeps.core.output import write_to_file
from flowdeps.exceptions import ConfigError, OutputError
from flowdeps.logging_setup import LOGGER_NAME, configure_logging, log_level_for_verbosity
from flowdeps.util import strip_utf8_bom


@pytest.mark.parametrize("verbosity, expected", [(0, "warning"), (1, "info"), (2, "debug"), (5, "debug")])
def test_log_level_for_verbosity(verbosity, expected):
    assert log_level_for_verbosity(verbosity) == expected


def test_configure_logging_replaces_handler():
    configure_logging("debug")
    logger = configure_logging("info", force_json_logs=True)
    assert logger is logging.getLogger(LOGGER_NAME)
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1


def test_configure_logging_unknown_level_falls_back_to_warning():
    assert configure_logging("chatty").level == logging.WARNING


def test_config_error_names_source_file():
    error = ConfigError("could not read config file: bad", source="project/.flowdeps.toml")
    assert error.source == Path("project/.flowdeps.toml")
    assert str(error) == "project/.flowdeps.toml: could not read config file: bad"
    assert ConfigError("plain").source is None
    assert str(ConfigError("plain")) == "plain"


def test_write_to_missing_directory_raises_output_error(tmp_path: Path):
    target = tmp_path / "missing" / "plan.json"
    with pytest.raises(OutputError) as exc_info:
        write_to_file(target, "{}")
    assert exc_info.value.path == target
    assert str(target) in str(exc_info.value)


def test_strip_utf8_bom():
    assert strip_utf8_bom(b"\xef\xbb\xbfabc") == b"abc"
    assert strip_utf8_bom(b"abc") == b"abc"
