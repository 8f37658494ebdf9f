import io
import logging

import pytest
from rich.console import Console

from docquery import get_logger, set_subsystem_level, setup_sdk_logging
from docquery.errors import InvalidValueError
from docquery.logging_config import SUBSYSTEM_LOGGERS


@pytest.fixture
def _reset_subsystem_levels():
    yield
    for name in SUBSYSTEM_LOGGERS.values():
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_null_handler_silence(capsys):
    """Verifies that the logger is silent before setup_sdk_logging is called."""
    test_logger = get_logger("docquery.test_silence")

    test_logger.warning("This should go into the void")

    captured = capsys.readouterr()
    assert captured.err == ""
    assert captured.out == ""


def test_docquery_has_null_handler():
    """Checks that the root docquery logger defaults to a NullHandler."""
    handlers = get_logger().handlers
    assert any(isinstance(h, logging.NullHandler) for h in handlers), (
        "docquery root logger should have a NullHandler by default to prevent 'no handler' warnings."
    )


def test_module_loggers_are_hierarchical():
    from docquery.models.query import translator

    assert translator.logger.name == "docquery.models.query.translator"
    assert translator.logger.parent.name.startswith("docquery")


def test_logs_are_generated_but_swallowed(caplog):
    test_logger = get_logger("docquery.internal")

    with caplog.at_level(logging.DEBUG):
        test_logger.debug("Internal diagnostic message")

    assert "Internal diagnostic message" in caplog.text


def test_translation_logs_at_debug(caplog, _coll):
    with caplog.at_level(logging.DEBUG, logger="docquery"):
        _coll.query().where("a", "==", 1).to_wire_query()

    assert any(
        r.name == "docquery.models.query.translator" and r.levelno == logging.DEBUG
        for r in caplog.records
    )



def test_subsystem_level_overrides_sdk_level(caplog, _client, _reset_subsystem_levels):
    """Raising the query threshold hides translation traces but keeps dispatch logs."""
    set_subsystem_level("query", "WARNING")

    with caplog.at_level(logging.DEBUG, logger="docquery"):
        _client.run_query(_client.collection("C").query())

    names = {r.name for r in caplog.records}
    assert "docquery.models.query.translator" not in names
    assert "docquery.comm.client" in names


def test_unknown_subsystem():
    with pytest.raises(InvalidValueError, match="unknown logging subsystem"):
        set_subsystem_level("network", "DEBUG")

# --- These override the NullHandler: must be called after the null_handler tests


def test_setup_clears_existing_handlers():
    """Verify that multiple calls do not duplicate handlers."""
    setup_sdk_logging(level="INFO", pretty=False)
    setup_sdk_logging(level="DEBUG", pretty=False)

    logger = get_logger()
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG


def test_setup_uses_provided_console():
    """Verify the logger outputs to the specific console provided."""
    custom_output = io.StringIO()
    test_console = Console(file=custom_output, force_terminal=True)

    setup_sdk_logging(level="INFO", pretty=True, console=test_console)
    logger = get_logger()
    logger.info("Test Console Sync")

    output = custom_output.getvalue()
    assert "docquery" in output
    assert "Test Console Sync" in output


def test_logger_isolation():
    """Ensure SDK logs do not propagate to the root logger."""
    setup_sdk_logging()
    logger = get_logger()

    assert logger.propagate is False


def test_setup_applies_subsystem_levels(_reset_subsystem_levels):
    setup_sdk_logging(level="DEBUG", subsystem_levels={"mutation": "ERROR"})

    assert get_logger("docquery.models.mutation.mutation").getEffectiveLevel() == logging.ERROR
    assert get_logger("docquery.comm.client").getEffectiveLevel() == logging.DEBUG
