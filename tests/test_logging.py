"""Logger namespace, story-tagged formatting and handler setup."""

import logging

import pytest

from narrative_core.logging_config import (
    ROOT_LOGGER,
    NarrativeFormatter,
    get_logger,
    log_error,
    log_operation,
    setup_logging,
    story_context,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger(ROOT_LOGGER)
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def _record(msg, **extra):
    record = logging.LogRecord("narrative.engine.session", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_get_logger_prefixes_namespace():
    assert get_logger("engine.session").name == "narrative.engine.session"
    assert get_logger("narrative.engine.session") is get_logger("engine.session")
    assert get_logger(ROOT_LOGGER).name == ROOT_LOGGER


def test_formatter_tags_story_and_tick():
    formatter = NarrativeFormatter()
    line = formatter.format(_record("rule T1 fired", **story_context("stave", 30)))
    assert line.endswith("INFO    session [stave t=30] rule T1 fired")

    assert "[stave] booted" in formatter.format(_record("booted", **story_context("stave")))
    assert formatter.format(_record("plain")).endswith("session plain")


def test_setup_logging_writes_file(tmp_path):
    setup_logging(level="DEBUG", log_dir=tmp_path, console_output=False)
    logger = get_logger("tests.file")
    logger.debug("scrubber moved", extra=story_context("twenty-years", 4))

    for handler in logging.getLogger(ROOT_LOGGER).handlers:
        handler.flush()
    text = (tmp_path / "narrative.log").read_text(encoding="utf-8")
    assert "[twenty-years t=4] scrubber moved" in text


def test_setup_logging_replaces_handlers(tmp_path):
    setup_logging(level="INFO", log_dir=tmp_path)
    setup_logging(level="WARNING", log_dir=None)
    root = logging.getLogger(ROOT_LOGGER)
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert not any(isinstance(h, logging.FileHandler) for h in root.handlers)


def test_log_helpers_attach_context(caplog):
    logger = get_logger("tests.helpers")
    with caplog.at_level(logging.INFO, logger=ROOT_LOGGER):
        log_operation(logger, "Session created", "stave", seed=7)
        log_error(logger, "commit", ValueError("hull below zero"), "stave", 12)

    created, failed = caplog.records
    assert created.getMessage() == "Session created: seed=7"
    assert created.story == "stave" and created.tick is None
    assert failed.levelno == logging.ERROR
    assert failed.getMessage() == "commit failed: ValueError: hull below zero"
    assert failed.tick == 12
    assert failed.exc_info is not None
