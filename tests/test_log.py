from __future__ import annotations

import io

import pytest

from nvpatch.log import build_logger, parse_level


def test_levels_filter_output() -> None:
    stream = io.StringIO()
    logger = build_logger("warn", color="never", stream=stream, name="nvpatch.test.lv")
    logger.info("hidden")
    logger.warning("shown")
    assert stream.getvalue() == "WARNING(nvpatch.test.lv): shown\n"


def test_color_always_highlights_warnings_and_errors() -> None:
    stream = io.StringIO()
    logger = build_logger("debug", color="always", stream=stream, name="nvpatch.test.c")
    logger.info("plain")
    logger.warning("careful")
    logger.error("broken")
    lines = stream.getvalue().splitlines()
    assert lines[0] == "INFO(nvpatch.test.c): plain"
    assert lines[1].startswith("\033[93m") and lines[1].endswith("\033[0m")
    assert lines[2].startswith("\033[1;91m")


def test_auto_color_off_for_non_tty() -> None:
    stream = io.StringIO()
    logger = build_logger("info", color="auto", stream=stream, name="nvpatch.test.a")
    logger.error("x")
    assert "\033[" not in stream.getvalue()


def test_rebuilding_does_not_duplicate_handlers() -> None:
    stream = io.StringIO()
    build_logger("info", color="never", stream=stream, name="nvpatch.test.dup")
    logger = build_logger("info", color="never", stream=stream, name="nvpatch.test.dup")
    logger.info("once")
    assert stream.getvalue().count("once") == 1


def test_parse_level() -> None:
    assert parse_level("WARN") == parse_level("warning")
    with pytest.raises(ValueError):
        parse_level("loud")
