import re
from pathlib import Path

import pytest

from cellanalyzer.logger import Logger, get_logger

LINE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3} \[(\w+)\] (.*)$")


def _lines(path):
    return path.read_text(encoding="utf-8").splitlines()


def test_log_writes_formatted_line(tmp_path):
    path = tmp_path / "app.log"
    with Logger(path) as logger:
        logger.log("hello world")
    lines = _lines(path)
    assert len(lines) == 1
    match = LINE.match(lines[0])
    assert match is not None
    assert match.group(1) == "INFO"
    assert match.group(2) == "hello world"


@pytest.mark.parametrize(
    "method, level",
    [("info", "INFO"), ("warning", "WARN"), ("error", "ERROR"), ("debug", "DEBUG")],
)
def test_level_helpers(tmp_path, method, level):
    path = tmp_path / "app.log"
    logger = Logger(path)
    getattr(logger, method)("msg")
    logger.close()
    assert LINE.match(_lines(path)[0]).group(1) == level


def test_appends_across_instances(tmp_path):
    path = tmp_path / "app.log"
    first = Logger(path)
    first.info("one")
    first.close()
    second = Logger(path)
    second.info("two")
    second.close()
    messages = [LINE.match(line).group(2) for line in _lines(path)]
    assert messages == ["one", "two"]


def test_echoes_to_stderr(tmp_path, capsys):
    logger = Logger(tmp_path / "app.log")
    logger.error("boom")
    logger.close()
    assert "[ERROR] boom" in capsys.readouterr().err


def test_unopenable_file_reports_and_continues(tmp_path, capsys):
    logger = Logger(tmp_path)
    logger.info("lost")
    assert "Failed to open log file" in capsys.readouterr().err


def test_close_is_idempotent_and_reopens(tmp_path):
    path = tmp_path / "app.log"
    logger = Logger(path)
    logger.info("a")
    logger.close()
    logger.close()
    logger.info("b")
    logger.close()
    assert len(_lines(path)) == 2


def test_get_logger_is_shared():
    assert get_logger() is get_logger()
    assert get_logger().path == Path("cell_analyzer_debug.log")