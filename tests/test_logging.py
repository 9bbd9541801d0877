import json
import logging

import pytest

from newsharvest.utils.logging import JsonFormatter, configure_logging, get_logger


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_formatter_emits_parseable_lines():
    record = logging.LogRecord("nh.test", logging.WARNING, __file__, 10, 'said "%s"', ("hi",), None)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["name"] == "nh.test"
    assert payload["message"] == 'said "hi"'


def test_configure_logging_to_file(tmp_path):
    log_file = tmp_path / "logs" / "run.log"

    configure_logging(level="DEBUG", output="file", file_path=str(log_file), log_format="json")
    get_logger("nh.test").info("written to %s", "file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
    assert json.loads(line)["message"] == "written to file"
    assert logging.getLogger("urllib3").level == logging.WARNING


def test_default_output_is_stderr(capsys):
    configure_logging(level="INFO", output="stderr", log_format="text")
    get_logger("nh.test").info("hello stderr")

    captured = capsys.readouterr()
    assert "hello stderr" in captured.err
    assert captured.out == ""
