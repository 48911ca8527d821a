import logging
from io import StringIO
from pathlib import Path
from unittest.mock import patch

import pytest

from eventtimer.cli.main_cli import build_config_values, main
from eventtimer.cli.namespace import EventTimerCLINamespace


def test_cli_help() -> None:
    """Test CLI exits normally"""
    with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
        with pytest.raises(SystemExit) as e:
            main(["--help"])
    assert e.value.code == 0
    output = mock_stdout.getvalue()
    assert "--db DB" in output
    assert "show_config" in output


def test_cli_missing_command() -> None:
    """Test exits with error when no command is given"""
    with patch("sys.stderr", new_callable=StringIO) as mock_stderr:
        with pytest.raises(SystemExit) as e:
            main(["--db", "events.db"])
    assert e.value.code != 0
    output = mock_stderr.getvalue()
    assert "error: the following arguments are required" in output
    assert "command" in output


def test_build_config_values() -> None:
    args = EventTimerCLINamespace(db="/tmp/x.db", table="jobs", verbose=True)
    assert build_config_values(args) == {
        "event_store_cls": "SQLiteEventStore",
        "sqlite_db_path": "/tmp/x.db",
        "table_name": "jobs",
        "logging_level": "debug",
    }
    assert build_config_values(EventTimerCLINamespace()) == {}


def test_cli_invalid_store_exits(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    """Test an unusable event store ends the process with exit code 1"""
    caplog.set_level(logging.ERROR)
    with pytest.raises(SystemExit) as e:
        main(["--db", str(tmp_path / "events.db"), "--table", "bad-name", "next"])
    assert e.value.code == 1
    assert "Cannot open the event store" in caplog.text


def test_cli_unknown_event_exits(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR)
    with pytest.raises(SystemExit) as e:
        main(["--db", str(tmp_path / "events.db"), "remove", "42"])
    assert e.value.code == 1
    assert "Event 42 is not scheduled" in caplog.text
