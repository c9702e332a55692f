"""Tests for the transfer agent entry point."""
import io
import json
import sys
from pathlib import Path

import pytest

from courier import app
from courier.config_store import MemoryConfigStore
from courier.storage.local_storage import LocalStorage
from courier.transfer import TransferAgent

from .helpers import ARBITRARY_OID, create_file, event_line, init_line


@pytest.fixture
def agent_config(tmp_path: Path) -> dict:
    return {
        "storage_provider": {
            "factory": "courier.storage.local_storage:LocalStorage",
            "options": {"path": str(tmp_path / "storage")},
        },
        "mapping_store": {
            "factory": "courier.config_store:MemoryConfigStore",
        },
        "download_dir": str(tmp_path / "downloads"),
        "transfer_name": "testing",
    }


@pytest.mark.usefixtures("_clean_environment")
def test_init_agent(agent_config: dict, tmp_path: Path) -> None:
    agent = app.init_agent(agent_config)
    assert isinstance(agent, TransferAgent)
    assert isinstance(agent.storage, LocalStorage)
    assert agent.storage.path == str(tmp_path / "storage")
    assert isinstance(agent.mapping.store, MemoryConfigStore)
    assert agent.mapping.transfer_name == "testing"
    assert agent.download_dir == tmp_path / "downloads"


@pytest.mark.usefixtures("_clean_environment")
def test_init_agent_uses_provider_address_scheme(tmp_path: Path) -> None:
    agent = app.init_agent(
        {
            "storage_provider": {
                "factory": "courier.storage.skynet:SkynetStorage",
                "options": {"portal_url": "https://portal.example.com"},
            },
            "mapping_store": {
                "factory": "courier.config_store:MemoryConfigStore"
            },
        }
    )
    assert agent.mapping.scheme == "sia"


def test_run_session(agent: TransferAgent) -> None:
    stdin = io.StringIO(init_line() + event_line("terminate"))
    stdout = io.StringIO()
    assert app.run_session(agent, stdin, stdout) == 0
    assert stdout.getvalue() == "{}\n"


def test_run_session_upload_then_download(
    agent: TransferAgent, tmp_path: Path, download_dir: Path
) -> None:
    staged = create_file(tmp_path / "staged", ARBITRARY_OID, b"hello world!")
    upload = io.StringIO(
        init_line("upload")
        + event_line("upload", oid=ARBITRARY_OID, size=12, path=str(staged))
        + event_line("terminate")
    )
    stdout = io.StringIO()
    assert app.run_session(agent, upload, stdout) == 0
    assert stdout.getvalue() == (
        '{}\n{"event":"complete","oid":"%s"}\n' % ARBITRARY_OID
    )

    download_agent = TransferAgent(agent.storage, agent.mapping, download_dir)
    download = io.StringIO(
        init_line("download")
        + event_line("download", oid=ARBITRARY_OID, size=12)
        + event_line("terminate")
    )
    stdout = io.StringIO()
    assert app.run_session(download_agent, download, stdout) == 0
    messages = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert messages[0] == {}
    assert messages[-1] == {
        "event": "complete",
        "oid": ARBITRARY_OID,
        "path": str(download_dir / ARBITRARY_OID),
    }
    assert all(m["event"] == "progress" for m in messages[1:-1])
    assert (download_dir / ARBITRARY_OID).read_bytes() == b"hello world!"


def test_run_session_event_before_init(
    agent: TransferAgent, capsys: pytest.CaptureFixture
) -> None:
    stdin = io.StringIO(
        event_line("download", oid=ARBITRARY_OID, size=12) + init_line()
    )
    stdout = io.StringIO()
    assert app.run_session(agent, stdin, stdout) == 1
    assert stdout.getvalue() == ""
    assert "courier: Unexpected event before init" in capsys.readouterr().err


def test_run_session_undecodable_line(
    agent: TransferAgent, capsys: pytest.CaptureFixture
) -> None:
    stdin = io.StringIO(init_line() + "{garbage\n" + event_line("terminate"))
    stdout = io.StringIO()
    assert app.run_session(agent, stdin, stdout) == 1
    assert stdout.getvalue() == "{}\n"
    assert "line 2" in capsys.readouterr().err


def test_run_session_invalid_utf8(
    agent: TransferAgent, capsys: pytest.CaptureFixture
) -> None:
    stdin = io.TextIOWrapper(io.BytesIO(b"\xff\xfe\n"), encoding="utf-8")
    stdout = io.StringIO()
    assert app.run_session(agent, stdin, stdout) == 1
    assert stdout.getvalue() == ""
    assert "courier: line 1: Invalid UTF-8" in capsys.readouterr().err


def test_run_session_unknown_event_type(
    agent: TransferAgent, capsys: pytest.CaptureFixture
) -> None:
    stdin = io.StringIO(init_line() + '{"event": ["download"]}\n')
    stdout = io.StringIO()
    assert app.run_session(agent, stdin, stdout) == 1
    assert stdout.getvalue() == "{}\n"
    assert "courier: line 2: Unknown event type" in capsys.readouterr().err


def test_run_session_without_terminate(agent: TransferAgent) -> None:
    stdout = io.StringIO()
    assert app.run_session(agent, io.StringIO(init_line()), stdout) == 0
    assert stdout.getvalue() == "{}\n"


@pytest.mark.parametrize("argv", [[], ["upload"], ["transfer", "--now"]])
def test_main_usage(argv: list, capsys: pytest.CaptureFixture) -> None:
    assert app.main(argv) == 1
    assert "Usage:" in capsys.readouterr().err


@pytest.mark.usefixtures("_clean_environment")
def test_main_transfer(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture,
) -> None:
    monkeypatch.setenv(
        "COURIER_CONFIG_STR",
        "storage_provider:\n"
        "  options:\n"
        f"    path: {tmp_path / 'storage'}\n"
        "mapping_store:\n"
        "  factory: courier.config_store:MemoryConfigStore\n",
    )
    monkeypatch.setattr(
        sys, "stdin", io.StringIO(init_line() + event_line("terminate"))
    )
    assert app.main(["transfer"]) == 0
    assert capsys.readouterr().out == "{}\n"
