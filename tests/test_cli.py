"""Tests for CLI commands that do not start a server."""

from unittest.mock import MagicMock

import pytest
import requests

import cli
from config import Config


def test_version(capsys):
    cli.main(["version"])
    assert "deye-google-home v" in capsys.readouterr().out


def test_status_reports_running_server(monkeypatch, capsys):
    response = MagicMock()
    response.json.return_value = {"status": "healthy", "deye_configured": True}
    monkeypatch.setattr(cli.requests, "get", MagicMock(return_value=response))

    cli.main(["status"])

    out = capsys.readouterr().out
    assert "[OK] Server is healthy" in out
    assert "Deye Cloud configured: True" in out


def test_status_exits_when_unreachable(monkeypatch, capsys):
    monkeypatch.setattr(cli.requests, "get", MagicMock(side_effect=requests.ConnectionError("refused")))

    with pytest.raises(SystemExit):
        cli.main(["status"])
    assert "[X] Server not reachable" in capsys.readouterr().out


def test_devices_requires_credentials(monkeypatch, capsys):
    monkeypatch.setattr(cli, "load_config", lambda: Config({}))

    with pytest.raises(SystemExit):
        cli.main(["devices"])
    assert "not configured" in capsys.readouterr().out
