"""Tests for the cadence command."""

import sys
from unittest.mock import MagicMock, patch

import pytest

from cadence import cli
from cadence.core.config import Config

from conftest import FakeDevice


def run_main(monkeypatch, *args: str) -> int:
    monkeypatch.setattr(sys, "argv", ["cadence", *args])
    with pytest.raises(SystemExit) as exc_info:
        cli.main()
    return exc_info.value.code


class TestCheck:
    def test_reports_available_mpv(self, monkeypatch, capsys, tmp_path):
        monkeypatch.setattr(cli, "check_mpv_available", lambda: True)
        monkeypatch.setattr(cli, "get_config_path", lambda: tmp_path / "config.toml")

        assert run_main(monkeypatch, "check") == 0

        out = capsys.readouterr().out
        assert "(not created yet)" in out
        assert "mpv: available" in out

    def test_missing_mpv_fails(self, monkeypatch, capsys, tmp_path):
        monkeypatch.setattr(cli, "check_mpv_available", lambda: False)
        monkeypatch.setattr(cli, "get_config_path", lambda: tmp_path / "config.toml")

        assert run_main(monkeypatch, "check") == 1
        assert "mpv: not found" in capsys.readouterr().err


def test_no_subcommand_prints_help(monkeypatch, capsys):
    assert run_main(monkeypatch) == 1
    assert "serve" in capsys.readouterr().out


def test_build_session_uses_player_config():
    config = Config()
    config.player.default_volume = 0.25
    device = FakeDevice()

    session, catalog = cli.build_session(config, device)

    assert session.volume == 0.25
    assert device.volume == 0.25
    assert catalog.base_url == config.catalog.base_url


class TestServe:
    def test_refuses_to_start_without_mpv(self, monkeypatch):
        monkeypatch.setattr(cli, "load_config", Config)
        monkeypatch.setattr(cli, "setup_loguru", MagicMock())
        monkeypatch.setattr(cli, "check_mpv_available", lambda: False)

        assert run_main(monkeypatch, "serve") == 1

    def test_serves_and_stops_device(self, monkeypatch):
        device = MagicMock()
        device.start.return_value = True
        monkeypatch.setattr(cli, "load_config", Config)
        monkeypatch.setattr(cli, "setup_loguru", MagicMock())
        monkeypatch.setattr(cli, "check_mpv_available", lambda: True)
        monkeypatch.setattr(cli, "MpvDevice", lambda config: device)

        with patch("uvicorn.run") as run:
            assert run_main(monkeypatch, "serve", "--port", "9100") == 0

        assert run.call_args.kwargs["host"] == "127.0.0.1"
        assert run.call_args.kwargs["port"] == 9100
        device.stop.assert_called_once()
