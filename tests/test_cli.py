"""Tests for the calnotes CLI."""

import json
import logging
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from calnotes.calendar.sync import SyncMode, SyncReport
from calnotes.cli import main
from calnotes.config import CalnotesSettings
from calnotes.domains.resolver import DomainResolver
from calnotes.exceptions import SyncError


@pytest.fixture(autouse=True)
def isolated(monkeypatch):
    """Keep environment settings and log handlers out of other tests."""
    for name in CalnotesSettings.model_fields:
        monkeypatch.delenv(f"CALNOTES_{name.upper()}", raising=False)
    yield
    logger = logging.getLogger("calnotes")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("notes_backend: local\nblacklist_domains: mycompany.com\n")
    return path


class TestMain:
    """Test the command group."""

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("sync", "root-domain", "note-preview", "state", "auth"):
            assert command in result.output


class TestSyncCommand:
    """Test the sync command wiring."""

    def test_prints_report(self, runner, config):
        coordinator = MagicMock()
        coordinator.sync.return_value = SyncReport(mode=SyncMode.INCREMENTAL, blockers_created=2)

        with patch("calnotes.cli.build_coordinator", return_value=coordinator):
            result = runner.invoke(main, ["sync", "--config", str(config)])

        assert result.exit_code == 0
        coordinator.sync.assert_called_once_with(force_full_resync=False)
        assert "blockers created" in result.output
        assert "incremental" in result.output

    def test_full_and_dry_run_flags(self, runner, config):
        coordinator = MagicMock()
        coordinator.sync.return_value = SyncReport(mode=SyncMode.FULL_RESYNC, resynced=True)

        with patch("calnotes.cli.build_coordinator", return_value=coordinator) as build:
            result = runner.invoke(main, ["sync", "--full", "--dry-run", "--config", str(config)])

        assert result.exit_code == 0
        settings = build.call_args.args[0]
        assert settings.debug is True
        assert settings.full_sync is True
        coordinator.sync.assert_called_once_with(force_full_resync=True)
        assert "Dry run mode" in result.output
        assert "full resync was performed" in result.output

    def test_sync_error_exit_code(self, runner, config):
        coordinator = MagicMock()
        coordinator.sync.side_effect = SyncError("quota exceeded", service="Google Calendar")

        with patch("calnotes.cli.build_coordinator", return_value=coordinator):
            result = runner.invoke(main, ["sync", "--config", str(config)])

        assert result.exit_code == 12
        assert "quota exceeded" in result.output

    def test_missing_config_file(self, runner, tmp_path):
        result = runner.invoke(main, ["sync", "--config", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 10


class TestRootDomainCommand:
    """Test address classification output."""

    def test_classifies(self, runner, config, tld_table):
        resolver = DomainResolver(blacklist_domains=["mycompany.com"], table=tld_table)

        with patch("calnotes.cli.build_resolver", return_value=resolver):
            result = runner.invoke(
                main, ["root-domain", "a@x.acme.com.br", "me@mycompany.com", "--config", str(config)]
            )

        assert result.exit_code == 0
        assert "acme.com.br" in result.output
        assert "external" in result.output
        assert "internal" in result.output

    def test_requires_address(self, runner):
        result = runner.invoke(main, ["root-domain"])
        assert result.exit_code != 0


class TestStateCommands:
    """Test cursor inspection and reset."""

    def test_show(self, runner, config, tmp_path):
        (tmp_path / "state.json").write_text(json.dumps({"syncToken": "s1"}))

        result = runner.invoke(main, ["state", "show", "--config", str(config)])

        assert result.exit_code == 0
        assert "syncToken: s1" in result.output
        assert "pageToken: not set" in result.output

    def test_reset(self, runner, config, tmp_path):
        state_file = tmp_path / "state.json"
        state_file.write_text(json.dumps({"syncToken": "s1", "pageToken": "p1", "other": "x"}))

        result = runner.invoke(main, ["state", "reset", "--yes", "--config", str(config)])

        assert result.exit_code == 0
        assert json.loads(state_file.read_text()) == {"other": "x"}

    def test_reset_aborted(self, runner, config, tmp_path):
        state_file = tmp_path / "state.json"
        state_file.write_text(json.dumps({"syncToken": "s1"}))

        result = runner.invoke(main, ["state", "reset", "--config", str(config)], input="n\n")

        assert result.exit_code != 0
        assert json.loads(state_file.read_text()) == {"syncToken": "s1"}


class TestAuthCommand:
    """Test the OAuth command."""

    def test_missing_client_file(self, runner, config):
        result = runner.invoke(main, ["auth", "--config", str(config)])
        assert result.exit_code == 10
        assert "client file not found" in result.output

    def test_runs_flow(self, runner, config, tmp_path):
        secrets = tmp_path / ".secrets"
        secrets.mkdir()
        (secrets / "credentials.json").write_text("{}")

        with patch("calnotes.google_auth.run_oauth_flow") as flow:
            result = runner.invoke(main, ["auth", "--config", str(config), "--port", "8080"])

        assert result.exit_code == 0
        flow.assert_called_once_with(secrets / "credentials.json", secrets / "token.json", port=8080)


class TestBuildCoordinator:
    """Test component wiring for unattended runs."""

    def test_credentials_loaded_without_browser(self, config):
        from calnotes.cli import build_coordinator
        from calnotes.config import load_settings

        settings = load_settings(config)
        with patch("calnotes.google_auth.get_credentials") as get_credentials:
            with patch("calnotes.cli.build_calendar"), patch("calnotes.cli.build_documents"):
                with patch("calnotes.cli.build_merger"):
                    build_coordinator(settings)

        assert get_credentials.call_args.kwargs["interactive"] is False
