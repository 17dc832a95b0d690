"""Unit tests for the CLI — Typer registration, exit codes and wiring."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from bnlogs import __version__
from bnlogs.cli import app as app_module
from bnlogs.cli.app import app
from bnlogs.cli.commands import tail as tail_module
from bnlogs.core.supervisor import FanoutSupervisor
from bnlogs.discovery import DiscoveryError

runner = CliRunner()

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class _FailingDiscovery:
    source_name = "failing"

    async def discover(self) -> list[str]:
        raise DiscoveryError("registry unreachable")


@pytest.fixture(autouse=True)
def _isolated_env(clean_env: None, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep a developer's .env out of the way.
    monkeypatch.chdir(tmp_path)


class TestCliApp:
    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "--canister-id" in result.output

    def test_canister_id_is_required(self):
        result = runner.invoke(app, [])
        assert result.exit_code == 2

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_main_entry_point_exists(self):
        assert callable(app_module.main)


class TestTailCommand:
    def test_no_endpoints_exits_cleanly(self):
        result = runner.invoke(app, ["--canister-id", "aaaaa-aa"])
        assert result.exit_code == 0

    def test_discovery_failure_exits_non_zero(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(tail_module, "discovery_from_config", lambda settings: _FailingDiscovery())
        result = runner.invoke(app, ["-c", "aaaaa-aa"])
        assert result.exit_code == 1

    def test_invalid_configuration_exits_with_usage_error(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("BNLOGS_PING_INTERVAL_SECONDS", "-1")
        result = runner.invoke(app, ["-c", "aaaaa-aa"])
        assert result.exit_code == 2

    def test_passes_canister_and_configured_endpoints(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("BNLOGS_ENDPOINTS", "bn1.example.org,bn2.example.org")
        calls: list[tuple[list[str], str]] = []

        async def fake_run(self, stream_id, *, wait_for_shutdown=None):
            calls.append((await self.discover(), stream_id))
            return 2

        monkeypatch.setattr(FanoutSupervisor, "run", fake_run)
        result = runner.invoke(app, ["--canister-id", "rrkah-fqaaa-aaaaa-aaaaq-cai"])

        assert result.exit_code == 0
        assert calls == [(["bn1.example.org", "bn2.example.org"], "rrkah-fqaaa-aaaaa-aaaaq-cai")]

    def test_keyboard_interrupt_exits_cleanly(self, monkeypatch: pytest.MonkeyPatch):
        async def interrupted(self, stream_id, *, wait_for_shutdown=None):
            raise KeyboardInterrupt

        monkeypatch.setattr(FanoutSupervisor, "run", interrupted)
        result = runner.invoke(app, ["-c", "aaaaa-aa"])
        assert result.exit_code == 0


class TestProcessExitCodes:
    """Runs ``bnlogs`` in a fresh interpreter so nothing is imported beforehand."""

    def _run(self, tmp_path: Path, **env: str) -> subprocess.CompletedProcess[str]:
        child_env = {k: v for k, v in os.environ.items() if not k.startswith("BNLOGS_")}
        child_env.update(env)
        child_env["PYTHONPATH"] = os.pathsep.join(
            filter(None, [str(PROJECT_ROOT), child_env.get("PYTHONPATH", "")])
        )
        return subprocess.run(
            [sys.executable, "-m", "bnlogs.cli.app", "-c", "aaaaa-aa"],
            cwd=tmp_path,
            env=child_env,
            capture_output=True,
            text=True,
            timeout=60,
        )

    def test_invalid_setting_is_a_usage_error(self, tmp_path: Path):
        result = self._run(tmp_path, BNLOGS_LOG_LEVEL="bogus")
        assert result.returncode == 2
        assert "Invalid configuration" in result.stderr
        assert "Traceback" not in result.stderr

    def test_no_endpoints_exits_zero(self, tmp_path: Path):
        result = self._run(tmp_path)
        assert result.returncode == 0
