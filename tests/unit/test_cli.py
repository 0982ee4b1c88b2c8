"""Tests for the rbac-policy CLI."""
from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from rbac_policy.cli.main import cli
from rbac_policy.config.envelope import RBACConfig, dump_envelope, load_envelope_string
from rbac_policy.policies.parser import parse_policies
from rbac_policy.policies.records import Grant

POLICY = """\
p, dev, applications, get, */*, allow
p, dev, applications, sync, default/*, allow
g, alice, role:dev
"""


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def store_file(tmp_path: Path) -> Path:
    path = tmp_path / "rbac-config.yaml"
    path.write_text(dump_envelope(RBACConfig(policy=POLICY, scopes="[groups]")), encoding="utf-8")
    return path


@pytest.fixture()
def settings_file(tmp_path: Path, store_file: Path) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(
        f"store_path: {store_file}\naudit_log_path: {tmp_path / 'audit.jsonl'}\n",
        encoding="utf-8",
    )
    return path


def _invoke(runner: CliRunner, settings_file: Path, *args: str):  # type: ignore[no-untyped-def]
    return runner.invoke(cli, ["--settings", str(settings_file), *args])


class TestReadCommands:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "rbac-policy-engine" in result.output

    def test_show(self, runner: CliRunner, settings_file: Path) -> None:
        result = _invoke(runner, settings_file, "show")
        assert result.exit_code == 0
        assert "dev" in result.output
        assert "role:dev" in result.output

    def test_subjects(self, runner: CliRunner, settings_file: Path) -> None:
        result = _invoke(runner, settings_file, "subjects")
        assert result.exit_code == 0
        assert "alice" in result.output

    def test_can_reports_additional_grants(self, runner: CliRunner, settings_file: Path) -> None:
        result = _invoke(runner, settings_file, "can", "dev", "--project", "default")
        assert result.exit_code == 0
        assert "Can deploy" in result.output
        assert "Beyond all-projects grants" in result.output

    def test_store_option_overrides_settings(
        self, runner: CliRunner, tmp_path: Path, store_file: Path
    ) -> None:
        result = runner.invoke(
            cli,
            ["--settings", str(tmp_path / "absent.yaml"), "--store", str(store_file), "show"],
        )
        assert result.exit_code == 0
        assert "sync" in result.output


class TestEditCommands:
    def test_grant_then_read_back(
        self, runner: CliRunner, settings_file: Path, store_file: Path, tmp_path: Path
    ) -> None:
        result = _invoke(runner, settings_file, "grant", "qa", "-p", "staging", "--view", "--delete")
        assert result.exit_code == 0, result.output
        config = load_envelope_string(store_file.read_text(encoding="utf-8"))
        records = parse_policies(config.policy)
        assert records[-1] == Grant("qa", "applications", "delete", "staging/*")
        assert config.scopes == "[groups]"
        assert (tmp_path / "audit.jsonl").exists()

    def test_grant_requires_a_capability(self, runner: CliRunner, settings_file: Path) -> None:
        result = _invoke(runner, settings_file, "grant", "qa", "-p", "staging")
        assert result.exit_code == 1

    def test_grant_replace(self, runner: CliRunner, settings_file: Path, store_file: Path) -> None:
        result = _invoke(runner, settings_file, "grant", "dev", "-p", "default", "--view", "--replace")
        assert result.exit_code == 0, result.output
        records = parse_policies(load_envelope_string(store_file.read_text(encoding="utf-8")).policy)
        assert Grant("dev", "applications", "sync", "default/*") not in records
        assert Grant("dev", "applications", "get", "default/*") in records

    def test_replace_on_single_app_refused(
        self, runner: CliRunner, settings_file: Path, store_file: Path
    ) -> None:
        before = store_file.read_text(encoding="utf-8")
        result = _invoke(
            runner, settings_file, "grant", "dev", "-p", "default", "-a", "guestbook", "--deploy", "--replace"
        )
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert store_file.read_text(encoding="utf-8") == before

    def test_clear(self, runner: CliRunner, settings_file: Path, store_file: Path) -> None:
        result = _invoke(runner, settings_file, "clear", "alice")
        assert result.exit_code == 0
        policy = load_envelope_string(store_file.read_text(encoding="utf-8")).policy
        assert "alice" not in policy


class TestHistory:
    def test_empty(self, runner: CliRunner, settings_file: Path) -> None:
        result = _invoke(runner, settings_file, "history")
        assert result.exit_code == 0
        assert "No policy edits recorded" in result.output

    def test_lists_edits_for_subject(self, runner: CliRunner, settings_file: Path) -> None:
        _invoke(runner, settings_file, "grant", "qa", "-p", "staging", "--view")
        _invoke(runner, settings_file, "clear", "alice")
        result = _invoke(runner, settings_file, "history", "--subject", "qa")
        assert result.exit_code == 0, result.output
        assert "policy_grants_added" in result.output
        assert "policy_subject_cleared" not in result.output


class TestValidate:
    def test_well_formed(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "policy.csv"
        path.write_text("# ok\n" + POLICY, encoding="utf-8")
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 0
        assert "well-formed" in result.output

    def test_reports_dropped_lines(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "policy.csv"
        path.write_text(POLICY + "p, incomplete\n", encoding="utf-8")
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Dropped malformed lines: 1" in result.output


class TestCorruptStore:
    @pytest.fixture()
    def corrupt_settings(self, settings_file: Path, store_file: Path) -> Path:
        store_file.write_text("policy: [unclosed", encoding="utf-8")
        return settings_file

    @pytest.mark.parametrize(
        "args",
        [
            ("show",),
            ("subjects",),
            ("can", "dev", "--project", "default"),
            ("grant", "qa", "-p", "staging", "--view"),
            ("clear", "alice"),
        ],
    )
    def test_exits_cleanly(
        self, runner: CliRunner, corrupt_settings: Path, args: tuple[str, ...]
    ) -> None:
        result = _invoke(runner, corrupt_settings, *args)
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
