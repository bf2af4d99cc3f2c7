"""
Tests for the migrate-regions command
"""

import json

import pytest

from regionpipe import cli
from regionpipe.errors import CatalogError, StoreError
from regionpipe.migration.base import PhaseResult, PhaseStatus
from regionpipe.migration.migrator import MigrationRun

# ─── Fixtures ────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def no_logging_setup(mocker):
    """Keep main() from replacing pytest's log handlers."""
    return mocker.patch("regionpipe.cli.logging.basicConfig")


@pytest.fixture
def snapshot(tmp_path, sample_collections):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(sample_collections))
    return path


def failed_run():
    result = PhaseResult(phase="venues", collection="courses")
    result.transition(PhaseStatus.RUNNING)
    result.transition(PhaseStatus.FAILED)
    return MigrationRun(results={"venues": result})


# ─── Arguments ────────────────────────────────────────────────────────────────


class TestArguments:
    def test_no_flags_selects_all(self):
        args = cli.build_parser().parse_args([])
        assert cli.selected_phases(args) is None

    def test_phase_flags(self):
        args = cli.build_parser().parse_args(["--activity", "--venues"])
        assert cli.selected_phases(args) == ["venues", "activity"]

    def test_all_overrides_phase_flags(self):
        args = cli.build_parser().parse_args(["--all", "--people"])
        assert cli.selected_phases(args) is None

    @pytest.mark.parametrize("flag", ["--dry-run", "--preview"])
    def test_preview_aliases(self, flag):
        assert cli.build_parser().parse_args([flag]).dry_run is True

    def test_env_choices(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--env", "staging"])


class TestLoggingSetup:
    def test_stream_handler_only_without_file(self, test_config, no_logging_setup):
        config = test_config.model_copy(
            update={"logging": test_config.logging.model_copy(update={"file": None})}
        )
        cli.setup_logging(config)

        kwargs = no_logging_setup.call_args.kwargs
        assert kwargs["force"] is True
        assert kwargs["level"] == config.logging.level
        assert len(kwargs["handlers"]) == 1

    def test_file_handler_creates_parent_dir(self, test_config, no_logging_setup, tmp_path):
        log_file = tmp_path / "logs" / "migration.log"
        config = test_config.model_copy(
            update={"logging": test_config.logging.model_copy(update={"file": str(log_file)})}
        )
        cli.setup_logging(config)

        handlers = no_logging_setup.call_args.kwargs["handlers"]
        assert log_file.parent.is_dir()
        assert len(handlers) == 2
        for handler in handlers:
            handler.close()


# ─── main ─────────────────────────────────────────────────────────────────────


class TestMain:
    def test_dry_run_against_snapshot(self, snapshot, capsys):
        code = cli.main(["--all", "--dry-run", "--snapshot", str(snapshot)])

        out = capsys.readouterr().out
        assert code == 0
        assert "people" in out
        assert "leaderboards" in out
        assert "Preview only" in out

    def test_status(self, snapshot, capsys):
        code = cli.main(["--status", "--snapshot", str(snapshot)])

        out = capsys.readouterr().out
        assert code == 0
        assert "users" in out
        assert "unassigned" in out

    def test_failed_phase_exits_nonzero(self, snapshot, mocker):
        migrator = mocker.MagicMock()
        migrator.run.return_value = failed_run()
        mocker.patch("regionpipe.cli.BatchMigrator.from_config", return_value=migrator)
        alert = mocker.patch("regionpipe.cli.AlertManager.send_run_summary")

        assert cli.main(["--venues", "--snapshot", str(snapshot)]) == 1
        migrator.run.assert_called_once_with(["venues"], preview=False)
        alert.assert_called_once()

    @pytest.mark.parametrize("error", [CatalogError("bad catalog"), StoreError("down")])
    def test_startup_failure_exits_nonzero(self, snapshot, mocker, error):
        mocker.patch("regionpipe.cli.BatchMigrator.from_config", side_effect=error)
        alert = mocker.patch("regionpipe.cli.AlertManager.send_startup_failure")

        assert cli.main(["--snapshot", str(snapshot)]) == 1
        alert.assert_called_once_with(error)

    @pytest.mark.parametrize("contents", [None, "{not json"])
    def test_unloadable_snapshot_exits_nonzero(self, tmp_path, mocker, contents):
        path = tmp_path / "snapshot.json"
        if contents is not None:
            path.write_text(contents)
        alert = mocker.patch("regionpipe.cli.AlertManager.send_startup_failure")

        assert cli.main(["--dry-run", "--snapshot", str(path)]) == 1
        (error,) = alert.call_args.args
        assert isinstance(error, StoreError)
        assert "Cannot load snapshot" in str(error)
