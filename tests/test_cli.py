"""Tests for integrator.cli."""

from unittest.mock import patch

import pytest

from integrator.cli import main
from integrator.lib.errors import MergeFailed
from integrator.workflow.builder import BuildResult
from integrator.workflow.engine import RunSummary

BRANCHES = """\
origin   https://example.org/linux.git
alpha    git://example.org/a.git          main
"""


@pytest.fixture
def repo(fake_vcs, tmp_path):
    fake_vcs.remotes["origin"] = "https://example.org/linux.git"
    fake_vcs.tags["origin/master"] = "v6.1"
    config = tmp_path / "branches.conf"
    config.write_text(BRANCHES)
    with patch("integrator.cli.get_vcs", return_value=(fake_vcs, fake_vcs.git_dir())):
        yield fake_vcs, config


class TestBuildCommand:

    def test_flags_reach_settings(self, repo, tmp_path):
        vcs, config = repo
        summary = RunSummary(build=BuildResult(branch="next", base="v6.1"))
        with patch("integrator.cli.run_integration", return_value=summary) as run:
            code = main([
                "--repo", str(vcs.path), "build", "-c", str(config), "-b", "next",
                "--push-url", "publish", "--track", "head", "-f", "-y",
                "--merge-log", str(tmp_path / "merge.log"),
            ])

        assert code == 0
        settings = run.call_args.args[0]
        assert settings.branch == "next"
        assert settings.push_url == "publish"
        assert settings.track == "head"
        assert settings.force_merge is True
        assert settings.assume_yes is True
        assert settings.config_path == config
        assert settings.merge_log == tmp_path / "merge.log"

    def test_unset_flags_keep_defaults(self, repo):
        vcs, _ = repo
        summary = RunSummary(build=BuildResult(branch="integration", base="v6.1"))
        with patch("integrator.cli.run_integration", return_value=summary) as run:
            main(["--repo", str(vcs.path), "build"])

        settings = run.call_args.args[0]
        assert settings.interactive is False
        assert settings.force_merge is False
        assert settings.noop_policy == "ask"

    def test_aborted_run_succeeds(self, repo, capsys):
        vcs, _ = repo
        with patch("integrator.cli.run_integration", return_value=RunSummary(aborted=True)):
            assert main(["--repo", str(vcs.path), "build"]) == 0

    def test_merge_failure_exit_code(self, repo, capsys):
        vcs, _ = repo
        error = MergeFailed(topic="alpha", source="alpha/main", detail="unresolved conflicts")
        with patch("integrator.cli.run_integration", side_effect=error):
            code = main(["--repo", str(vcs.path), "build"])
        assert code == 4
        assert "ERROR: Merge of topic 'alpha'" in capsys.readouterr().out

    def test_lock_held_in_git_dir(self, repo):
        vcs, _ = repo
        seen = {}

        def fake_run(settings, vcs_, confirmer):
            seen["lock"] = (vcs.git_dir() / "integrator.lock").exists()
            return RunSummary(aborted=True)

        with patch("integrator.cli.run_integration", side_effect=fake_run):
            main(["--repo", str(vcs.path), "build"])
        assert seen["lock"]

    def test_bad_settings_file(self, repo, tmp_path):
        vcs, _ = repo
        bad = tmp_path / "integrator.env"
        bad.write_text("TRACK=sideways\nBOGUS LINE\n")
        with pytest.raises(SystemExit) as exc:
            main(["--repo", str(vcs.path), "--settings", str(bad), "build"])
        assert exc.value.code == 2


class TestRemotesCommand:

    def test_adds_missing_remote(self, repo, capsys):
        vcs, config = repo
        code = main(["--repo", str(vcs.path), "remotes", "-c", str(config), "-y"])

        assert code == 0
        assert ("add_remote", "alpha", "git://example.org/a.git", "main") in vcs.calls
        out = capsys.readouterr().out
        assert "Added:   alpha" in out
        assert "1 change(s)" in out

    def test_missing_branch_list(self, repo, tmp_path, capsys):
        vcs, _ = repo
        code = main(["--repo", str(vcs.path), "remotes", "-c", str(tmp_path / "nope.conf"), "-y"])
        assert code == 2
        assert "No branch configuration found" in capsys.readouterr().out


class TestReportCommand:

    def test_writes_reports(self, tmp_path, capsys):
        log = tmp_path / "merge.log"
        log.write_text("Merge successful : alpha : abc1234 : 5\nMerge conflict : beta : def5678\n")
        out_dir = tmp_path / "out"

        assert main(["report", str(log), "-o", str(out_dir)]) == 0
        assert "alpha" in (out_dir / "topic_SHA1").read_text()
        assert "beta" in (out_dir / "topic_conflict").read_text()

    def test_missing_log(self, tmp_path, capsys):
        assert main(["report", str(tmp_path / "missing.log")]) == 1
        assert "Log file not found" in capsys.readouterr().out


class TestRepository:

    def test_not_a_repository(self, tmp_path, capsys):
        code = main(["--repo", str(tmp_path / "nowhere"), "remotes", "-y"])
        assert code == 3
        assert "not a git repository" in capsys.readouterr().out
