"""Tests for integrator.vcs.GitVcsClient result classification."""

from pathlib import Path
from unittest.mock import patch

from integrator.git.runner import GitResult
from integrator.vcs import GitVcsClient, MergeStatus, RemoteState


def _ok(stdout="", stderr=""):
    return GitResult(returncode=0, stdout=stdout, stderr=stderr)


class TestFetch:
    """A fetch counts as a change only when git reported something."""

    @patch("integrator.vcs.git.fetch")
    def test_silent_fetch_is_unchanged(self, mock_fetch):
        mock_fetch.return_value = _ok()
        result = GitVcsClient(Path("/repo")).fetch("net")
        assert result.ok
        assert result.changed is False

    @patch("integrator.vcs.git.fetch")
    def test_fetch_with_output_is_changed(self, mock_fetch):
        mock_fetch.return_value = _ok(stderr="From git://example.org/net\n   1111111..2222222  main -> net/main\n")
        result = GitVcsClient(Path("/repo")).fetch("net")
        assert result.changed is True

    @patch("integrator.vcs.git.fetch")
    def test_failed_fetch(self, mock_fetch):
        mock_fetch.return_value = GitResult(returncode=128, stdout="", stderr="fatal: unable to access")
        result = GitVcsClient(Path("/repo")).fetch("net")
        assert not result.ok
        assert result.changed is False
        assert "unable to access" in result.detail

    @patch("integrator.vcs.git.fetch")
    def test_fetch_timeout_is_passed_through(self, mock_fetch):
        mock_fetch.return_value = _ok()
        GitVcsClient(Path("/repo"), fetch_timeout=900).fetch("origin", tags=True)
        assert mock_fetch.call_args.kwargs == {"tags": True, "timeout": 900}


class TestMerge:
    """Merge results are classified as clean, conflicted or failed."""

    @patch("integrator.vcs.git.merge_no_ff")
    def test_clean(self, mock_merge):
        mock_merge.return_value = _ok(stdout="Merge made by the 'ort' strategy.")
        assert GitVcsClient(Path("/repo")).merge("net/main", "msg").status == MergeStatus.CLEAN

    @patch("integrator.vcs.git.get_conflicted_files")
    @patch("integrator.vcs.git.merge_no_ff")
    def test_conflicted(self, mock_merge, mock_conflicts):
        mock_merge.return_value = GitResult(
            returncode=1, stdout="CONFLICT (content): Merge conflict in a.c\n", stderr="",
        )
        mock_conflicts.return_value = ["a.c"]
        result = GitVcsClient(Path("/repo")).merge("net/main", "msg")
        assert result.status == MergeStatus.CONFLICTED
        assert result.conflicted_files == ["a.c"]
        assert result.returncode == 1

    @patch("integrator.vcs.git.get_conflicted_files")
    @patch("integrator.vcs.git.merge_no_ff")
    def test_conflict_already_resolved_by_rerere(self, mock_merge, mock_conflicts):
        mock_merge.return_value = GitResult(
            returncode=1,
            stdout="CONFLICT (content): Merge conflict in a.c\nStaged 'a.c' using previous resolution.\n",
            stderr="",
        )
        mock_conflicts.return_value = []
        result = GitVcsClient(Path("/repo")).merge("net/main", "msg")
        assert result.status == MergeStatus.CONFLICTED
        assert result.conflicted_files == []

    @patch("integrator.vcs.git.get_conflicted_files")
    @patch("integrator.vcs.git.merge_no_ff")
    def test_other_failure(self, mock_merge, mock_conflicts):
        mock_merge.return_value = GitResult(returncode=1, stdout="", stderr="merge: nope - not something we can merge")
        mock_conflicts.return_value = []
        result = GitVcsClient(Path("/repo")).merge("nope", "msg")
        assert result.status == MergeStatus.FAILED


class TestRemotes:
    @patch("integrator.vcs.git.list_remotes")
    def test_list_remotes_typed(self, mock_list):
        mock_list.return_value = [("origin", "https://example.org/linux.git")]
        assert GitVcsClient(Path("/repo")).list_remotes() == [
            RemoteState(name="origin", url="https://example.org/linux.git"),
        ]

    def test_at_keeps_timeout(self):
        client = GitVcsClient(Path("/repo"), fetch_timeout=42).at(Path("/cache"))
        assert client.path == Path("/cache")
        assert client.fetch_timeout == 42


class TestWriteFile:
    def test_creates_parent_directories(self, tmp_path):
        GitVcsClient(tmp_path).write_file("Next/SHA1s", "Name SHA1\n")
        assert (tmp_path / "Next" / "SHA1s").read_text() == "Name SHA1\n"
