"""Shared fixtures: an in-memory VcsClient and isolated config locations."""

from pathlib import Path

import pytest

from integrator.vcs import FetchResult, MergeResult, MergeStatus, OpResult, RemoteState


class FakeVcs:
    """In-memory VcsClient.

    Refs, remotes and merge behaviour are plain attributes tests set up
    directly. Every mutating call is appended to .calls.
    """

    def __init__(self, path: Path, git_dir: Path | None = None):
        self.path = Path(path)
        self._git_dir = git_dir
        self.work_tree = True
        self.dirty = False
        self.calls: list[tuple] = []

        self.remotes: dict[str, str] = {}
        self.refs: dict[str, str] = {}
        self.tags: dict[str, str] = {}
        self.descriptions: dict[str, str] = {}
        self.branches: dict[str, str] = {}
        self.config: dict[str, str] = {}

        # Fetch behaviour per remote
        self.fetch_changes: dict[str, bool] = {}
        self.fetch_failures: set[str] = set()
        self.add_failures: set[str] = set()
        self.on_fetch_refs: dict[str, dict[str, str]] = {}
        self.on_fetch_tags: dict[str, dict[str, str]] = {}

        # Merge behaviour per source ref
        self.merge_results: dict[str, MergeResult] = {}
        self.finish_ok: dict[str, bool] = {}
        self.unmerged: dict[str, list[str]] = {}
        self.commit_counts: dict[str, int] = {}
        self.mergetool_ok = True
        self.base_contains: set[str] = set()
        self.head_contains: set[str] = set()
        self._merging: str | None = None

        self.files: dict[str, str] = {}
        self.commits: list[str] = []
        self.pushes: list[tuple[str, str, bool]] = []
        self.push_failures: set[str] = set()
        self.clone_ok = True
        self.children: dict[Path, "FakeVcs"] = {}

    def at(self, path):
        path = Path(path)
        if path not in self.children:
            self.children[path] = FakeVcs(path)
        return self.children[path]

    # Repository
    def is_work_tree(self):
        return self.work_tree

    def is_dirty(self):
        return self.dirty

    def git_dir(self):
        return self._git_dir

    def set_config(self, key, value):
        self.config[key] = value
        return OpResult(ok=True)

    # Remotes
    def list_remotes(self):
        return [RemoteState(name=n, url=u) for n, u in self.remotes.items()]

    def add_remote(self, name, url, branch=""):
        self.calls.append(("add_remote", name, url, branch))
        if name in self.add_failures:
            return FetchResult(ok=False, detail=f"fatal: could not read from {url}", returncode=128)
        self.remotes[name] = url
        self._apply_fetch(name)
        return FetchResult(ok=True, changed=True)

    def remove_remote(self, name):
        self.calls.append(("remove_remote", name))
        self.remotes.pop(name, None)
        return OpResult(ok=True)

    def fetch(self, remote, tags=False):
        self.calls.append(("fetch", remote, tags))
        if remote in self.fetch_failures:
            return FetchResult(ok=False, detail=f"fatal: unable to access '{remote}'", returncode=128)
        self._apply_fetch(remote)
        changed = self.fetch_changes.get(remote, False)
        return FetchResult(ok=True, changed=changed, detail="new objects" if changed else "")

    def _apply_fetch(self, remote):
        self.refs.update(self.on_fetch_refs.get(remote, {}))
        self.tags.update(self.on_fetch_tags.get(remote, {}))

    def push(self, remote, branch, force=False):
        self.calls.append(("push", remote, branch, force))
        if branch in self.push_failures:
            return OpResult(ok=False, detail="rejected", returncode=1)
        self.pushes.append((remote, branch, force))
        return OpResult(ok=True)

    def clone(self, url, dest):
        self.calls.append(("clone", url, dest))
        if not self.clone_ok:
            return OpResult(ok=False, detail="repository not found", returncode=128)
        dest.mkdir(parents=True)
        return OpResult(ok=True)

    # Refs
    def resolve(self, ref):
        return self.refs.get(ref)

    def latest_tag(self, ref):
        return self.tags.get(ref)

    def describe(self, ref):
        return self.descriptions.get(ref)

    def branch_exists(self, branch):
        return branch in self.branches

    def rename_branch(self, old, new):
        self.calls.append(("rename_branch", old, new))
        self.branches[new] = self.branches.pop(old)
        return OpResult(ok=True)

    def create_branch(self, branch, start_point):
        self.calls.append(("create_branch", branch, start_point))
        if branch in self.branches:
            return OpResult(ok=False, detail=f"a branch named '{branch}' already exists", returncode=128)
        self.branches[branch] = start_point
        self.head_contains = {start_point} | self.base_contains
        return OpResult(ok=True)

    def is_ancestor(self, ancestor, descendant):
        return descendant == "HEAD" and ancestor in self.head_contains

    def commit_count(self, ref_range):
        return self.commit_counts.get(ref_range.split("..", 1)[-1], 1)

    def reset_hard(self, ref):
        self.calls.append(("reset_hard", ref))
        return OpResult(ok=True)

    # Merging
    def merge(self, source, message):
        self.calls.append(("merge", source, message))
        result = self.merge_results.get(source, MergeResult(status=MergeStatus.CLEAN))
        if result.status == MergeStatus.CLEAN:
            self.head_contains.add(self.refs[source])
            self.commits.append(message)
        elif result.status == MergeStatus.CONFLICTED:
            self._merging = source
        return result

    def unmerged_files(self):
        if self._merging is None:
            return []
        return list(self.unmerged.get(self._merging, []))

    def finish_merge(self):
        source = self._merging
        self.calls.append(("finish_merge", source))
        if source is None or self.unmerged.get(source) or not self.finish_ok.get(source, True):
            return OpResult(ok=False, detail="Committing is not possible because you have unmerged files.", returncode=1)
        self.head_contains.add(self.refs[source])
        self.commits.append(f"Merge {source}")
        self._merging = None
        return OpResult(ok=True)

    def abort_merge(self):
        self.calls.append(("abort_merge", self._merging))
        self._merging = None
        return OpResult(ok=True)

    def run_mergetool(self):
        self.calls.append(("mergetool", self._merging))
        if not self.mergetool_ok:
            return OpResult(ok=False, returncode=1)
        self.unmerged[self._merging] = []
        return OpResult(ok=True)

    # Committing
    def write_file(self, relpath, content):
        self.files[relpath] = content

    def commit_paths(self, paths, message):
        self.calls.append(("commit_paths", tuple(paths), message))
        self.commits.append(message)
        return OpResult(ok=True)

    def commit_all(self, message):
        self.calls.append(("commit_all", message))
        self.commits.append(message)
        self.dirty = False
        return OpResult(ok=True)


class FixedConfirmer:
    """Answers every question the same way and remembers what was asked."""

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.asked: list[str] = []

    def confirm(self, message: str, default: bool = True) -> bool:
        self.asked.append(message)
        return self.answer


@pytest.fixture(autouse=True)
def isolated_config_dirs(tmp_path, monkeypatch):
    """Keep the user's and the system's real config files out of tests."""
    monkeypatch.setattr("integrator.lib.config.USER_CONFIG_DIR", str(tmp_path / "user-config"))
    monkeypatch.setattr("integrator.lib.config.SYSTEM_CONFIG_DIR", str(tmp_path / "system-config"))


@pytest.fixture
def fake_vcs(tmp_path):
    repo = tmp_path / "repo"
    git_dir = repo / ".git"
    git_dir.mkdir(parents=True)
    return FakeVcs(repo, git_dir)
