"""
Version-control capability used by the integration logic.

The reconciler, resolution cache and builder only ever talk to a
VcsClient, so they can be driven by an in-memory fake in tests. GitVcsClient
is the real thing, built on the integrator.git wrappers.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from integrator import git
from integrator.git.runner import NETWORK_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteState:
    """A remote as git currently knows it."""
    name: str
    url: str


@dataclass
class OpResult:
    """Outcome of a mutating VCS operation."""
    ok: bool
    detail: str = ""
    returncode: int = 0


@dataclass
class FetchResult(OpResult):
    """Outcome of a fetch; changed is True when anything new arrived."""
    changed: bool = False


class MergeStatus(Enum):
    CLEAN = "clean"
    CONFLICTED = "conflicted"
    FAILED = "failed"


@dataclass
class MergeResult:
    """Outcome of a merge attempt."""
    status: MergeStatus
    conflicted_files: list[str] = field(default_factory=list)
    returncode: int = 0
    detail: str = ""


@runtime_checkable
class VcsClient(Protocol):
    """Everything the integrator needs from a repository."""

    path: Path

    def at(self, path: Path) -> "VcsClient": ...

    # Repository
    def is_work_tree(self) -> bool: ...
    def is_dirty(self) -> bool: ...
    def git_dir(self) -> Path | None: ...
    def set_config(self, key: str, value: str) -> OpResult: ...

    # Remotes
    def list_remotes(self) -> list[RemoteState]: ...
    def add_remote(self, name: str, url: str, branch: str = "") -> FetchResult: ...
    def remove_remote(self, name: str) -> OpResult: ...
    def fetch(self, remote: str, tags: bool = False) -> FetchResult: ...
    def push(self, remote: str, branch: str, force: bool = False) -> OpResult: ...
    def clone(self, url: str, dest: Path) -> OpResult: ...

    # Refs
    def resolve(self, ref: str) -> str | None: ...
    def latest_tag(self, ref: str) -> str | None: ...
    def describe(self, ref: str) -> str | None: ...
    def branch_exists(self, branch: str) -> bool: ...
    def rename_branch(self, old: str, new: str) -> OpResult: ...
    def create_branch(self, branch: str, start_point: str) -> OpResult: ...
    def is_ancestor(self, ancestor: str, descendant: str) -> bool: ...
    def commit_count(self, ref_range: str) -> int: ...
    def reset_hard(self, ref: str) -> OpResult: ...

    # Merging
    def merge(self, source: str, message: str) -> MergeResult: ...
    def unmerged_files(self) -> list[str]: ...
    def finish_merge(self) -> OpResult: ...
    def abort_merge(self) -> OpResult: ...
    def run_mergetool(self) -> OpResult: ...

    # Committing
    def write_file(self, relpath: str, content: str) -> None: ...
    def commit_paths(self, paths: list[str], message: str) -> OpResult: ...
    def commit_all(self, message: str) -> OpResult: ...


def _op(result: git.GitResult) -> OpResult:
    return OpResult(ok=result.success, detail=result.output, returncode=result.returncode)


class GitVcsClient:
    """VcsClient backed by the git binary."""

    def __init__(self, path: Path, fetch_timeout: int = NETWORK_TIMEOUT):
        self.path = Path(path)
        self.fetch_timeout = fetch_timeout

    def __repr__(self):
        return f"GitVcsClient({str(self.path)!r})"

    def at(self, path: Path) -> "GitVcsClient":
        return GitVcsClient(path, fetch_timeout=self.fetch_timeout)

    def is_work_tree(self) -> bool:
        return self.path.is_dir() and git.is_work_tree(self.path)

    def is_dirty(self) -> bool:
        return git.has_uncommitted_changes(self.path)

    def git_dir(self) -> Path | None:
        return git.get_git_dir(self.path)

    def set_config(self, key: str, value: str) -> OpResult:
        return _op(git.set_config(self.path, key, value))

    def list_remotes(self) -> list[RemoteState]:
        return [RemoteState(name=name, url=url) for name, url in git.list_remotes(self.path)]

    def add_remote(self, name: str, url: str, branch: str = "") -> FetchResult:
        result = git.add_remote(self.path, name, url, branch or None, timeout=self.fetch_timeout)
        return FetchResult(
            ok=result.success,
            detail=result.output,
            returncode=result.returncode,
            changed=result.success,
        )

    def remove_remote(self, name: str) -> OpResult:
        return _op(git.remove_remote(self.path, name))

    def fetch(self, remote: str, tags: bool = False) -> FetchResult:
        result = git.fetch(self.path, remote, tags=tags, timeout=self.fetch_timeout)
        # git fetch is silent when nothing new arrived
        return FetchResult(
            ok=result.success,
            detail=result.output,
            returncode=result.returncode,
            changed=result.success and bool(result.output),
        )

    def push(self, remote: str, branch: str, force: bool = False) -> OpResult:
        return _op(git.push(self.path, remote, branch, force=force, timeout=self.fetch_timeout))

    def clone(self, url: str, dest: Path) -> OpResult:
        dest.parent.mkdir(parents=True, exist_ok=True)
        return _op(git.clone(url, dest, timeout=self.fetch_timeout))

    def resolve(self, ref: str) -> str | None:
        return git.resolve_commit(self.path, ref)

    def latest_tag(self, ref: str) -> str | None:
        return git.latest_tag(self.path, ref)

    def describe(self, ref: str) -> str | None:
        return git.describe(self.path, ref)

    def branch_exists(self, branch: str) -> bool:
        return git.branch_exists(self.path, branch)

    def rename_branch(self, old: str, new: str) -> OpResult:
        return _op(git.rename_branch(self.path, old, new))

    def create_branch(self, branch: str, start_point: str) -> OpResult:
        return _op(git.checkout_new_branch(self.path, branch, start_point))

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return git.is_ancestor(self.path, ancestor, descendant)

    def commit_count(self, ref_range: str) -> int:
        return git.get_commit_count(self.path, ref_range)

    def reset_hard(self, ref: str) -> OpResult:
        return _op(git.reset_hard(self.path, ref))

    def merge(self, source: str, message: str) -> MergeResult:
        result = git.merge_no_ff(self.path, source, message)
        if result.success:
            return MergeResult(status=MergeStatus.CLEAN, detail=result.output)

        conflicted = git.get_conflicted_files(self.path)
        # Conflicts resolved by rerere.autoupdate are already staged and no
        # longer show as unmerged, but the merge still stopped.
        if conflicted or "CONFLICT" in result.output:
            return MergeResult(
                status=MergeStatus.CONFLICTED,
                conflicted_files=conflicted,
                returncode=result.returncode,
                detail=result.output,
            )
        return MergeResult(
            status=MergeStatus.FAILED,
            returncode=result.returncode,
            detail=result.output,
        )

    def unmerged_files(self) -> list[str]:
        return git.get_conflicted_files(self.path)

    def finish_merge(self) -> OpResult:
        return _op(git.commit_merge(self.path))

    def abort_merge(self) -> OpResult:
        return _op(git.abort_merge(self.path))

    def run_mergetool(self) -> OpResult:
        return _op(git.run_mergetool(self.path))

    def write_file(self, relpath: str, content: str) -> None:
        target = self.path / relpath
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)

    def commit_paths(self, paths: list[str], message: str) -> OpResult:
        staged = git.stage_files(self.path, paths)
        if not staged.success:
            return _op(staged)
        return _op(git.commit(self.path, message))

    def commit_all(self, message: str) -> OpResult:
        staged = git.stage_all(self.path)
        if not staged.success:
            return _op(staged)
        return _op(git.commit(self.path, message))
