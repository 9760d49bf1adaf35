"""Git status operations."""

from pathlib import Path

from integrator.git.runner import run_git


def is_work_tree(path: Path) -> bool:
    """Check if path is inside a git working tree."""
    result = run_git(["rev-parse", "--is-inside-work-tree"], path)
    return result.success and result.stdout.strip() == "true"


def get_git_dir(worktree: Path) -> Path | None:
    """Get the absolute .git directory for a working tree."""
    result = run_git(["rev-parse", "--absolute-git-dir"], worktree)
    if result.success and result.stdout.strip():
        return Path(result.stdout.strip())
    return None


def has_uncommitted_changes(worktree: Path) -> bool:
    """
    Check for staged or unstaged changes to tracked files.

    Untracked files don't count: the merge log, reports and a tree-local
    .integrator/ directory live beside the sources and survive branch
    switches untouched.
    """
    result = run_git(["status", "--porcelain", "--untracked-files=no"], worktree)
    return bool(result.stdout.strip())
