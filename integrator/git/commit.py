"""Git commit operations."""

from pathlib import Path

from integrator.git.runner import run_git, GitResult


def stage_files(worktree: Path, files: list[str]) -> GitResult:
    """Stage specific files."""
    return run_git(["add", "--"] + files, worktree)


def stage_all(worktree: Path) -> GitResult:
    """Stage all changes (new, modified, deleted)."""
    return run_git(["add", "-A"], worktree)


def commit(worktree: Path, message: str) -> GitResult:
    """Create a commit with the given message."""
    return run_git(["commit", "-m", message], worktree)


def reset_hard(worktree: Path, ref: str) -> GitResult:
    """Point the current branch at ref and discard local state."""
    return run_git(["reset", "--hard", ref], worktree)
