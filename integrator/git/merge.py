"""Git merge operations."""

from pathlib import Path

from integrator.git.runner import run_git, run_git_interactive, GitResult


def merge_no_ff(worktree: Path, source: str, message: str) -> GitResult:
    """Merge source into HEAD, always creating a merge commit."""
    return run_git(["merge", "--no-ff", "--no-edit", "-m", message, source], worktree, timeout=120)


def get_conflicted_files(worktree: Path) -> list[str]:
    """Get list of files with unresolved conflicts."""
    result = run_git(["diff", "--name-only", "--diff-filter=U"], worktree)
    return [f.strip() for f in result.stdout.splitlines() if f.strip()]


def commit_merge(worktree: Path) -> GitResult:
    """Conclude an in-progress merge with its prepared message."""
    return run_git(["commit", "--no-edit"], worktree)


def abort_merge(worktree: Path) -> GitResult:
    """Abort an in-progress merge and restore the pre-merge state."""
    return run_git(["merge", "--abort"], worktree)


def run_mergetool(worktree: Path) -> GitResult:
    """Run the configured merge tool on the operator's terminal."""
    return run_git_interactive(["mergetool"], worktree)
