"""Git branch and ref operations."""

from pathlib import Path

from integrator.git.runner import run_git, GitResult


def branch_exists(repo: Path, branch: str) -> bool:
    """Check if a branch exists."""
    result = run_git(["show-ref", "--verify", "--quiet", f"refs/heads/{branch}"], repo)
    return result.success


def resolve_commit(repo: Path, ref: str) -> str | None:
    """Get the commit SHA a ref points at, or None if it doesn't resolve."""
    result = run_git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], repo)
    if result.success:
        return result.stdout.strip() or None
    return None


def latest_tag(repo: Path, ref: str) -> str | None:
    """Get the most recent tag reachable from ref, or None."""
    result = run_git(["describe", "--tags", "--abbrev=0", ref], repo)
    if result.success:
        return result.stdout.strip() or None
    return None


def describe(repo: Path, ref: str) -> str | None:
    """Describe ref relative to the nearest tag, falling back to an abbreviated SHA."""
    result = run_git(["describe", "--tags", "--always", ref], repo)
    if result.success:
        return result.stdout.strip() or None
    return None


def rename_branch(repo: Path, old: str, new: str) -> GitResult:
    """Rename a local branch (works on the checked-out branch too)."""
    return run_git(["branch", "-m", old, new], repo)


def checkout_new_branch(worktree: Path, branch: str, start_point: str) -> GitResult:
    """Create branch at start_point and check it out."""
    return run_git(["checkout", "-b", branch, start_point], worktree)


def get_commit_count(worktree: Path, ref_range: str) -> int:
    """
    Get number of commits in a range.

    Args:
        worktree: Path to worktree
        ref_range: Git ref range (e.g., "HEAD..net/master")

    Returns:
        Number of commits, or 0 on error
    """
    result = run_git(["rev-list", "--count", ref_range], worktree)
    if result.success:
        try:
            return int(result.stdout.strip())
        except ValueError:
            pass
    return 0


def is_ancestor(worktree: Path, ancestor: str, descendant: str) -> bool:
    """Check if ancestor is an ancestor of descendant."""
    result = run_git(["merge-base", "--is-ancestor", ancestor, descendant], worktree)
    return result.success
