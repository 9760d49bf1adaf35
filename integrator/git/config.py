"""Git configuration operations."""

from pathlib import Path

from integrator.git.runner import run_git, GitResult


def set_config(repo: Path, key: str, value: str) -> GitResult:
    """Set a repository-local config value."""
    return run_git(["config", key, value], repo)
