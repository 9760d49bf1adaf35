"""Git remote operations."""

from pathlib import Path

from integrator.git.runner import run_git, GitResult, NETWORK_TIMEOUT


def list_remotes(repo: Path) -> list[tuple[str, str]]:
    """
    List configured remotes as (name, fetch-url) pairs.

    Parses `git remote -v`, keeping only the (fetch) lines so each remote
    appears once. Order follows git's output.
    """
    result = run_git(["remote", "-v"], repo)
    if not result.success:
        return []

    remotes = []
    seen = set()
    for line in result.stdout.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        if len(parts) >= 3 and parts[2] != "(fetch)":
            continue
        name, url = parts[0], parts[1]
        if name in seen:
            continue
        seen.add(name)
        remotes.append((name, url))
    return remotes


def add_remote(repo: Path, name: str, url: str, branch: str | None = None,
               timeout: int = NETWORK_TIMEOUT) -> GitResult:
    """
    Add a remote and fetch it immediately.

    With a branch, only that branch is tracked (-t) so unrelated refs
    never land in the object store.
    """
    args = ["remote", "add", "-f"]
    if branch:
        args += ["-t", branch]
    args += [name, url]
    return run_git(args, repo, timeout=timeout)


def remove_remote(repo: Path, name: str) -> GitResult:
    """Remove a remote and its remote-tracking refs."""
    return run_git(["remote", "remove", name], repo)


def fetch(repo: Path, remote: str, tags: bool = False,
          timeout: int = NETWORK_TIMEOUT) -> GitResult:
    """Fetch from remote using its configured refspecs."""
    args = ["fetch", remote]
    if tags:
        args.append("--tags")
    return run_git(args, repo, timeout=timeout)


def push(repo: Path, remote: str, branch: str, force: bool = False,
         timeout: int = NETWORK_TIMEOUT) -> GitResult:
    """Push a local branch to remote under the same name."""
    args = ["push"]
    if force:
        args.append("--force")
    args += [remote, f"refs/heads/{branch}:refs/heads/{branch}"]
    return run_git(args, repo, timeout=timeout)


def clone(url: str, dest: Path, timeout: int = NETWORK_TIMEOUT) -> GitResult:
    """Clone url into dest. dest's parent is used as the working directory."""
    return run_git(["clone", url, str(dest)], dest.parent, timeout=timeout)
