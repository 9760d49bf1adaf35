"""Git command runner with timeout handling."""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
NETWORK_TIMEOUT = 300  # fetch, clone and push against remote hosts


@dataclass
class GitResult:
    """Result of a git command."""
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """Combined stdout and stderr, stripped.

        git fetch reports progress on stderr, so asking whether anything
        arrived means looking at both streams.
        """
        return "\n".join(s for s in (self.stdout.strip(), self.stderr.strip()) if s)


def run_git(
    args: list[str],
    cwd: Path,
    timeout: int = DEFAULT_TIMEOUT,
) -> GitResult:
    """
    Run git in cwd and capture its output.

    Args:
        args: Git command arguments (e.g., ["remote", "-v"])
        cwd: Repository to run in
        timeout: Seconds before the command is killed

    Returns:
        GitResult; a timeout yields returncode -1 and timed_out=True
    """
    cmd = ["git", "-C", str(cwd)] + args
    logger.debug("Running %s", " ".join(cmd))
    try:
        completed = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired:
        logger.warning(f"git {args[0]} in {cwd} timed out after {timeout}s")
        return GitResult(
            returncode=-1,
            stdout="",
            stderr=f"Command timed out after {timeout}s",
            timed_out=True,
        )

    if completed.returncode != 0:
        logger.debug(f"git {args[0]} exited {completed.returncode}: {completed.stderr.strip()}")
    return GitResult(
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
    )


def run_git_interactive(args: list[str], cwd: Path) -> GitResult:
    """
    Run a git command attached to the operator's terminal.

    Used for merge tools, which need stdin/stdout. No timeout: the
    operator decides how long a resolution takes.
    """
    cmd = ["git", "-C", str(cwd)] + args
    logger.debug("Running %s (interactive)", " ".join(cmd))
    completed = subprocess.run(cmd)
    return GitResult(returncode=completed.returncode, stdout="", stderr="")
