"""
Error taxonomy for integration runs.

Every failure that ends a run is an IntegratorError carrying the remote,
URL or topic at fault plus the exit code the CLI should return.
"""

from dataclasses import dataclass
from pathlib import Path

from integrator.lib.constants import (
    EXIT_ERROR,
    EXIT_CONFIG,
    EXIT_UNREACHABLE,
    EXIT_MERGE_FAILED,
)


class IntegratorError(Exception):
    """Base class for fatal run errors."""
    exit_code = EXIT_ERROR


@dataclass
class ConfigNotFound(IntegratorError):
    """No branch list could be located."""
    searched: list[Path]
    exit_code = EXIT_CONFIG

    def __str__(self):
        paths = ", ".join(str(p) for p in self.searched) or "(nothing)"
        return f"No branch configuration found (searched: {paths})"


@dataclass
class ConfigSyntaxError(IntegratorError):
    """A branch list line could not be parsed."""
    path: Path
    lineno: int
    message: str
    exit_code = EXIT_CONFIG

    def __str__(self):
        return f"{self.path}:{self.lineno}: {self.message}"


@dataclass
class BaselineMissing(IntegratorError):
    """The configured baseline remote has no entry in the branch list."""
    baseline: str
    path: Path | None = None
    exit_code = EXIT_CONFIG

    def __str__(self):
        where = f" in {self.path}" if self.path else ""
        return f"Baseline remote '{self.baseline}' is not configured{where}"


@dataclass
class BaselineRemovalRefused(IntegratorError):
    """Reconciliation would have removed the baseline remote."""
    baseline: str
    url: str
    exit_code = EXIT_CONFIG

    def __str__(self):
        return (
            f"Refusing to remove baseline remote '{self.baseline}' ({self.url}); "
            "fix the branch configuration"
        )


@dataclass
class RepositoryUnreachable(IntegratorError):
    """A local or remote repository could not be used."""
    name: str
    url: str
    detail: str = ""
    exit_code = EXIT_UNREACHABLE

    def __str__(self):
        msg = f"Repository '{self.name}' ({self.url}) is unreachable"
        if self.detail:
            msg += f": {self.detail}"
        return msg


@dataclass
class DirtyWorkingTree(IntegratorError):
    """The working tree has uncommitted changes."""
    repo: Path
    exit_code = EXIT_UNREACHABLE

    def __str__(self):
        return f"Working tree {self.repo} has uncommitted changes; clean it before integrating"


@dataclass
class RerereCacheUnreachable(IntegratorError):
    """The shared resolution cache could not be cloned or updated."""
    url: str
    detail: str = ""
    exit_code = EXIT_UNREACHABLE

    def __str__(self):
        msg = f"Resolution cache {self.url} is unreachable"
        if self.detail:
            msg += f": {self.detail}"
        return msg


@dataclass
class MergeFailed(IntegratorError):
    """A topic could not be merged without manual help."""
    topic: str
    source: str
    returncode: int = EXIT_MERGE_FAILED
    detail: str = ""

    def __str__(self):
        msg = f"Merge of topic '{self.topic}' ({self.source}) failed"
        if self.detail:
            msg += f": {self.detail}"
        return msg

    @property
    def exit_code(self) -> int:
        if self.returncode > 0:
            return self.returncode
        return EXIT_MERGE_FAILED


@dataclass
class ManualResolutionFailed(IntegratorError):
    """The operator's merge tool session did not leave a committable merge."""
    topic: str
    source: str
    detail: str = ""
    exit_code = EXIT_MERGE_FAILED

    def __str__(self):
        msg = f"Manual resolution of topic '{self.topic}' ({self.source}) failed"
        if self.detail:
            msg += f": {self.detail}"
        return msg
