"""
Branch list parser.

One remote per line:

    # name      url                                         [branch]
    origin      https://git.kernel.org/.../torvalds/linux.git
    net-next    https://git.kernel.org/.../netdev/net-next.git  main

Blank lines and lines starting with # are ignored. Order is preserved:
topics are merged in the order they are listed.
"""

from dataclasses import dataclass
from pathlib import Path

from .errors import BaselineMissing, ConfigSyntaxError


@dataclass(frozen=True)
class BranchSpec:
    """One configured remote: where it lives and which branch to merge."""
    name: str
    url: str
    branch: str = ""


def parse_branch_text(text: str, source: Path) -> list[BranchSpec]:
    """Parse branch list text into BranchSpecs, in file order."""
    specs: list[BranchSpec] = []
    seen: set[str] = set()

    for lineno, line in enumerate(text.splitlines(), 1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        fields = stripped.split()
        if len(fields) not in (2, 3):
            raise ConfigSyntaxError(
                path=source,
                lineno=lineno,
                message=f"expected 'name url [branch]', got {len(fields)} field(s)",
            )

        name, url = fields[0], fields[1]
        branch = fields[2] if len(fields) == 3 else ""
        if name in seen:
            raise ConfigSyntaxError(path=source, lineno=lineno, message=f"duplicate remote '{name}'")
        seen.add(name)
        specs.append(BranchSpec(name=name, url=url, branch=branch))

    return specs


def load_branch_list(path: Path, baseline: str) -> list[BranchSpec]:
    """
    Load the branch list and check the baseline is present.

    Raises:
        ConfigSyntaxError: if a line is malformed
        BaselineMissing: if no entry is named after the baseline
    """
    specs = parse_branch_text(Path(path).read_text(), Path(path))
    if find_baseline(specs, baseline) is None:
        raise BaselineMissing(baseline=baseline, path=Path(path))
    return specs


def find_baseline(specs: list[BranchSpec], baseline: str) -> BranchSpec | None:
    """Return the spec named after the baseline, or None."""
    for spec in specs:
        if spec.name == baseline:
            return spec
    return None


def topics(specs: list[BranchSpec], baseline: str) -> list[BranchSpec]:
    """Every spec except the baseline, in configured order."""
    return [spec for spec in specs if spec.name != baseline]
