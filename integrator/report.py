"""
Merge report generation.

Reads merge log lines and renders two fixed-width tables: topics that
merged (name, SHA, commit count) and topics that hit conflicts (name,
SHA). Lines that aren't merge protocol lines are ignored, so the whole
run log can be fed in.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from integrator.lib.constants import (
    CONFLICT_REPORT_FILENAME,
    MERGE_CONFLICT_PATTERN,
    MERGE_SUCCESS_PATTERN,
    MERGED_REPORT_FILENAME,
)

NAME_WIDTH = 20
SHA_WIDTH = 45
COUNT_WIDTH = 10


@dataclass(frozen=True)
class MergedTopic:
    name: str
    sha: str
    count: str = ""  # Empty when the log line carried no count


@dataclass(frozen=True)
class ConflictedTopic:
    name: str
    sha: str


def parse_merge_log(lines: Iterable[str]) -> tuple[list[MergedTopic], list[ConflictedTopic]]:
    """Extract merged and conflicted topics, in log order."""
    merged: list[MergedTopic] = []
    conflicted: list[ConflictedTopic] = []

    for line in lines:
        line = line.strip()
        match = MERGE_SUCCESS_PATTERN.match(line)
        if match:
            name, sha, count = match.groups()
            merged.append(MergedTopic(name=name.strip(), sha=sha, count=count or ""))
            continue
        match = MERGE_CONFLICT_PATTERN.match(line)
        if match:
            name, sha = match.groups()
            conflicted.append(ConflictedTopic(name=name.strip(), sha=sha))

    return merged, conflicted


def _table(header: str, rows: list[str]) -> str:
    return "\n".join([header, "-" * len(header)] + rows) + "\n"


def format_merged_report(rows: list[MergedTopic]) -> str:
    header = f"{'Name':<{NAME_WIDTH}} {'SHA':>{SHA_WIDTH}} {'Commits':>{COUNT_WIDTH}}"
    return _table(header, [
        f"{r.name:<{NAME_WIDTH}} {r.sha:>{SHA_WIDTH}} {r.count:>{COUNT_WIDTH}}"
        for r in rows
    ])


def format_conflict_report(rows: list[ConflictedTopic]) -> str:
    header = f"{'Name':<{NAME_WIDTH}} {'SHA':>{SHA_WIDTH}}"
    return _table(header, [f"{r.name:<{NAME_WIDTH}} {r.sha:>{SHA_WIDTH}}" for r in rows])


def render(lines: Iterable[str]) -> tuple[str, str]:
    """Render (merged_report, conflict_report) from merge log lines."""
    merged, conflicted = parse_merge_log(lines)
    return format_merged_report(merged), format_conflict_report(conflicted)


def write_reports(lines: Iterable[str], output_dir: Path) -> tuple[Path, Path]:
    """Render both reports into output_dir, replacing earlier ones."""
    merged_report, conflict_report = render(lines)
    output_dir.mkdir(parents=True, exist_ok=True)
    merged_path = output_dir / MERGED_REPORT_FILENAME
    conflict_path = output_dir / CONFLICT_REPORT_FILENAME
    merged_path.write_text(merged_report)
    conflict_path.write_text(conflict_report)
    return merged_path, conflict_path


def write_reports_from_file(log_path: Path, output_dir: Path) -> tuple[Path, Path]:
    """Render reports from a merge log file on disk."""
    with open(log_path) as f:
        return write_reports(f, output_dir)
