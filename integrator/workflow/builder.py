"""
Integration branch builder.

Builds a fresh integration branch at the baseline's tracked tip and merges
every topic into it, in branch-list order. Each topic's result is written
to the merge log as a protocol line that the report generator understands:

    Merge successful : <name> : <sha> : <count>
    Merge conflict : <name> : <sha>

A topic that cannot be merged ends the build; there is no partial result.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from integrator.lib.branchlist import BranchSpec, find_baseline, topics
from integrator.lib.constants import (
    DEFAULT_MANIFEST_PATH,
    DEFAULT_REMOTE_BRANCH,
    MANIFEST_COMMIT_MESSAGE,
    MERGE_LOGGER_NAME,
    MERGE_MESSAGE_TEMPLATE,
    OVERRIDE_PREFIX,
    ROTATION_TIMESTAMP_FORMAT,
    TRACK_TAG,
)
from integrator.lib.errors import (
    BaselineMissing,
    IntegratorError,
    ManualResolutionFailed,
    MergeFailed,
    RepositoryUnreachable,
)
from integrator.reconcile import baseline_ref, tracked_tip
from integrator.vcs import MergeStatus, VcsClient
from integrator.workflow.fsm import BuildFSM

logger = logging.getLogger(__name__)
merge_log = logging.getLogger(MERGE_LOGGER_NAME)


class Outcome(Enum):
    UP_TO_DATE = "up_to_date"
    MERGED_CLEAN = "merged_clean"
    MERGED_AFTER_RESOLUTION = "merged_after_resolution"
    MERGED_AFTER_MANUAL_RESOLUTION = "merged_after_manual_resolution"
    FAILED = "failed"


MERGED_OUTCOMES = (
    Outcome.MERGED_CLEAN,
    Outcome.MERGED_AFTER_RESOLUTION,
    Outcome.MERGED_AFTER_MANUAL_RESOLUTION,
)


@dataclass
class MergeOutcome:
    """How one topic went."""
    topic: str
    source: str
    outcome: Outcome
    tip_sha: str = ""
    commit_count: int = 0

    @property
    def merged(self) -> bool:
        return self.outcome in MERGED_OUTCOMES


@dataclass
class BuildResult:
    """A finished integration branch."""
    branch: str
    base: str
    rotated_to: str | None = None
    outcomes: list[MergeOutcome] = field(default_factory=list)
    manifest_path: str | None = None

    @property
    def merged(self) -> list[MergeOutcome]:
        return [o for o in self.outcomes if o.merged]


def format_manifest(outcomes: list[MergeOutcome]) -> str:
    """Render the topic SHA1 manifest committed on the integration branch."""
    lines = [f"{'Name':<20} SHA1"]
    for outcome in outcomes:
        lines.append(f"{outcome.topic:<20} {outcome.tip_sha}")
    return "\n".join(lines) + "\n"


class IntegrationBuilder:
    """Creates the integration branch and merges topics into it."""

    def __init__(
        self,
        vcs: VcsClient,
        specs: list[BranchSpec],
        baseline: str,
        branch: str,
        track: str = TRACK_TAG,
        interactive: bool = False,
        manifest_path: str = DEFAULT_MANIFEST_PATH,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.vcs = vcs
        self.specs = specs
        self.baseline = baseline
        self.branch = branch
        self.track = track
        self.interactive = interactive
        self.manifest_path = manifest_path
        self.clock = clock
        self.fsm = BuildFSM(branch)
        self.result: BuildResult | None = None  # Partial progress survives a failed build

    def build(self) -> BuildResult:
        """
        Run the whole build.

        Raises:
            IntegratorError: on any failure; the FSM ends in 'aborted'
        """
        try:
            return self._build()
        except IntegratorError:
            if not self.fsm.finished:
                self.fsm.abort()
            raise

    def _build(self) -> BuildResult:
        base = self.baseline_tip()
        self.fsm.establish_baseline()
        print(f"Baseline {self.baseline} is at {base}")

        rotated_to = self.rotate()
        if rotated_to:
            self.fsm.rotate()
        else:
            self.fsm.start_fresh()

        created = self.vcs.create_branch(self.branch, base)
        if not created.ok:
            raise RepositoryUnreachable(
                name="local",
                url=str(self.vcs.path),
                detail=f"cannot create {self.branch} at {base}: {created.detail}",
            )
        self.fsm.start_merging()

        result = BuildResult(branch=self.branch, base=base, rotated_to=rotated_to)
        self.result = result
        for spec in topics(self.specs, self.baseline):
            try:
                result.outcomes.append(self.merge_topic(spec))
            except (MergeFailed, ManualResolutionFailed) as e:
                result.outcomes.append(MergeOutcome(topic=spec.name, source=e.source, outcome=Outcome.FAILED))
                raise

        if result.merged:
            self.write_manifest(result.merged)
            result.manifest_path = self.manifest_path

        self.fsm.finish()
        print(f"Merged {len(result.merged)} of {len(result.outcomes)} topic(s) into {self.branch}")
        return result

    def baseline_tip(self) -> str:
        """The tag or commit the integration branch starts from."""
        spec = find_baseline(self.specs, self.baseline)
        if spec is None:
            raise BaselineMissing(baseline=self.baseline)
        ref = baseline_ref(spec)
        tip = tracked_tip(self.vcs, ref, self.track)
        if tip is None:
            raise RepositoryUnreachable(name=spec.name, url=spec.url, detail=f"cannot find {self.track} of {ref}")
        return tip

    def rotate(self) -> str | None:
        """
        Rename an existing integration branch out of the way.

        Returns the new name, or None if there was nothing to rotate.
        """
        if not self.vcs.branch_exists(self.branch):
            return None

        stamp = self.clock().strftime(ROTATION_TIMESTAMP_FORMAT)
        described = self.vcs.describe(self.branch) or "unknown"
        new_name = f"{self.branch}-{stamp}-{described}"

        renamed = self.vcs.rename_branch(self.branch, new_name)
        if not renamed.ok:
            raise RepositoryUnreachable(
                name="local",
                url=str(self.vcs.path),
                detail=f"cannot rename {self.branch} to {new_name}: {renamed.detail}",
            )
        print(f"Previous {self.branch} kept as {new_name}")
        return new_name

    def merge_source(self, spec: BranchSpec) -> str:
        """override/<name> if the operator created one, else <name>/<branch>."""
        override = f"{OVERRIDE_PREFIX}{spec.name}"
        if self.vcs.resolve(override) is not None:
            logger.info(f"Using {override} in place of {spec.name}")
            return override
        return f"{spec.name}/{spec.branch or DEFAULT_REMOTE_BRANCH}"

    def merge_topic(self, spec: BranchSpec) -> MergeOutcome:
        """Merge one topic into the checked-out integration branch."""
        source = self.merge_source(spec)
        sha = self.vcs.resolve(source)
        if sha is None:
            raise MergeFailed(topic=spec.name, source=source, detail=f"cannot resolve {source}")

        if self.vcs.is_ancestor(sha, "HEAD"):
            merge_log.info(f"Already up to date : {spec.name}")
            return MergeOutcome(topic=spec.name, source=source, outcome=Outcome.UP_TO_DATE, tip_sha=sha)

        count = self.vcs.commit_count(f"HEAD..{sha}")
        print(f"Merging {spec.name} ({source}, {count} commit(s))...")
        result = self.vcs.merge(source, MERGE_MESSAGE_TEMPLATE.format(source=source))

        if result.status == MergeStatus.CLEAN:
            outcome = Outcome.MERGED_CLEAN
        elif result.status == MergeStatus.CONFLICTED:
            merge_log.info(f"Merge conflict : {spec.name} : {sha}")
            if self.interactive:
                outcome = self._resolve_manually(spec, source)
            else:
                outcome = self._finalize(spec, source)
        else:
            self.vcs.abort_merge()
            raise MergeFailed(
                topic=spec.name,
                source=source,
                returncode=result.returncode,
                detail=result.detail,
            )

        merge_log.info(f"Merge successful : {spec.name} : {sha} : {count}")
        return MergeOutcome(
            topic=spec.name,
            source=source,
            outcome=outcome,
            tip_sha=sha,
            commit_count=count,
        )

    def _finalize(self, spec: BranchSpec, source: str) -> Outcome:
        """Commit a conflicted merge if rerere resolved every path, else give up."""
        finished = self.vcs.finish_merge()
        if finished.ok:
            print(f"  {spec.name}: conflicts resolved from the resolution cache")
            return Outcome.MERGED_AFTER_RESOLUTION

        unresolved = self.vcs.unmerged_files()
        self.vcs.abort_merge()
        detail = "unresolved conflicts"
        if unresolved:
            detail += ": " + ", ".join(unresolved)
        raise MergeFailed(topic=spec.name, source=source, returncode=finished.returncode, detail=detail)

    def _resolve_manually(self, spec: BranchSpec, source: str) -> Outcome:
        """
        Hand the conflict to the operator's merge tool, then commit.

        On failure the merge is left in progress so the operator's work
        isn't thrown away.
        """
        if self.vcs.unmerged_files():
            print(f"  {spec.name}: conflicts need manual resolution")
            tool = self.vcs.run_mergetool()
            if not tool.ok:
                raise ManualResolutionFailed(
                    topic=spec.name,
                    source=source,
                    detail="merge tool failed; finish with 'git mergetool' and 'git commit'",
                )
            outcome = Outcome.MERGED_AFTER_MANUAL_RESOLUTION
        else:
            outcome = Outcome.MERGED_AFTER_RESOLUTION

        finished = self.vcs.finish_merge()
        if not finished.ok:
            raise ManualResolutionFailed(topic=spec.name, source=source, detail=finished.detail)
        return outcome

    def write_manifest(self, merged: list[MergeOutcome]) -> None:
        """Commit the topic SHA1 manifest onto the integration branch."""
        self.vcs.write_file(self.manifest_path, format_manifest(merged))
        committed = self.vcs.commit_paths([self.manifest_path], MANIFEST_COMMIT_MESSAGE)
        if not committed.ok:
            raise RepositoryUnreachable(
                name="local",
                url=str(self.vcs.path),
                detail=f"cannot commit {self.manifest_path}: {committed.detail}",
            )
