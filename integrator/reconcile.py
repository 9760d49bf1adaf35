"""
Remote reconciliation.

Brings the repository's remotes in line with the branch list, then fetches
everything and reports what changed. The result of a run is a
ReconciliationResult, which later decides whether a new integration branch
is worth building.
"""

import logging
from dataclasses import dataclass, field

from integrator.lib.branchlist import BranchSpec, find_baseline
from integrator.lib.constants import DEFAULT_REMOTE_BRANCH, TRACK_TAG
from integrator.lib.errors import (
    BaselineMissing,
    BaselineRemovalRefused,
    RepositoryUnreachable,
)
from integrator.lib.prompts import Confirmer
from integrator.vcs import RemoteState, VcsClient

logger = logging.getLogger(__name__)


@dataclass
class ReconcilePlan:
    """Remotes to drop and specs to add, before any confirmation."""
    to_remove: list[RemoteState] = field(default_factory=list)
    to_add: list[BranchSpec] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.to_remove and not self.to_add


@dataclass
class ReconciliationResult:
    """What reconciliation and updates did to the repository."""
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    declined: list[str] = field(default_factory=list)
    baseline_before: str | None = None
    baseline_after: str | None = None

    @property
    def baseline_changed(self) -> bool:
        return self.baseline_before != self.baseline_after

    @property
    def changes(self) -> int:
        """Number of changes: one per remote added, removed or updated, one for a moved baseline."""
        return (
            len(self.added)
            + len(self.removed)
            + len(self.updated)
            + (1 if self.baseline_changed else 0)
        )


def plan_reconciliation(
    specs: list[BranchSpec],
    remotes: list[RemoteState],
    baseline: str,
) -> ReconcilePlan:
    """
    Diff configured specs against live remotes.

    A remote is removed when no spec has its name, or the spec with its
    name has a different URL. A spec is added when no remote is left with
    its name after those removals, so a changed URL becomes remove + add.

    Raises:
        BaselineRemovalRefused: if the baseline remote would be removed
    """
    by_name = {spec.name: spec for spec in specs}

    to_remove = []
    for remote in remotes:
        spec = by_name.get(remote.name)
        if spec is None or spec.url != remote.url:
            to_remove.append(remote)

    for remote in to_remove:
        if remote.name == baseline:
            raise BaselineRemovalRefused(baseline=baseline, url=remote.url)

    remaining = {r.name for r in remotes} - {r.name for r in to_remove}
    to_add = [spec for spec in specs if spec.name not in remaining]

    return ReconcilePlan(to_remove=to_remove, to_add=to_add)


def baseline_ref(spec: BranchSpec) -> str:
    """Remote-tracking ref for the baseline."""
    return f"{spec.name}/{spec.branch or DEFAULT_REMOTE_BRANCH}"


def tracked_tip(vcs: VcsClient, ref: str, track: str) -> str | None:
    """The baseline's latest tag under tag tracking, else its head commit."""
    if track == TRACK_TAG:
        return vcs.latest_tag(ref)
    return vcs.resolve(ref)


class RemoteReconciler:
    """Adds, removes and updates remotes to match the branch list."""

    def __init__(
        self,
        vcs: VcsClient,
        specs: list[BranchSpec],
        baseline: str,
        confirmer: Confirmer,
        track: str = TRACK_TAG,
    ):
        self.vcs = vcs
        self.specs = specs
        self.baseline = baseline
        self.confirmer = confirmer
        self.track = track

    def plan(self) -> ReconcilePlan:
        """Compute the plan against the repository's current remotes."""
        plan = plan_reconciliation(self.specs, self.vcs.list_remotes(), self.baseline)
        if find_baseline(self.specs, self.baseline) is None:
            raise BaselineMissing(baseline=self.baseline)
        return plan

    def reconcile(self, result: ReconciliationResult | None = None) -> ReconciliationResult:
        """
        Apply the plan, asking before each removal and addition.

        Nothing is mutated if the plan is refused. A declined removal
        leaves the remote in place; the matching addition is then skipped.
        """
        result = result or ReconciliationResult()
        plan = self.plan()

        for remote in plan.to_remove:
            if not self.confirmer.confirm(f"Remove remote '{remote.name}' ({remote.url})?", default=True):
                logger.info(f"Keeping remote {remote.name} at operator's request")
                result.declined.append(remote.name)
                continue
            outcome = self.vcs.remove_remote(remote.name)
            if not outcome.ok:
                raise RepositoryUnreachable(name=remote.name, url=remote.url, detail=outcome.detail)
            print(f"Removed remote {remote.name}")
            result.removed.append(remote.name)

        for spec in plan.to_add:
            if spec.name in result.declined:
                logger.warning(f"Not adding {spec.name}: existing remote was kept")
                continue
            branch = spec.branch or DEFAULT_REMOTE_BRANCH
            target = f"{spec.url} ({branch})"
            if not self.confirmer.confirm(f"Add remote '{spec.name}' {target}?", default=True):
                logger.info(f"Skipping remote {spec.name} at operator's request")
                result.declined.append(spec.name)
                continue
            outcome = self.vcs.add_remote(spec.name, spec.url, branch)
            if not outcome.ok:
                raise RepositoryUnreachable(name=spec.name, url=spec.url, detail=outcome.detail)
            print(f"Added remote {spec.name}")
            result.added.append(spec.name)

        return result

    def update(self, result: ReconciliationResult | None = None) -> ReconciliationResult:
        """
        Fetch every topic remote, then the baseline.

        Remotes added by reconcile() this run were fetched when added and
        are not fetched again. The baseline counts as changed when its
        tracked tip moves, not merely when the fetch printed something.
        """
        result = result or ReconciliationResult()
        live = {remote.name for remote in self.vcs.list_remotes()}

        for spec in self.specs:
            if spec.name == self.baseline or spec.name in result.added:
                continue
            if spec.name not in live:
                logger.warning(f"Remote {spec.name} is not configured in the repository, not updating")
                continue
            print(f"Updating {spec.name}...")
            fetched = self.vcs.fetch(spec.name)
            if not fetched.ok:
                raise RepositoryUnreachable(name=spec.name, url=spec.url, detail=fetched.detail)
            if fetched.changed:
                logger.debug(f"{spec.name}: {fetched.detail}")
                result.updated.append(spec.name)

        spec = find_baseline(self.specs, self.baseline)
        if spec is None:
            raise BaselineMissing(baseline=self.baseline)
        ref = baseline_ref(spec)

        before = tracked_tip(self.vcs, ref, self.track)
        print(f"Updating baseline {spec.name}...")
        fetched = self.vcs.fetch(spec.name, tags=self.track == TRACK_TAG)
        if not fetched.ok:
            raise RepositoryUnreachable(name=spec.name, url=spec.url, detail=fetched.detail)
        after = tracked_tip(self.vcs, ref, self.track)
        if after is None:
            raise RepositoryUnreachable(
                name=spec.name,
                url=spec.url,
                detail=f"no {'tag' if self.track == TRACK_TAG else 'commit'} found on {ref}",
            )

        result.baseline_before = before
        result.baseline_after = after
        if result.baseline_changed:
            print(f"Baseline moved: {before or '(none)'} -> {after}")

        return result

    def run(self) -> ReconciliationResult:
        """Reconcile, then update."""
        result = self.reconcile()
        return self.update(result)
