"""Workflow engine for an integration run.

Strings the pieces together in order: load the branch list, reconcile and
update remotes, prepare the resolution cache, decide whether anything
changed, build the integration branch, write reports and push.
Wrapped with Prefect @flow for observability.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from prefect import flow

from integrator.lib.branchlist import BranchSpec, load_branch_list
from integrator.lib.config import Settings, locate_branch_config
from integrator.lib.constants import MERGE_LOGGER_NAME, NOOP_ABORT, NOOP_CONTINUE
from integrator.lib.errors import DirtyWorkingTree, RepositoryUnreachable
from integrator.lib.prompts import Confirmer
from integrator.publish import Publisher
from integrator.reconcile import ReconciliationResult, RemoteReconciler
from integrator.report import write_reports_from_file
from integrator.rerere import RerereCacheSync
from integrator.vcs import VcsClient
from integrator.workflow.builder import BuildResult, IntegrationBuilder

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """What a run did."""
    reconciliation: ReconciliationResult | None = None
    build: BuildResult | None = None
    reports: tuple[Path, Path] | None = None
    rerere_committed: bool = False
    pushed: bool = False
    aborted: bool = False


def check_repository(vcs: VcsClient) -> None:
    """The local repository must be a clean git working tree."""
    if not vcs.is_work_tree():
        raise RepositoryUnreachable(name="local", url=str(vcs.path), detail="not a git working tree")
    if vcs.is_dirty():
        raise DirtyWorkingTree(repo=vcs.path)


def load_specs(settings: Settings) -> list[BranchSpec]:
    path = locate_branch_config(settings.repo_path, settings.config_path)
    logger.info(f"Using branch list {path}")
    return load_branch_list(path, settings.baseline)


def should_build(result: ReconciliationResult, settings: Settings, confirmer: Confirmer) -> bool:
    """
    Decide whether a new integration branch is warranted.

    Anything changed: build. Nothing changed: follow the no-op policy,
    where --force-merge always means build.
    """
    if result.changes > 0:
        print(f"{result.changes} change(s) since the last run")
        return True

    policy = NOOP_CONTINUE if settings.force_merge else settings.noop_policy
    print("No remote or baseline changes since the last run")
    if policy == NOOP_CONTINUE:
        return True
    if policy == NOOP_ABORT:
        return False
    return not confirmer.confirm("Abort without building a new integration branch?", default=True)


@contextmanager
def merge_log_handler(path: Path):
    """Send merge protocol lines to path for the duration of the block."""
    merge_logger = logging.getLogger(MERGE_LOGGER_NAME)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="w")
    handler.setFormatter(logging.Formatter("%(message)s"))
    previous_level = merge_logger.level
    merge_logger.setLevel(logging.INFO)
    merge_logger.addHandler(handler)
    try:
        yield
    finally:
        merge_logger.removeHandler(handler)
        merge_logger.setLevel(previous_level)
        handler.close()


@flow(name="integration_run", validate_parameters=False)
def run_integration(settings: Settings, vcs: VcsClient, confirmer: Confirmer) -> RunSummary:
    """Run one full integration.

    Returns a RunSummary. Any fatal condition raises an IntegratorError;
    an operator-declined build returns with aborted=True.
    """
    summary = RunSummary()

    check_repository(vcs)
    specs = load_specs(settings)

    reconciler = RemoteReconciler(
        vcs, specs, settings.baseline, confirmer, track=settings.track,
    )
    summary.reconciliation = reconciler.run()

    cache = RerereCacheSync(vcs)
    sharing = cache.setup(settings.rerere_url)

    if not should_build(summary.reconciliation, settings, confirmer):
        print("Nothing to do")
        summary.aborted = True
        return summary

    builder = IntegrationBuilder(
        vcs,
        specs,
        settings.baseline,
        settings.branch,
        track=settings.track,
        interactive=settings.interactive,
        manifest_path=settings.manifest_path,
    )
    try:
        with merge_log_handler(settings.merge_log):
            summary.build = builder.build()
    finally:
        # Keep whatever was resolved, even if a later topic failed
        if sharing:
            summary.rerere_committed = cache.publish()
        if settings.merge_log.is_file():
            summary.reports = write_reports_from_file(settings.merge_log, settings.merge_log.parent)

    summary.pushed = Publisher(vcs, confirmer).publish(
        settings.branch, settings.push_url, rotated=summary.build.rotated_to,
    )
    return summary
