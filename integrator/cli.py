#!/usr/bin/env python3
"""integrator CLI entrypoint."""

import sys
import argparse
import logging
from pathlib import Path

from integrator.lib.config import Settings, load_settings
from integrator.lib.constants import (
    EXIT_CONFIG,
    EXIT_ERROR,
    EXIT_SUCCESS,
    VALID_NOOP_POLICIES,
    VALID_TRACK_MODES,
)
from integrator.lib.errors import IntegratorError, RepositoryUnreachable
from integrator.lib.prompts import DefaultConfirmer, TerminalConfirmer
from integrator.reconcile import RemoteReconciler
from integrator.report import write_reports_from_file
from integrator.rerere import RerereCacheSync
from integrator.runner.locking import repo_lock
from integrator.vcs import GitVcsClient
from integrator.workflow.engine import check_repository, load_specs, run_integration


def get_settings(args) -> Settings:
    """Merge command-line flags over the settings file."""
    overrides = {
        "repo_path": args.repo,
        "push_url": getattr(args, "push_url", None),
        "baseline": getattr(args, "baseline", None),
        "branch": getattr(args, "branch", None),
        "track": getattr(args, "track", None),
        "rerere_url": getattr(args, "rerere_url", None),
        "config_path": getattr(args, "config", None),
        "interactive": getattr(args, "interactive", None),
        "force_merge": getattr(args, "force_merge", None),
        "noop_policy": getattr(args, "noop_policy", None),
        "merge_log": getattr(args, "merge_log", None),
        "assume_yes": getattr(args, "yes", None),
    }
    try:
        return load_settings(overrides, settings_path=args.settings)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        sys.exit(EXIT_CONFIG)


def get_confirmer(settings: Settings):
    if settings.assume_yes:
        return DefaultConfirmer()
    return TerminalConfirmer()


def get_vcs(settings: Settings) -> tuple[GitVcsClient, Path]:
    """Client for the local repository and its .git directory."""
    vcs = GitVcsClient(settings.repo_path, fetch_timeout=settings.fetch_timeout)
    git_dir = vcs.git_dir() if settings.repo_path.is_dir() else None
    if git_dir is None:
        raise RepositoryUnreachable(name="local", url=str(settings.repo_path), detail="not a git repository")
    return vcs, git_dir


def cmd_build(args):
    settings = get_settings(args)
    vcs, git_dir = get_vcs(settings)

    with repo_lock(git_dir, settings.lock_timeout):
        summary = run_integration(settings, vcs, get_confirmer(settings))

    if summary.aborted:
        return EXIT_SUCCESS

    build = summary.build
    print()
    print(f"Integration branch {build.branch} built on {build.base}")
    if build.rotated_to:
        print(f"  Previous branch: {build.rotated_to}")
    if summary.reports:
        print(f"  Reports: {summary.reports[0]}, {summary.reports[1]}")
    if summary.rerere_committed:
        print("  New resolutions committed to the resolution cache (not pushed)")
    return EXIT_SUCCESS


def cmd_remotes(args):
    settings = get_settings(args)
    vcs, git_dir = get_vcs(settings)

    with repo_lock(git_dir, settings.lock_timeout):
        check_repository(vcs)
        specs = load_specs(settings)
        reconciler = RemoteReconciler(
            vcs, specs, settings.baseline, get_confirmer(settings), track=settings.track,
        )
        result = reconciler.run()

    print()
    print(f"Added:   {', '.join(result.added) or '-'}")
    print(f"Removed: {', '.join(result.removed) or '-'}")
    print(f"Updated: {', '.join(result.updated) or '-'}")
    if result.declined:
        print(f"Skipped: {', '.join(result.declined)}")
    print(f"Baseline: {result.baseline_after}" + (" (moved)" if result.baseline_changed else ""))
    print(f"{result.changes} change(s)")
    return EXIT_SUCCESS


def cmd_report(args):
    log_path = Path(args.logfile)
    if not log_path.is_file():
        print(f"ERROR: Log file not found: {log_path}")
        return EXIT_ERROR
    merged_path, conflict_path = write_reports_from_file(log_path, Path(args.output_dir))
    print(f"Wrote {merged_path} and {conflict_path}")
    return EXIT_SUCCESS


def cmd_rerere_commit(args):
    settings = get_settings(args)
    vcs, git_dir = get_vcs(settings)
    with repo_lock(git_dir, settings.lock_timeout):
        committed = RerereCacheSync(vcs).publish()
    if not committed:
        print("No new resolutions to commit")
    return EXIT_SUCCESS


def main(argv=None):
    parser = argparse.ArgumentParser(prog='integrator', description='Merge topic branches onto a baseline')
    parser.add_argument('--repo', '-C', help='Local repository (default: current directory)')
    parser.add_argument('--settings', type=Path, help='Settings file (KEY=value)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # Flags shared by commands that touch remotes
    remote_opts = argparse.ArgumentParser(add_help=False)
    remote_opts.add_argument('--config', '-c', type=Path, help='Branch list file')
    remote_opts.add_argument('--baseline', help='Baseline remote name')
    remote_opts.add_argument('--track', choices=VALID_TRACK_MODES, help='Follow the baseline\'s latest tag or head')
    remote_opts.add_argument('--yes', '-y', action='store_true', default=None,
                             help='Take the default answer for every prompt')

    # integrator build
    p_build = subparsers.add_parser('build', parents=[remote_opts], help='Reconcile remotes and build the integration branch')
    p_build.add_argument('--branch', '-b', help='Integration branch name')
    p_build.add_argument('--push-url', help='Remote to push the integration branch to')
    p_build.add_argument('--rerere-url', help='Shared resolution cache repository')
    p_build.add_argument('--interactive', '-i', action='store_true', default=None,
                         help='Resolve conflicts with git mergetool')
    p_build.add_argument('--force-merge', '-f', action='store_true', default=None,
                         help='Build even if nothing changed')
    p_build.add_argument('--noop-policy', choices=VALID_NOOP_POLICIES,
                         help='What to do when nothing changed')
    p_build.add_argument('--merge-log', type=Path, help='Merge log file (reports are written beside it)')
    p_build.set_defaults(func=cmd_build)

    # integrator remotes
    p_remotes = subparsers.add_parser('remotes', parents=[remote_opts], help='Reconcile and update remotes only')
    p_remotes.set_defaults(func=cmd_remotes)

    # integrator report
    p_report = subparsers.add_parser('report', help='Render merge reports from a log file')
    p_report.add_argument('logfile', help='Merge log to parse')
    p_report.add_argument('--output-dir', '-o', default='.', help='Where to write the reports')
    p_report.set_defaults(func=cmd_report)

    # integrator rerere-commit
    p_rerere = subparsers.add_parser('rerere-commit', help='Commit new resolutions in the shared cache')
    p_rerere.set_defaults(func=cmd_rerere_commit)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except IntegratorError as e:
        print(f"ERROR: {e}")
        return e.exit_code
    except KeyboardInterrupt:
        print("\nInterrupted")
        return EXIT_ERROR


if __name__ == '__main__':
    sys.exit(main())
