"""Git operations for the integrator.

Thin wrappers around the git binary. Higher layers should go through
integrator.vcs.GitVcsClient rather than calling these directly.

Return type conventions:
- Functions returning GitResult: Caller must check .success before using output.
  Examples: add_remote(), fetch(), merge_no_ff(), push()
- Functions returning bool: True on success/condition met, False otherwise.
  Examples: has_uncommitted_changes(), branch_exists(), is_ancestor()
- Functions returning parsed values (str, int, list): Return None/empty/zero on failure.
  Examples: resolve_commit() -> None, get_conflicted_files() -> [], get_commit_count() -> 0
"""

from integrator.git.runner import GitResult, run_git
from integrator.git.status import (
    is_work_tree,
    get_git_dir,
    has_uncommitted_changes,
)
from integrator.git.branch import (
    branch_exists,
    resolve_commit,
    latest_tag,
    describe,
    rename_branch,
    checkout_new_branch,
    get_commit_count,
    is_ancestor,
)
from integrator.git.merge import (
    merge_no_ff,
    get_conflicted_files,
    commit_merge,
    abort_merge,
    run_mergetool,
)
from integrator.git.commit import (
    stage_files,
    stage_all,
    commit,
    reset_hard,
)
from integrator.git.remote import (
    list_remotes,
    add_remote,
    remove_remote,
    fetch,
    push,
    clone,
)
from integrator.git.config import set_config

__all__ = [
    "GitResult",
    "run_git",
    # status
    "is_work_tree",
    "get_git_dir",
    "has_uncommitted_changes",
    # branch
    "branch_exists",
    "resolve_commit",
    "latest_tag",
    "describe",
    "rename_branch",
    "checkout_new_branch",
    "get_commit_count",
    "is_ancestor",
    # merge
    "merge_no_ff",
    "get_conflicted_files",
    "commit_merge",
    "abort_merge",
    "run_mergetool",
    # commit
    "stage_files",
    "stage_all",
    "commit",
    "reset_hard",
    # remote
    "list_remotes",
    "add_remote",
    "remove_remote",
    "fetch",
    "push",
    "clone",
    # config
    "set_config",
]
