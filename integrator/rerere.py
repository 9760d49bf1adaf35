"""
Shared conflict-resolution cache.

git's rerere store lives in <git-dir>/rr-cache. To share resolutions
across a team, that directory is replaced by a symlink into a clone of a
dedicated cache repository:

    <git-dir>/rerere-share/          clone of the cache repository
    <git-dir>/rerere-share/rr-cache/ resolutions, tracked in that clone
    <git-dir>/rr-cache -> rerere-share/rr-cache

The shared remote is canonical. An existing clone is hard-reset to it on
every run, and new resolutions are committed locally after a run for the
operator to review and push.
"""

import logging
import os
import time
from pathlib import Path

from integrator.lib.constants import (
    RERERE_COMMIT_MESSAGE,
    RERERE_MOUNT_DIRNAME,
    RERERE_NATIVE_DIRNAME,
)
from integrator.lib.errors import RepositoryUnreachable, RerereCacheUnreachable
from integrator.vcs import VcsClient

logger = logging.getLogger(__name__)


class RerereCacheSync:
    """Clones, refreshes and commits the shared resolution cache."""

    def __init__(self, vcs: VcsClient):
        self.vcs = vcs
        git_dir = vcs.git_dir()
        if git_dir is None:
            raise RepositoryUnreachable(name="local", url=str(vcs.path), detail="not a git repository")
        self.git_dir = git_dir

    @property
    def mount(self) -> Path:
        return self.git_dir / RERERE_MOUNT_DIRNAME

    @property
    def native_store(self) -> Path:
        return self.git_dir / RERERE_NATIVE_DIRNAME

    def setup(self, cache_url: str | None) -> bool:
        """
        Prepare rerere for this run.

        Without a cache URL rerere is switched off so every conflict
        reaches the operator. Returns True when the shared cache is in use.

        Raises:
            RerereCacheUnreachable: if the cache can't be cloned or updated
        """
        if not cache_url:
            self._configure(enabled=False)
            print("No resolution cache configured; rerere disabled")
            return False

        if self.mount.exists():
            self._refresh(cache_url)
        else:
            self._clone(cache_url)

        self._link()
        self._configure(enabled=True)
        return True

    def _clone(self, cache_url: str) -> None:
        print(f"Cloning resolution cache from {cache_url}...")
        outcome = self.vcs.clone(cache_url, self.mount)
        if not outcome.ok:
            raise RerereCacheUnreachable(url=cache_url, detail=outcome.detail)

    def _refresh(self, cache_url: str) -> None:
        print("Updating resolution cache...")
        cache = self.vcs.at(self.mount)
        fetched = cache.fetch("origin")
        if not fetched.ok:
            raise RerereCacheUnreachable(url=cache_url, detail=fetched.detail)
        # A freshly created cache repository has no commits to reset to
        if cache.resolve("@{upstream}") is None:
            logger.debug("Resolution cache has no upstream commits yet")
            return
        reset = cache.reset_hard("@{upstream}")
        if not reset.ok:
            raise RerereCacheUnreachable(url=cache_url, detail=reset.detail)

    def _link(self) -> None:
        """Point git's native rerere store into the clone."""
        target = self.mount / RERERE_NATIVE_DIRNAME
        target.mkdir(parents=True, exist_ok=True)

        native = self.native_store
        if native.is_symlink():
            if native.resolve() == target.resolve():
                return
            native.unlink()
        elif native.exists():
            aside = native.with_name(f"{RERERE_NATIVE_DIRNAME}.local-{int(time.time())}")
            logger.warning(f"Moving existing {native} aside to {aside}")
            native.rename(aside)

        os.symlink(os.path.relpath(target, native.parent), native)

    def _configure(self, enabled: bool) -> None:
        value = "true" if enabled else "false"
        for key in ("rerere.enabled", "rerere.autoupdate"):
            outcome = self.vcs.set_config(key, value)
            if not outcome.ok:
                raise RepositoryUnreachable(name="local", url=str(self.vcs.path), detail=outcome.detail)

    def publish(self) -> bool:
        """
        Commit any new resolutions in the cache clone.

        Nothing is pushed. Returns True if a commit was made.
        """
        if not self.mount.exists():
            return False
        cache = self.vcs.at(self.mount)
        if not cache.is_dirty():
            logger.debug("Resolution cache unchanged")
            return False
        outcome = cache.commit_all(RERERE_COMMIT_MESSAGE)
        if not outcome.ok:
            logger.warning(f"Could not commit resolution cache: {outcome.detail}")
            return False
        print(f"Committed new resolutions in {self.mount}; push them when ready")
        return True
