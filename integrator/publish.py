"""Pushing the integration branch."""

import logging

from integrator.lib.errors import RepositoryUnreachable
from integrator.lib.prompts import Confirmer
from integrator.vcs import VcsClient

logger = logging.getLogger(__name__)


class Publisher:
    """Force-pushes the integration branch, plus any branch it replaced."""

    def __init__(self, vcs: VcsClient, confirmer: Confirmer):
        self.vcs = vcs
        self.confirmer = confirmer

    def publish(self, branch: str, remote: str, rotated: str | None = None) -> bool:
        """
        Push branch to remote, overwriting the remote's copy.

        A rotated-out branch is pushed under its new name, unforced, so the
        previous integration stays available remotely. Returns True if
        anything was pushed.

        Raises:
            RepositoryUnreachable: if a push fails
        """
        if not remote:
            logger.info("No push remote configured, not pushing")
            return False

        if not self.confirmer.confirm(f"Push {branch} to {remote}?", default=True):
            print("Not pushing")
            return False

        pushed = self.vcs.push(remote, branch, force=True)
        if not pushed.ok:
            raise RepositoryUnreachable(name=branch, url=remote, detail=pushed.detail)
        print(f"Pushed {branch} to {remote}")

        if rotated:
            pushed = self.vcs.push(remote, rotated, force=False)
            if not pushed.ok:
                raise RepositoryUnreachable(name=rotated, url=remote, detail=pushed.detail)
            print(f"Pushed {rotated} to {remote}")

        return True
