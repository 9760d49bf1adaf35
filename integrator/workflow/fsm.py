"""Integration build state machine using transitions library.

States follow a build from nothing to a finished integration branch:

    not_started -> baseline_established -> rotated | fresh
                -> merging_topics -> complete

Any non-terminal state can move to aborted.

Usage:
    from integrator.workflow.fsm import BuildFSM

    fsm = BuildFSM("integration")
    fsm.establish_baseline()
    fsm.start_fresh()
    fsm.start_merging()
    fsm.finish()
"""

import logging

from transitions import Machine

logger = logging.getLogger(__name__)


STATES = [
    "not_started",
    "baseline_established",
    "rotated",
    "fresh",
    "merging_topics",
    "complete",
    "aborted",
]

TERMINAL_STATES = ("complete", "aborted")

# Each trigger becomes a method on the FSM
TRANSITIONS = [
    {"trigger": "establish_baseline", "source": "not_started", "dest": "baseline_established"},

    # Previous integration branch renamed out of the way, or there wasn't one
    {"trigger": "rotate", "source": "baseline_established", "dest": "rotated"},
    {"trigger": "start_fresh", "source": "baseline_established", "dest": "fresh"},

    {"trigger": "start_merging", "source": "rotated", "dest": "merging_topics"},
    {"trigger": "start_merging", "source": "fresh", "dest": "merging_topics"},

    {"trigger": "finish", "source": "merging_topics", "dest": "complete"},

    {"trigger": "abort", "source": [s for s in STATES if s not in TERMINAL_STATES], "dest": "aborted"},
]


class BuildFSM:
    """State machine for one integration build.

    Wraps the transitions library and logs every transition. State is not
    persisted: a build lives and dies within one run.
    """

    def __init__(self, branch: str):
        """Initialize FSM for a build.

        Args:
            branch: Integration branch name, used in log lines
        """
        self.branch = branch

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial="not_started",
            auto_transitions=False,  # Only explicit transitions
            send_event=True,  # Pass EventData to callbacks
            after_state_change="on_state_change",
        )

    def on_state_change(self, event) -> None:
        """Callback after any state transition."""
        logger.info(
            f"[FSM] {self.branch}: {event.transition.source} -> "
            f"{event.transition.dest} ({event.event.name})"
        )

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES
