"""Tests for integrator.workflow.fsm module."""

import pytest
from transitions import MachineError

from integrator.workflow.fsm import BuildFSM, STATES, TRANSITIONS


class TestFSMStates:

    def test_all_states_defined(self):
        assert set(STATES) == {
            "not_started", "baseline_established", "rotated", "fresh",
            "merging_topics", "complete", "aborted",
        }

    def test_every_transition_uses_known_states(self):
        for t in TRANSITIONS:
            sources = t["source"] if isinstance(t["source"], list) else [t["source"]]
            assert set(sources) <= set(STATES)
            assert t["dest"] in STATES


class TestFSMPaths:

    def test_fresh_path(self):
        fsm = BuildFSM("integration")
        assert fsm.state == "not_started"
        fsm.establish_baseline()
        fsm.start_fresh()
        fsm.start_merging()
        fsm.finish()
        assert fsm.state == "complete"
        assert fsm.finished

    def test_rotated_path(self):
        fsm = BuildFSM("integration")
        fsm.establish_baseline()
        fsm.rotate()
        assert fsm.state == "rotated"
        fsm.start_merging()
        assert fsm.state == "merging_topics"

    def test_cannot_merge_before_baseline(self):
        fsm = BuildFSM("integration")
        with pytest.raises(MachineError):
            fsm.start_merging()

    def test_abort_from_merging(self):
        fsm = BuildFSM("integration")
        fsm.establish_baseline()
        fsm.start_fresh()
        fsm.start_merging()
        fsm.abort()
        assert fsm.state == "aborted"

    def test_terminal_states_cannot_abort(self):
        fsm = BuildFSM("integration")
        fsm.establish_baseline()
        fsm.start_fresh()
        fsm.start_merging()
        fsm.finish()
        with pytest.raises(MachineError):
            fsm.abort()
        assert fsm.finished
        assert fsm.state == "complete"

    def test_transitions_are_logged(self, caplog):
        fsm = BuildFSM("next")
        with caplog.at_level("INFO", logger="integrator.workflow.fsm"):
            fsm.establish_baseline()
        assert "[FSM] next: not_started -> baseline_established (establish_baseline)" in caplog.text
