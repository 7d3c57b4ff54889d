# Test suite for the agent state machine

import pytest

from vibey.agent.core.state_machine import AgentState, StateMachine
from vibey.exceptions.agent import InvalidStateTransitionError


class TestStateMachine:
    """Allowed and forbidden transitions"""

    def test_full_tool_round(self):
        machine = StateMachine()
        for state in (
            AgentState.ASSEMBLING_CONTEXT,
            AgentState.AWAITING_MODEL,
            AgentState.INTERPRETING,
            AgentState.DISPATCHING_TOOLS,
            AgentState.AWAITING_MODEL,
            AgentState.INTERPRETING,
            AgentState.FINALIZING,
            AgentState.IDLE,
        ):
            machine.transition_to(state)
        assert machine.current == AgentState.IDLE

    def test_empty_response_retry(self):
        machine = StateMachine()
        machine.transition_to(AgentState.ASSEMBLING_CONTEXT)
        machine.transition_to(AgentState.AWAITING_MODEL)
        machine.transition_to(AgentState.INTERPRETING)
        assert machine.can_transition(AgentState.AWAITING_MODEL)

    def test_cannot_skip_the_model(self):
        machine = StateMachine()
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            machine.transition_to(AgentState.DISPATCHING_TOOLS)
        assert exc_info.value.current_state == "idle"
        assert exc_info.value.requested_state == "dispatching_tools"
        assert machine.current == AgentState.IDLE

    def test_finalizing_only_returns_to_idle(self):
        machine = StateMachine()
        machine.transition_to(AgentState.ASSEMBLING_CONTEXT)
        machine.transition_to(AgentState.AWAITING_MODEL)
        machine.transition_to(AgentState.INTERPRETING)
        machine.transition_to(AgentState.FINALIZING)
        assert not machine.can_transition(AgentState.AWAITING_MODEL)

    def test_same_state_is_noop(self):
        machine = StateMachine()
        machine.transition_to(AgentState.IDLE)
        assert machine.current == AgentState.IDLE

    def test_reset(self):
        machine = StateMachine()
        machine.transition_to(AgentState.ASSEMBLING_CONTEXT)
        machine.reset()
        assert machine.current == AgentState.IDLE
