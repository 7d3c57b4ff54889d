from enum import Enum
from typing import Dict, Set

from vibey.exceptions.agent import InvalidStateTransitionError


class AgentState(str, Enum):
    IDLE = "idle"
    ASSEMBLING_CONTEXT = "assembling_context"
    AWAITING_MODEL = "awaiting_model"
    INTERPRETING = "interpreting"
    DISPATCHING_TOOLS = "dispatching_tools"
    FINALIZING = "finalizing"


class StateMachine:
    """
    Enforces valid state transitions for one chat request.
    Prevents invalid jumps (e.g., IDLE -> DISPATCHING_TOOLS without a model reply).
    """

    def __init__(self):
        self._current_state = AgentState.IDLE

        # Any state may fall back to IDLE (cancellation, errors).
        self._transitions: Dict[AgentState, Set[AgentState]] = {
            AgentState.IDLE: {AgentState.ASSEMBLING_CONTEXT},
            AgentState.ASSEMBLING_CONTEXT: {
                AgentState.AWAITING_MODEL,
                AgentState.IDLE,
            },
            AgentState.AWAITING_MODEL: {
                AgentState.INTERPRETING,
                AgentState.IDLE,
            },
            AgentState.INTERPRETING: {
                AgentState.DISPATCHING_TOOLS,
                AgentState.AWAITING_MODEL,  # empty response retry
                AgentState.FINALIZING,
                AgentState.IDLE,
            },
            AgentState.DISPATCHING_TOOLS: {
                AgentState.AWAITING_MODEL,
                AgentState.FINALIZING,
                AgentState.IDLE,
            },
            AgentState.FINALIZING: {AgentState.IDLE},
        }

    @property
    def current(self) -> AgentState:
        return self._current_state

    def can_transition(self, new_state: AgentState) -> bool:
        return new_state in self._transitions[self._current_state]

    def transition_to(self, new_state: AgentState) -> None:
        """
        Attempts to transition to a new state.
        Raises InvalidStateTransitionError if the transition is illegal.
        """
        if new_state == self._current_state:
            return
        if not self.can_transition(new_state):
            raise InvalidStateTransitionError(
                f"Invalid State Transition: {self._current_state.value} -> {new_state.value}",
                current_state=self._current_state.value,
                requested_state=new_state.value,
            )
        self._current_state = new_state

    def reset(self) -> None:
        self._current_state = AgentState.IDLE
