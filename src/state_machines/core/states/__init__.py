"""States and their registry."""

from state_machines.core.states.state import NOT_PROVIDED, State
from state_machines.core.states.state_collection import StateCollection

__all__ = [
    "NOT_PROVIDED",
    "State",
    "StateCollection"
]
