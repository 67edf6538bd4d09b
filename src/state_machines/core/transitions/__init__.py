"""Transitions, their callbacks and atomic commits."""

from state_machines.core.transitions.callback import Callback
from state_machines.core.transitions.transition import Transition
from state_machines.core.transitions.transition_collection import TransitionCollection

__all__ = [
    "Callback",
    "Transition",
    "TransitionCollection"
]
