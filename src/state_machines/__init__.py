"""State machines for Python objects.

- Machine: states, events and callbacks for one attribute of a class
- Event / Branch: guarded rules resolving into a Transition
- Transition / TransitionCollection: callback chain and atomic commit
- ALL / SAME: matchers for "any state" and "stay in the current state"
"""

from loguru import logger

from state_machines.core.exceptions import (
    ConfigurationError,
    DuplicateNodeError,
    Halt,
    InvalidContextError,
    InvalidEventError,
    InvalidTransitionCollectionError,
    InvalidTransitionError,
    InvalidTransitionRequirements,
    NoMatchingStateError,
    QualifiedNameConflictError,
    StateMachineError,
    UnknownNodeError
)
from state_machines.core.matchers import (
    ALL,
    SAME,
    AllMatcher,
    BlacklistMatcher,
    LoopbackMatcher,
    Matcher,
    WhitelistMatcher
)
from state_machines.core.states import State, StateCollection
from state_machines.core.events import Branch, Event, EventCollection
from state_machines.core.transitions import Callback, Transition, TransitionCollection
from state_machines.core.machine import Machine, Transaction
from state_machines.core.machine_collection import MachineCollection, machines_for

__version__ = "1.0.0"

logger.disable("state_machines")

__all__ = [
    # Definition
    "Machine",
    "MachineCollection",
    "machines_for",
    "State",
    "StateCollection",
    "Event",
    "EventCollection",
    "Branch",
    "Callback",
    # Execution
    "Transition",
    "TransitionCollection",
    "Transaction",
    # Matchers
    "ALL",
    "SAME",
    "Matcher",
    "AllMatcher",
    "WhitelistMatcher",
    "BlacklistMatcher",
    "LoopbackMatcher",
    # Errors
    "StateMachineError",
    "ConfigurationError",
    "InvalidTransitionRequirements",
    "DuplicateNodeError",
    "QualifiedNameConflictError",
    "UnknownNodeError",
    "NoMatchingStateError",
    "InvalidContextError",
    "InvalidEventError",
    "InvalidTransitionError",
    "InvalidTransitionCollectionError",
    "Halt"
]
