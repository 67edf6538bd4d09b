"""State collection module."""

from typing import Any, Optional

from state_machines.core.exceptions import DuplicateNodeError, NoMatchingStateError
from state_machines.core.node_collection import SKIP_INDEX, NodeCollection
from state_machines.core.states.state import State


def _value_key(state: State) -> Any:
    # Deferred values and custom matchers cannot be looked up by value
    if state.deferred or state.matcher is not None:
        return SKIP_INDEX
    return state.value(evaluate=False)


class StateCollection(NodeCollection[State]):
    """States of one machine, indexed by name, qualified name and value."""

    def __init__(self, machine: Any) -> None:
        super().__init__(machine, index={
            "name": lambda state: state.name,
            "qualified_name": lambda state: state.qualified_name,
            "value": _value_key,
        })

    def add(self, state: State) -> State:
        """Add a state; only one state may be initial.

        Raises:
            DuplicateNodeError: If the name, qualified name or value is taken,
                or another state is already initial
        """
        if state.initial:
            self.check_initial(state)
        return super().add(state)

    @property
    def initial(self) -> Optional[State]:
        """The state used to seed new objects."""
        return next((state for state in self if state.initial), None)

    def matches(self, obj: Any, name: Any) -> bool:
        """Whether the object is currently in the named state."""
        return self.fetch(name).matches(self.machine.read(obj, "state"))

    def match(self, obj: Any) -> Optional[State]:
        """State corresponding to the object's current attribute value."""
        value = self.machine.read(obj, "state")
        state = self.get(value, "value")
        if state is not None:
            return state
        return next((state for state in self if state.matches(value)), None)

    def match_strict(self, obj: Any) -> State:
        """State corresponding to the object's current attribute value.

        Raises:
            NoMatchingStateError: If no state matches the value
        """
        state = self.match(obj)
        if state is None:
            value = self.machine.read(obj, "state")
            raise NoMatchingStateError(
                f"{value!r} is not a known {self.machine.name} value",
                value,
                {"machine": self.machine.name, "attribute": self.machine.attribute}
            )
        return state

    def mark_initial(self, state: State) -> None:
        """Make a state the only initial one."""
        for other in self:
            other.initial = other is state

    def check_initial(self, state: State) -> None:
        """Reject a second initial state.

        Raises:
            DuplicateNodeError: If another state is already initial
        """
        current = self.initial
        if current is not None and current is not state:
            raise DuplicateNodeError(
                f"Initial state {current.name!r} is already defined",
                {"initial": current.name, "state": state.name}
            )
