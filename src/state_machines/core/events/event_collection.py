"""Event collection module."""

from typing import Any, Dict, List, Optional

from state_machines.core.events.branch import as_list, assert_valid_keys
from state_machines.core.events.event import Event
from state_machines.core.node_collection import NodeCollection
from state_machines.core.transitions.transition import Transition


class EventCollection(NodeCollection[Event]):
    """Events of one machine, indexed by name and qualified name."""

    def __init__(self, machine: Any) -> None:
        super().__init__(machine, index={
            "name": lambda event: event.name,
            "qualified_name": lambda event: event.qualified_name,
        })

    def valid_for(self, obj: Any, requirements: Optional[Dict[str, Any]] = None) -> List[Event]:
        """Events that can currently fire on the object."""
        return [event for event in self._filter(requirements) if event.can_fire(obj, self._without_on(requirements))]

    def transitions_for(self, obj: Any, requirements: Optional[Dict[str, Any]] = None) -> List[Transition]:
        """Transitions every fireable event would currently perform.

        Args:
            obj: Object to inspect
            requirements: Optional ``from``, ``to``, ``guard`` and ``on`` (one
                or more event names to restrict the search to)
        """
        transitions = []
        for event in self._filter(requirements):
            transition = event.transition_for(obj, self._without_on(requirements))
            if transition is not None:
                transitions.append(transition)
        return transitions

    def _filter(self, requirements: Optional[Dict[str, Any]]) -> List[Event]:
        requirements = requirements or {}
        assert_valid_keys(requirements, "from", "to", "guard", "on")
        if "on" not in requirements:
            return list(self)
        names = as_list(requirements["on"])
        return [event for event in self if event.name in names]

    @staticmethod
    def _without_on(requirements: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return {key: value for key, value in (requirements or {}).items() if key != "on"}
