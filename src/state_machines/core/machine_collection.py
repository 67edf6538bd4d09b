"""Per-class registry of machines."""

from typing import Any, Dict, List
from weakref import WeakKeyDictionary

from loguru import logger

from state_machines.core.exceptions import InvalidEventError
from state_machines.core.transitions.transition_collection import TransitionCollection


_machines: "WeakKeyDictionary[type, Dict[str, Any]]" = WeakKeyDictionary()


def register(machine: Any) -> None:
    """Record a machine under its owner class and name."""
    _machines.setdefault(machine.owner_class, {})[machine.name] = machine
    logger.debug(f"Registered machine {machine.name!r} on {machine.owner_class.__name__}")


def machines_for(owner_class: type) -> "MachineCollection":
    """Machines visible to a class, including those defined on its bases.

    Machines defined closer to the class in its MRO take precedence.
    """
    collection = MachineCollection()
    for klass in reversed(owner_class.__mro__):
        collection.update(_machines.get(klass, {}))
    return collection


class MachineCollection(dict):
    """Machines of one owner class keyed by name."""

    def initialize_states(self, obj: Any, force: bool = False) -> None:
        """Seed every machine's attribute with its initial state's value."""
        for machine in self.values():
            machine.initialize_state(obj, force=force)

    def fire_events(self, obj: Any, *event_names: str, run_action: bool = True) -> bool:
        """Fire events of different machines as one atomic commit.

        Args:
            obj: Object to transition
            *event_names: Qualified event names, at most one per machine
            run_action: Whether to invoke the machines' actions

        Returns:
            Whether every event transitioned the object

        Raises:
            InvalidEventError: If an event is not defined on any machine
        """
        transitions: List[Any] = []
        for event_name in event_names:
            event = next(
                (event for event in (machine.events.get(event_name, "qualified_name") for machine in self.values())
                 if event is not None),
                None
            )
            if event is None:
                raise InvalidEventError(
                    f"{event_name!r} is an unknown state machine event",
                    event_name,
                    {"machines": list(self)}
                )

            transition = event.transition_for(obj)
            if transition is None:
                event.on_failure(obj)
            transitions.append(transition)

        if any(transition is None for transition in transitions):
            return False

        return TransitionCollection(
            transitions,
            skip_actions=not run_action,
            use_transactions=any(machine.use_transactions for machine in self.values())
        ).perform()

    def transitions_for(self, obj: Any) -> List[Any]:
        """Every transition the object could currently perform, per machine."""
        return [
            transition
            for machine in self.values()
            for transition in machine.events.transitions_for(obj)
        ]
