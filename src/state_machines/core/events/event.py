"""Event definition module."""

from typing import Any, Callable, Dict, List, Optional, Union

from loguru import logger

from state_machines.core.events.branch import Branch, as_list, assert_valid_keys
from state_machines.core.exceptions import InvalidTransitionError, InvalidTransitionRequirements
from state_machines.core.matchers import LoopbackMatcher
from state_machines.core.transitions.transition import Transition


_STATE_OPTIONS = ("from_", "to", "except_from", "except_to")


class Event:
    """Named trigger that resolves the first matching branch into a Transition."""

    def __init__(
        self,
        machine: Any,
        name: str,
        human_name: Union[str, Callable[..., str], None] = None
    ) -> None:
        """Initialize event.

        Args:
            machine: Machine the event belongs to
            name: Event name
            human_name: Readable name; defaults to the name with spaces
        """
        self.machine = machine
        self.name = name
        self.qualified_name = f"{name}_{machine.namespace}" if machine.namespace else name
        self._human_name = human_name or name.replace("_", " ")
        self.branches: List[Branch] = []
        self.known_states: List[Any] = []

    def copy(self, machine: Any) -> "Event":
        """Same event and branches owned by another machine."""
        event = Event(machine, self.name, human_name=self._human_name)
        event.branches = list(self.branches)
        event.known_states = list(self.known_states)
        return event

    def human_name(self, klass: Optional[type] = None) -> str:
        if callable(self._human_name):
            return self._human_name(self, klass or self.machine.owner_class)
        return self._human_name

    def transition(self, requirements: Optional[Dict[Any, Any]] = None, **options: Any) -> Branch:
        """Declare a branch for this event.

        Examples:
            event.transition({"parked": "idling", "idling": SAME}, if_="seatbelt_on")
            event.transition(from_=ALL - "idling", to="parked")

        Raises:
            InvalidTransitionRequirements: If no from/to requirement is given
                or an option is not allowed on an event's transition
        """
        if not requirements and not any(option in options for option in _STATE_OPTIONS):
            raise InvalidTransitionRequirements(
                "Must specify at least one transition requirement",
                {"event": self.name}
            )
        assert_valid_keys(options, *_STATE_OPTIONS, "if_", "unless")

        branch = Branch(requirements, on=self.name, **options)
        self.branches.append(branch)
        for state in branch.known_states:
            if state not in self.known_states:
                self.known_states.append(state)
        self.machine.add_states(branch.known_states)
        return branch

    def can_fire(self, obj: Any, requirements: Optional[Dict[str, Any]] = None) -> bool:
        """Whether a transition is possible from the object's current state.

        Host-side checks that might still block the commit are not considered.
        """
        return self.transition_for(obj, requirements) is not None

    def transition_for(
        self,
        obj: Any,
        requirements: Optional[Dict[str, Any]] = None,
        *event_args: Any
    ) -> Optional[Transition]:
        """Build the transition this event would perform on the object.

        Args:
            obj: Object to transition
            requirements: Optional ``from`` (defaults to the current state),
                ``to`` and ``guard`` (False skips guard predicates)
            *event_args: Arguments passed to guards that accept them

        Returns:
            Transition for the first matching branch, or None

        Raises:
            InvalidTransitionRequirements: If requirements has unknown keys
            NoMatchingStateError: If the current state cannot be resolved
        """
        requirements = dict(requirements or {})
        assert_valid_keys(requirements, "from", "to", "guard")
        custom_from_state = "from" in requirements
        if not custom_from_state:
            requirements["from"] = self.machine.states.match_strict(obj).name

        from_name = requirements["from"]
        # An explicit to narrows the candidates below; loopback branches ignore it
        query = {key: value for key, value in requirements.items() if key != "to"}
        for branch in self.branches:
            match = branch.match(obj, query, event_args)
            if match is None:
                continue

            if isinstance(match["to"], LoopbackMatcher):
                to_name = from_name
            else:
                if "to" in requirements:
                    values = as_list(requirements["to"])
                else:
                    values = [from_name] + [name for name in self.machine.states.keys() if name != from_name]
                candidates = match["to"].filter(values)
                if not candidates:
                    continue
                to_name = candidates[0]

            logger.debug(f"Event {self.name!r} matched {branch!r} for {from_name!r} => {to_name!r}")
            return Transition(obj, self.machine, self.name, from_name, to_name, read_state=not custom_from_state)

        return None

    def fire(
        self,
        obj: Any,
        *event_args: Any,
        run_action: bool = True,
        raise_on_failure: bool = False
    ) -> bool:
        """Perform the next available transition on the object.

        Args:
            obj: Object to transition
            *event_args: Arguments passed to guards, callbacks and the action
            run_action: Whether to invoke the machine's action
            raise_on_failure: Raise instead of returning False

        Returns:
            Whether the transition was performed

        Raises:
            InvalidTransitionError: If the event fails and ``raise_on_failure``
                is set
        """
        self.machine.reset(obj)

        transition = self.transition_for(obj, {}, *event_args)
        if transition is not None:
            result = transition.perform(*event_args, run_action=run_action)
        else:
            self.on_failure(obj, *event_args)
            result = False

        if not result and raise_on_failure:
            from_name = self.machine.states.match_strict(obj).name
            raise InvalidTransitionError(
                f"Cannot transition {self.machine.name} via :{self.name} from {from_name!r}",
                self.name,
                from_name,
                {"machine": self.machine.name, "errors": self.machine.errors_for(obj)}
            )
        return result

    def on_failure(self, obj: Any, *args: Any) -> None:
        """Mark the object invalid and run the failure callbacks."""
        state = self.machine.states.match_strict(obj)
        self.machine.invalidate(obj, "state", "invalid_transition", [
            ("event", self.human_name(type(obj))),
            ("state", state.human_name(type(obj))),
        ])

        transition = Transition(obj, self.machine, self.name, state.name, state.name)
        transition.args = list(args)
        transition.run_callbacks(before=False)

    def reset(self) -> None:
        """Forget every branch and known state."""
        self.branches = []
        self.known_states = []

    def __repr__(self) -> str:
        transitions = ", ".join(
            f"{requirement['from'].description()} => {requirement['to'].description()}"
            for branch in self.branches
            for requirement in branch.state_requirements
        )
        return f"<Event name={self.name!r} transitions=[{transitions}]>"
