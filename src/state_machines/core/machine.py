"""State machine definition module."""

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from loguru import logger

from state_machines.core.eval_helpers import evaluate_method, is_deferred
from state_machines.core.events.branch import Branch, as_list
from state_machines.core.events.event import Event
from state_machines.core.events.event_collection import EventCollection
from state_machines.core.exceptions import ConfigurationError, QualifiedNameConflictError
from state_machines.core.machine_collection import machines_for, register
from state_machines.core.states.state import NOT_PROVIDED, State
from state_machines.core.states.state_collection import StateCollection
from state_machines.core.transitions.callback import Callback
from state_machines.core.transitions.transition import Transition


DEFAULT_MESSAGES = {
    "invalid": "is invalid",
    "invalid_event": "cannot transition when {state}",
    "invalid_transition": 'cannot transition via "{event}"',
}


class Transaction:
    """Outcome of one commit, as seen by ``Machine.transaction``."""

    def __init__(self, obj: Any) -> None:
        self.object = obj
        self.failed = False

    def fail(self) -> None:
        """Mark the commit as halted, refused by its action or rolled back."""
        self.failed = True


class Machine:
    """States, events and callbacks governing one attribute of an owner class.

    Example:
        machine = Machine(Vehicle, initial="parked", action="save")
        machine.event("ignite").transition(from_="parked", to="idling")
        machine.fire(vehicle, "ignite")

    Reading and writing the attribute, running the action and opening a
    transaction are plain methods so hosts can override them in a subclass.
    """

    def __init__(
        self,
        owner_class: type,
        name: str = "state",
        *,
        attribute: Optional[str] = None,
        namespace: Optional[str] = None,
        initial: Any = None,
        action: Optional[str] = None,
        use_transactions: bool = True,
        messages: Optional[Dict[str, str]] = None
    ) -> None:
        """Initialize machine and register it on the owner class.

        Args:
            owner_class: Class whose instances carry the attribute
            name: Machine name
            attribute: Attribute storing the state value; defaults to the name
            namespace: Prefix for state names and suffix for event names
            initial: Initial state name, or a callable receiving the object
                and returning one
            action: Name of the object method that commits a transition
            use_transactions: Wrap commits in ``transaction``
            messages: Overrides for the error message templates
        """
        self.owner_class = owner_class
        self.name = name
        self.attribute = attribute or name
        self.namespace = namespace
        self.action = action
        self.use_transactions = use_transactions
        self.messages = {**DEFAULT_MESSAGES, **(messages or {})}

        self.states = StateCollection(self)
        self.events = EventCollection(self)
        self.callbacks: Dict[str, List[Callback]] = {"before": [], "after": [], "failure": []}
        self._initial_state: Any = None

        register(self)
        if initial is not None:
            self.initial_state = initial

    @classmethod
    def find_or_create(cls, owner_class: type, name: str = "state", **options: Any) -> "Machine":
        """Machine named ``name`` on the owner class.

        A machine inherited from a base class is copied so the subclass can
        extend it without affecting the base.
        """
        machine = machines_for(owner_class).get(name)
        if machine is None:
            return cls(owner_class, name, **options)

        if machine.owner_class is not owner_class:
            machine = machine.copy(owner_class)
        if "initial" in options:
            machine.initial_state = options.pop("initial")
        if "action" in options:
            machine.action = options.pop("action")
        if options:
            raise ConfigurationError(
                f"Options {sorted(options)} cannot change on an existing machine",
                {"machine": name}
            )
        return machine

    def copy(self, owner_class: type) -> "Machine":
        """Duplicate this machine for another owner class."""
        machine = type(self)(
            owner_class,
            self.name,
            attribute=self.attribute,
            namespace=self.namespace,
            action=self.action,
            use_transactions=self.use_transactions,
            messages=self.messages
        )
        for state in self.states:
            machine.states.add(state.copy(machine))
        machine._initial_state = self._initial_state
        for event in self.events:
            machine.events.add(event.copy(machine))

        machine.callbacks = {type_: list(callbacks) for type_, callbacks in self.callbacks.items()}
        logger.debug(f"Copied machine {self.name!r} to {owner_class.__name__}")
        return machine

    # States

    @property
    def initial_state(self) -> Any:
        """Initial state name, or the callable resolving it per object."""
        return self._initial_state

    @initial_state.setter
    def initial_state(self, value: Any) -> None:
        self._initial_state = value
        if is_deferred(value):
            self.states.mark_initial(None)
            return
        state = self.add_states([value])[0]
        self.states.mark_initial(state)

    @property
    def dynamic_initial_state(self) -> bool:
        return is_deferred(self._initial_state)

    def initial_state_for(self, obj: Any) -> Optional[State]:
        """State new objects start in, evaluated against the object when dynamic."""
        name = self._initial_state
        if self.dynamic_initial_state:
            name = evaluate_method(obj, name)
        if name is None:
            return None
        return self.states.fetch(name)

    def initialize_state(self, obj: Any, force: bool = False) -> None:
        """Write the initial state's value when the attribute is unset or forced."""
        state = self.initial_state_for(obj)
        if state is not None and (force or self.read(obj, "state") is None):
            self.write(obj, state.value())

    def state(
        self,
        *names: Any,
        initial: bool = False,
        value: Any = NOT_PROVIDED,
        cache: bool = False,
        if_: Optional[Callable[[Any], bool]] = None,
        human_name: Any = None
    ) -> State:
        """Define states or configure existing ones.

        Returns:
            The last state named

        Raises:
            ConfigurationError: If several states would share one value
            DuplicateNodeError: If the value or initial flag collides
        """
        if not names:
            raise ConfigurationError("At least one state name is required", {"machine": self.name})
        if len(names) > 1 and value is not NOT_PROVIDED:
            raise ConfigurationError(
                "Cannot configure multiple states with the same value",
                {"machine": self.name, "states": list(names)}
            )

        state = None
        for name in names:
            state = self.states.get(name)
            if state is None:
                state = self._add_state(State(
                    self, name, value=value, cache=cache, if_=if_, human_name=human_name
                ))
            else:
                state.configure(value=value, cache=cache, if_=if_, human_name=human_name)
                self.states.update(state)

            if initial:
                self.states.check_initial(state)
                self.initial_state = name
        return state

    def other_states(self, *names: Any) -> List[State]:
        """Declare states that only appear in callbacks or host code."""
        return self.add_states(names)

    def add_states(self, names: Sequence[Any]) -> List[State]:
        """States for the names, defining any that are missing."""
        return [self.states.get(name) or self._add_state(State(self, name)) for name in names]

    def _add_state(self, state: State) -> State:
        self._check_conflicts("state", state.qualified_name)
        return self.states.add(state)

    def state_names(self) -> List[Any]:
        return self.states.keys()

    def state_name(self, obj: Any) -> Any:
        """Name of the object's current state."""
        return self.states.match_strict(obj).name

    def matches(self, obj: Any, name: Any) -> bool:
        return self.states.matches(obj, name)

    # Events

    def event(self, *names: str, human_name: Any = None) -> Event:
        """Define events or fetch existing ones.

        Returns:
            The last event named
        """
        if not names:
            raise ConfigurationError("At least one event name is required", {"machine": self.name})

        event = None
        for name in names:
            event = self.events.get(name)
            if event is None:
                event = Event(self, name, human_name=human_name)
                self._check_conflicts("event", event.qualified_name)
                self.events.add(event)
        return event

    def event_names(self) -> List[str]:
        return self.events.keys()

    def transition(self, requirements: Optional[Dict[Any, Any]] = None, *, on: Any, **options: Any) -> List[Branch]:
        """Declare the same branch on one or more events."""
        return [self.event(name).transition(requirements, **options) for name in as_list(on)]

    def fire(self, obj: Any, event_name: str, *args: Any, **options: Any) -> bool:
        """Fire a named event on the object; see ``Event.fire``."""
        return self.events.fetch(event_name).fire(obj, *args, **options)

    def can_fire(self, obj: Any, event_name: str) -> bool:
        return self.events.fetch(event_name).can_fire(obj)

    def transition_for(self, obj: Any, event_name: str, requirements: Optional[Dict[str, Any]] = None) -> Optional[Transition]:
        return self.events.fetch(event_name).transition_for(obj, requirements)

    # Callbacks

    def before_transition(self, *args: Any, **options: Any) -> Any:
        """Run methods before matching transitions; usable as a decorator."""
        return self._add_callback("before", args, options)

    def after_transition(self, *args: Any, **options: Any) -> Any:
        """Run methods after matching transitions commit; usable as a decorator."""
        return self._add_callback("after", args, options)

    def around_transition(self, *args: Any, **options: Any) -> Any:
        """Wrap matching transitions in generator functions; usable as a decorator."""
        return self._add_callback("around", args, options)

    def after_failure(self, *args: Any, **options: Any) -> Any:
        """Run methods when a matching transition fails; usable as a decorator."""
        return self._add_callback("failure", args, options)

    def _add_callback(self, type_: str, args: Tuple[Any, ...], options: Dict[str, Any]) -> Any:
        if "do" not in options and all(isinstance(arg, dict) for arg in args):
            def decorator(method: Callable[..., Any]) -> Callable[..., Any]:
                self._add_callback(type_, args + (method,), options)
                return method
            return decorator

        callback = Callback(type_, *args, **options)
        self.callbacks["before" if type_ == "around" else type_].append(callback)
        self.add_states(callback.known_states)
        return callback

    # Host capabilities

    def attribute_name(self, name: str = "state") -> str:
        """Object attribute backing ``name``; ``state`` is the machine attribute."""
        return self.attribute if name == "state" else f"{self.name}_{name}"

    def read(self, obj: Any, attribute: str = "state") -> Any:
        return getattr(obj, self.attribute_name(attribute), None)

    def write(self, obj: Any, value: Any, attribute: str = "state") -> None:
        setattr(obj, self.attribute_name(attribute), value)

    def run_action(self, obj: Any, *args: Any) -> Any:
        """Invoke the action on the object; True when there is none."""
        if self.action is None:
            return True
        return evaluate_method(obj, self.action, *args)

    @contextmanager
    def transaction(self, obj: Any) -> Iterator[Transaction]:
        """Context wrapping a commit; hosts with a datastore open one here.

        Yields a ``Transaction`` the commit marks failed when it returns False
        without raising, so an override can roll its datastore back:

            @contextmanager
            def transaction(self, obj):
                with session.begin() as db:
                    transaction = Transaction(obj)
                    yield transaction
                    if transaction.failed:
                        db.rollback()
        """
        yield Transaction(obj)

    # Errors

    def generate_message(self, key: str, values: Sequence[Tuple[str, Any]] = ()) -> str:
        return self.messages[key].format(**dict(values))

    def invalidate(self, obj: Any, attribute: str, message: str, values: Sequence[Tuple[str, Any]] = ()) -> None:
        """Record an error for the attribute on objects exposing an ``errors`` dict."""
        text = self.generate_message(message, values)
        logger.warning(f"{type(obj).__name__}.{self.attribute_name(attribute)} {text}")
        errors = getattr(obj, "errors", None)
        if isinstance(errors, dict):
            errors.setdefault(self.attribute_name(attribute), []).append(text)

    def reset(self, obj: Any) -> None:
        """Clear errors recorded for this machine's attribute."""
        errors = getattr(obj, "errors", None)
        if isinstance(errors, dict):
            errors.pop(self.attribute, None)

    def errors_for(self, obj: Any) -> str:
        errors = getattr(obj, "errors", None)
        if not isinstance(errors, dict):
            return ""
        return ", ".join(errors.get(self.attribute, []))

    def _check_conflicts(self, kind: str, qualified_name: Any) -> None:
        for other in machines_for(self.owner_class).values():
            if other is self or other.attribute == self.attribute:
                continue
            collection = other.states if kind == "state" else other.events
            if collection.get(qualified_name, "qualified_name") is not None:
                raise QualifiedNameConflictError(
                    f"{kind.capitalize()} {qualified_name!r} for {self.name!r} is already defined in {other.name!r}",
                    other.name,
                    {"kind": kind, "name": qualified_name, "machine": self.name}
                )

    def __repr__(self) -> str:
        return (
            f"<Machine owner={self.owner_class.__name__} name={self.name!r} "
            f"attribute={self.attribute!r} states={self.state_names()!r} events={self.event_names()!r}>"
        )
