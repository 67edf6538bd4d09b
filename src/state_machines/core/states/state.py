"""State definition module."""

from typing import Any, Callable, Optional, Union

from state_machines.core.eval_helpers import is_deferred
from state_machines.core.exceptions import DuplicateNodeError, InvalidContextError


NOT_PROVIDED = object()


class State:
    """A named, valued point in a machine attribute's domain.

    The value is what gets written to the attribute when an object enters the
    state. It defaults to the state's name and may be a zero-argument
    callable, evaluated on every read or once when ``cache`` is set.
    A custom ``matcher`` replaces equality when deciding whether an attribute
    value belongs to this state.
    """

    def __init__(
        self,
        machine: Any,
        name: Any,
        *,
        initial: bool = False,
        value: Any = NOT_PROVIDED,
        cache: bool = False,
        if_: Optional[Callable[[Any], bool]] = None,
        human_name: Union[str, Callable[..., str], None] = None
    ) -> None:
        self.machine = machine
        self.name = name
        if name is not None and machine.namespace:
            self.qualified_name = f"{machine.namespace}_{name}"
        else:
            self.qualified_name = name
        self._human_name = human_name or (str(name).replace("_", " ") if name is not None else "none")
        self._value = name if value is NOT_PROVIDED else value
        self.cache = cache
        self.matcher = if_
        self.initial = initial is True

    def configure(
        self,
        *,
        value: Any = NOT_PROVIDED,
        cache: bool = False,
        if_: Optional[Callable[[Any], bool]] = None,
        human_name: Union[str, Callable[..., str], None] = None
    ) -> None:
        """Change options of an already defined state.

        The owning collection must re-index the state afterwards.
        """
        if value is not NOT_PROVIDED:
            self._value = value
        if cache:
            self.cache = True
        if if_ is not None:
            self.matcher = if_
        if human_name is not None:
            self._human_name = human_name

    def copy(self, machine: Any) -> "State":
        """Same state owned by another machine."""
        return State(
            machine,
            self.name,
            initial=self.initial,
            value=self._value,
            cache=self.cache,
            if_=self.matcher,
            human_name=self._human_name
        )

    def human_name(self, klass: Optional[type] = None) -> str:
        """Readable name, e.g. "first gear" for ``first_gear``."""
        if callable(self._human_name):
            return self._human_name(self, klass or self.machine.owner_class)
        return self._human_name

    @property
    def deferred(self) -> bool:
        """Whether the value is still an unevaluated computation."""
        return is_deferred(self._value)

    def value(self, evaluate: bool = True) -> Any:
        """Value written to the attribute for this state.

        Args:
            evaluate: Whether to run a deferred value; when False the raw
                callable is returned

        Returns:
            The state's value
        """
        if not (evaluate and is_deferred(self._value)):
            return self._value

        if not self.cache:
            return self._value()

        deferred = self._value
        self._value = deferred()
        try:
            self.machine.states.update(self)
        except DuplicateNodeError:
            self._value = deferred
            raise
        return self._value

    def matches(self, other_value: Any) -> bool:
        """Whether an attribute value represents this state."""
        if self.matcher is not None:
            return bool(self.matcher(other_value))
        return other_value == self.value()

    def final(self) -> bool:
        """Whether no event can move an object out of this state."""
        for event in self.machine.events:
            for branch in event.branches:
                for requirement in branch.state_requirements:
                    if requirement["from"].matches(self.name) and \
                            not requirement["to"].matches(self.name, {"from": self.name}):
                        return False
        return True

    def description(self, human_name: bool = False) -> str:
        """Describe the state's name and, when it differs, its value.

        ``parked``, ``parked (1)``, ``parked (None)`` or ``parked (*)`` for
        deferred values.
        """
        label = self.human_name() if human_name else self.name
        description = str(label)
        if str(self.name) != str(self._value):
            description += f" ({'*' if is_deferred(self._value) else repr(self._value)})"
        return description

    def call(self, obj: Any, method: str, *args: Any, **kwargs: Any) -> Any:
        """Call a method on the object only while it is in this state.

        Raises:
            InvalidContextError: If the object is in another state or does not
                define the method
        """
        state = self.machine.states.match_strict(obj)
        if state is not self or not callable(getattr(obj, method, None)):
            raise InvalidContextError(
                f"State {state.name!r} for {self.machine.name!r} is not a valid context for calling {method}",
                {"state": state.name, "machine": self.machine.name, "method": method}
            )
        return getattr(obj, method)(*args, **kwargs)

    def __repr__(self) -> str:
        return f"<State name={self.name!r} value={self._value!r} initial={self.initial!r}>"
