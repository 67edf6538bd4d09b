"""Transition module."""

from typing import Any, Callable, Dict, Generator, List, Optional

from loguru import logger

from state_machines.core.exceptions import ConfigurationError, Halt


_NOT_PERSISTED = object()


class Transition:
    """One resolved change of a machine attribute on an object.

    Callbacks receive the transition, so guards and side effects can look at
    ``event``, ``from_name``/``to_name`` and the raw ``from_``/``to`` values.
    """

    def __init__(
        self,
        obj: Any,
        machine: Any,
        event: Optional[str],
        from_name: Any,
        to_name: Any,
        read_state: bool = True
    ) -> None:
        """Initialize transition.

        Args:
            obj: Object being transitioned, borrowed for the call
            machine: Machine owning the attribute
            event: Name of the event causing the transition
            from_name: Name of the state transitioned from
            to_name: Name of the state transitioned to
            read_state: Whether ``from_`` is read from the object instead of
                taken from the from-state's value
        """
        self.object = obj
        self.machine = machine
        self.event = event
        self.args: List[Any] = []
        self.result: Any = None
        self.success = False
        self.read_state = read_state

        self._from_state = machine.states.fetch(from_name)
        self.from_ = machine.read(obj, "state") if read_state else self._from_state.value()
        self._to_state = machine.states.fetch(to_name)
        self.to = self._to_state.value()
        self.reset()

    @property
    def attribute(self) -> str:
        return self.machine.attribute

    @property
    def action(self) -> Optional[str]:
        """Host action invoked when the transition commits."""
        return self.machine.action

    @property
    def from_name(self) -> Any:
        return self._from_state.name

    @property
    def to_name(self) -> Any:
        return self._to_state.name

    @property
    def qualified_from_name(self) -> Any:
        return self._from_state.qualified_name

    @property
    def qualified_to_name(self) -> Any:
        return self._to_state.qualified_name

    @property
    def qualified_event(self) -> Optional[str]:
        if self.event is None:
            return None
        return self.machine.events.fetch(self.event).qualified_name

    def human_event(self, klass: Optional[type] = None) -> Optional[str]:
        if self.event is None:
            return None
        return self.machine.events.fetch(self.event).human_name(klass or type(self.object))

    def human_from_name(self, klass: Optional[type] = None) -> str:
        return self._from_state.human_name(klass or type(self.object))

    def human_to_name(self, klass: Optional[type] = None) -> str:
        return self._to_state.human_name(klass or type(self.object))

    @property
    def loopback(self) -> bool:
        """Whether the transition stays in the same state."""
        return self.from_name == self.to_name

    @property
    def attributes(self) -> Dict[str, Any]:
        return {
            "object": self.object,
            "attribute": self.attribute,
            "event": self.event,
            "from": self.from_,
            "to": self.to,
        }

    @property
    def context(self) -> Dict[str, Any]:
        """Requirements callbacks are matched against."""
        return {"on": self.event, "from": self.from_name, "to": self.to_name}

    def perform(self, *args: Any, run_action: bool = True) -> bool:
        """Run callbacks, write the attribute and invoke the action.

        Args:
            *args: Arguments made available to callbacks as ``args``
            run_action: Whether to invoke the machine's action

        Returns:
            Whether the transition committed
        """
        from state_machines.core.transitions.transition_collection import TransitionCollection

        self.args = list(args)
        return TransitionCollection(
            [self],
            use_transactions=self.machine.use_transactions,
            skip_actions=not run_action
        ).perform()

    def run_callbacks(
        self,
        before: bool = True,
        after: bool = True,
        block: Optional[Callable[[], Dict[str, Any]]] = None
    ) -> bool:
        """Run this transition's callback chain around an optional body.

        Args:
            before: Run the before/around phase; when False only the after
                phase (or failure callbacks) runs, resuming paused around
                callbacks first
            after: Run the after phase; when False around callbacks stay
                paused after their ``yield`` until a later call with
                ``before=False``
            block: Body returning ``{"success": bool, "result": value}``

        Returns:
            Whether the chain ran without halting
        """
        halted = False
        if before:
            self.success = False
            if self.before():
                try:
                    outcome = block() if block is not None else {}
                except BaseException:
                    self.close_arounds()
                    raise
                self.result = outcome.get("result")
                self.success = outcome.get("success", True)
                if not self.success:
                    self.close_arounds()
                elif after:
                    halted = not self.complete_arounds()
                else:
                    self.pause()
            else:
                halted = True
        elif self._paused:
            self._paused = False
            halted = not self.complete_arounds()

        # A halt after an around callback yielded skips the after phase
        if not (self._before_run and halted) and (after or not self.success):
            self.after()
        return not halted

    def before(self) -> bool:
        """Run before callbacks and start around callbacks in declaration order.

        Returns:
            False when a callback halted the chain
        """
        if self._before_run:
            return True

        try:
            for callback in self.machine.callbacks["before"]:
                if callback.type == "around":
                    self._arounds.extend(callback.start(self.object, self.context, self))
                else:
                    callback.call(self.object, self.context, self)
        except Halt:
            self.close_arounds()
            return False
        except BaseException:
            self.close_arounds()
            raise

        self._before_run = True
        return True

    def complete_arounds(self) -> bool:
        """Resume suspended around callbacks, innermost first.

        Returns:
            False when an around callback halted after yielding

        Raises:
            ConfigurationError: If an around callback yields more than once
        """
        while self._arounds:
            generator = self._arounds.pop()
            try:
                next(generator)
            except StopIteration:
                continue
            except Halt:
                self.close_arounds()
                return False
            generator.close()
            self.close_arounds()
            raise ConfigurationError("Around callbacks must yield exactly once", {"event": self.event})
        return True

    def pause(self) -> None:
        """Keep around callbacks suspended until the after phase is requested."""
        self._paused = True

    def close_arounds(self) -> None:
        """Abandon suspended around callbacks without running their remainder."""
        while self._arounds:
            self._arounds.pop().close()
        self._paused = False

    def after(self) -> None:
        """Run after callbacks, or failure callbacks when unsuccessful."""
        if self._after_run:
            return

        callbacks = self.machine.callbacks["after" if self.success else "failure"]
        try:
            for callback in callbacks:
                callback.call(self.object, self.context, self)
        except Halt:
            logger.debug(f"After phase halted for {self!r}")
        self._after_run = True

    def persist(self) -> None:
        """Write the to-value, remembering the value it replaces."""
        if self._persisted:
            return
        self._previous = self.machine.read(self.object, "state")
        self.machine.write(self.object, self.to)
        self._persisted = True
        logger.debug(f"Wrote {self.attribute}={self.to!r} on {type(self.object).__name__}")

    def rollback(self) -> None:
        """Restore the value the attribute held before ``persist``."""
        if self._persisted:
            self.machine.write(self.object, self._previous)
            logger.debug(f"Rolled back {self.attribute}={self._previous!r} on {type(self.object).__name__}")
        self.reset()

    def reset(self) -> None:
        """Forget progress so the transition can be performed again."""
        self._before_run = False
        self._after_run = False
        self._persisted = False
        self._paused = False
        self._previous: Any = _NOT_PERSISTED
        self._arounds: List[Generator] = []

    def __repr__(self) -> str:
        return (
            f"<Transition attribute={self.attribute!r} event={self.event!r} "
            f"from={self.from_!r} from_name={self.from_name!r} "
            f"to={self.to!r} to_name={self.to_name!r}>"
        )
