"""Transition callback module."""

import inspect
from typing import Any, Callable, Dict, Generator, List, Optional

from loguru import logger

from state_machines.core.eval_helpers import Evaluator
from state_machines.core.events.branch import Branch, as_list
from state_machines.core.exceptions import ConfigurationError, Halt


CALLBACK_TYPES = ("before", "after", "around", "failure")


class Callback:
    """Guarded before/after/around/failure behavior for transitions.

    The guard is a Branch matched against the transition context
    (``on``, ``from`` and ``to``) plus ``if_``/``unless`` predicates.
    Methods are callables receiving ``(object, transition)`` as far as their
    signature allows, or names of methods on the object.

    A before callback halts the chain when it returns ``False``. With a
    ``terminator``, it halts when the result is falsy and the terminator
    returns true for it. Around callbacks are generator functions that must
    yield exactly once; code after the ``yield`` runs once the transition
    succeeds.
    """

    def __init__(
        self,
        type_: str,
        *args: Any,
        do: Any = None,
        terminator: Optional[Callable[[Any], bool]] = None,
        **options: Any
    ) -> None:
        """Initialize callback.

        Args:
            type_: One of before, after, around or failure
            *args: Methods to run, optionally preceded by a from/to mapping
            do: Additional method or list of methods
            terminator: Predicate on a before callback's result deciding halts
            **options: Guard requirements accepted by Branch

        Raises:
            ConfigurationError: If the type is unknown or no method is given
        """
        if type_ not in CALLBACK_TYPES:
            raise ConfigurationError(
                f"Type must be one of {', '.join(CALLBACK_TYPES)}",
                {"type": type_}
            )

        requirements = next((arg for arg in args if isinstance(arg, dict)), None)
        methods = [arg for arg in args if not isinstance(arg, dict)] + as_list(do)
        if not methods:
            raise ConfigurationError("Methods must be specified", {"type": type_})

        self.type = type_
        self.terminator = terminator
        self.branch = Branch(requirements, **options)
        self.methods: List[Evaluator] = [Evaluator(method) for method in methods]

        if type_ == "around":
            for method in self.methods:
                if not isinstance(method.method, str) and not method.is_generator:
                    raise ConfigurationError(
                        "Around callbacks must be generator functions",
                        {"method": repr(method)}
                    )

    @property
    def known_states(self) -> List[Any]:
        return self.branch.known_states

    def matches(self, obj: Any, context: Optional[Dict[str, Any]] = None) -> bool:
        return self.branch.matches(obj, context or {})

    def call(self, obj: Any, context: Optional[Dict[str, Any]] = None, *args: Any) -> bool:
        """Run the callback's methods when its guard matches.

        Returns:
            Whether the guard matched and the methods ran

        Raises:
            Halt: If a before callback's result halts the chain
        """
        if self.type == "around":
            raise ConfigurationError("Around callbacks are started, not called", {"type": self.type})
        if not self.matches(obj, context):
            return False

        for method in self.methods:
            result = method(obj, *args)
            if self.type == "before" and self._halts(result):
                logger.debug(f"Before callback {method!r} halted with {result!r}")
                raise Halt(result)
        return True

    def start(self, obj: Any, context: Optional[Dict[str, Any]] = None, *args: Any) -> List[Generator]:
        """Run an around callback up to its ``yield``.

        Returns:
            Suspended generators to resume once the transition body succeeds;
            empty when the guard does not match

        Raises:
            Halt: If a method returns without yielding
        """
        if not self.matches(obj, context):
            return []

        started: List[Generator] = []
        for method in self.methods:
            generator = method(obj, *args)
            if not inspect.isgenerator(generator):
                raise ConfigurationError(
                    "Around callbacks must be generator functions",
                    {"method": repr(method)}
                )
            try:
                next(generator)
            except StopIteration:
                for suspended in reversed(started):
                    suspended.close()
                logger.debug(f"Around callback {method!r} returned without yielding")
                raise Halt(None)
            started.append(generator)
        return started

    def _halts(self, result: Any) -> bool:
        if self.terminator is None:
            return result is False
        return not result and bool(self.terminator(result))

    def __repr__(self) -> str:
        return f"<Callback type={self.type!r} methods={self.methods!r}>"
