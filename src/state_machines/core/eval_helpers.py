"""Evaluation of guards, callbacks and dynamic values against an object."""

import inspect
from typing import Any, Callable, Dict, Optional, Tuple, Union


MethodRef = Union[str, Callable[..., Any]]


def _signature_arity(func: Callable[..., Any]) -> Tuple[int, bool]:
    """Count positional parameters and whether extra positionals are accepted."""
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # Builtins without introspection get every argument
        return 0, True

    count = 0
    variadic = False
    for param in signature.parameters.values():
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            count += 1
        elif param.kind == param.VAR_POSITIONAL:
            variadic = True
    return count, variadic


def _limit(args: Tuple[Any, ...], count: int, variadic: bool) -> Tuple[Any, ...]:
    return args if variadic else args[:count]


class Evaluator:
    """Invokes a callable or a named object method with as many args as it takes.

    Callables receive the object first, followed by the extra arguments.
    Named methods are looked up on the object and receive only the extra
    arguments; a named attribute that is not callable, such as a property, is
    returned as it is. Arity is resolved once: at construction for callables,
    and once per host class for named methods.
    """

    def __init__(self, method: MethodRef) -> None:
        if not isinstance(method, str) and not callable(method):
            raise TypeError(f"Methods must be a name or a callable, got {method!r}")
        self.method = method
        self._arity: Optional[Tuple[int, bool]] = None
        self._named_arity: Dict[type, Tuple[int, bool]] = {}
        if not isinstance(method, str):
            self._arity = _signature_arity(method)

    @property
    def is_generator(self) -> bool:
        """Whether calling a callable method produces a generator."""
        return not isinstance(self.method, str) and inspect.isgeneratorfunction(self.method)

    def __call__(self, obj: Any, *args: Any) -> Any:
        if isinstance(self.method, str):
            bound = getattr(obj, self.method)
            if not callable(bound):
                return bound
            arity = self._named_arity.get(type(obj))
            if arity is None:
                arity = self._named_arity[type(obj)] = _signature_arity(bound)
            count, variadic = arity
            return bound(*_limit(args, count, variadic))

        count, variadic = self._arity
        if count == 0 and not variadic:
            return self.method()
        return self.method(*_limit((obj,) + args, count, variadic))

    def __repr__(self) -> str:
        name = self.method if isinstance(self.method, str) else getattr(self.method, "__name__", repr(self.method))
        return f"<Evaluator {name}>"


def evaluate_method(obj: Any, method: Union[MethodRef, Evaluator], *args: Any) -> Any:
    """Evaluate a method reference against an object."""
    evaluator = method if isinstance(method, Evaluator) else Evaluator(method)
    return evaluator(obj, *args)


def is_deferred(value: Any) -> bool:
    """Whether a state value is a computation rather than a literal."""
    return callable(value) and not isinstance(value, type)
