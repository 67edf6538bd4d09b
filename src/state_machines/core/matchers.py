"""State value matchers used by branches and callbacks.

A matcher answers whether a state name satisfies a requirement:

- ``AllMatcher``: every state (``ALL``)
- ``WhitelistMatcher``: one of an explicit set of states
- ``BlacklistMatcher``: every state except an explicit set (``ALL - "idling"``)
- ``LoopbackMatcher``: the state being transitioned from (``SAME``)
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple


def _as_values(values: Any) -> Tuple[Any, ...]:
    if isinstance(values, (list, tuple, set, frozenset)):
        return tuple(values)
    return (values,)


class Matcher:
    """Base matcher over a fixed list of state names."""

    def __init__(self, values: Any = ()) -> None:
        self._values = _as_values(values)

    @property
    def values(self) -> List[Any]:
        """State names referenced by this matcher."""
        return list(self._values)

    def matches(self, value: Any, context: Optional[Dict[str, Any]] = None) -> bool:
        raise NotImplementedError

    def filter(self, values: Iterable[Any]) -> List[Any]:
        """Select the values this matcher accepts, keeping their order."""
        return [value for value in values if self.matches(value)]

    def description(self) -> str:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self._values == other._values

    def __hash__(self) -> int:
        return hash((type(self), self._values))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.description()}>"


class AllMatcher(Matcher):
    """Matches every state."""

    def __init__(self) -> None:
        super().__init__(())

    def __sub__(self, blacklist: Any) -> "BlacklistMatcher":
        return BlacklistMatcher(blacklist)

    def matches(self, value: Any, context: Optional[Dict[str, Any]] = None) -> bool:
        return True

    def filter(self, values: Iterable[Any]) -> List[Any]:
        return list(values)

    def description(self) -> str:
        return "all"


class WhitelistMatcher(Matcher):
    """Matches only the given states."""

    def matches(self, value: Any, context: Optional[Dict[str, Any]] = None) -> bool:
        return value in self._values

    def description(self) -> str:
        if len(self._values) == 1:
            return repr(self._values[0])
        return repr(list(self._values))


class BlacklistMatcher(Matcher):
    """Matches every state except the given ones."""

    def matches(self, value: Any, context: Optional[Dict[str, Any]] = None) -> bool:
        return value not in self._values

    def description(self) -> str:
        if len(self._values) == 1:
            return f"all - {self._values[0]!r}"
        return f"all - {list(self._values)!r}"


class LoopbackMatcher(Matcher):
    """Matches the state the transition starts from."""

    def __init__(self) -> None:
        super().__init__(())

    def matches(self, value: Any, context: Optional[Dict[str, Any]] = None) -> bool:
        return context is not None and context.get("from") == value

    def description(self) -> str:
        return "same"


ALL = AllMatcher()
SAME = LoopbackMatcher()


def build_matcher(value: Any) -> Matcher:
    """Wrap a raw requirement into a matcher, leaving matchers untouched."""
    if isinstance(value, Matcher):
        return value
    return WhitelistMatcher(value)
