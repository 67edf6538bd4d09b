"""Guarded from/to rule shared by events and callbacks."""

from typing import Any, Dict, Iterable, List, Optional, Sequence

from state_machines.core.eval_helpers import Evaluator
from state_machines.core.exceptions import InvalidTransitionRequirements
from state_machines.core.matchers import ALL, BlacklistMatcher, Matcher, build_matcher
from state_machines.core.states.state import NOT_PROVIDED


def as_list(value: Any) -> List[Any]:
    """Normalize an optional single value or sequence into a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def assert_valid_keys(options: Dict[str, Any], *valid_keys: str) -> None:
    """Reject requirement sets with keys outside ``valid_keys``.

    Raises:
        InvalidTransitionRequirements: If an unknown key is present
    """
    invalid = [key for key in options if key not in valid_keys]
    if invalid:
        raise InvalidTransitionRequirements(
            f"Unknown key: {invalid[0]!r}. Valid keys are: {', '.join(repr(key) for key in valid_keys)}",
            {"invalid": invalid, "valid": list(valid_keys)}
        )


def _requirement(whitelist: Any, blacklist: Any, whitelist_name: str, blacklist_name: str) -> Matcher:
    if whitelist is not NOT_PROVIDED and blacklist is not NOT_PROVIDED:
        raise InvalidTransitionRequirements(
            f"Conflicting keys: {whitelist_name}, {blacklist_name}",
            {"keys": [whitelist_name, blacklist_name]}
        )
    if whitelist is not NOT_PROVIDED:
        return build_matcher(whitelist)
    if blacklist is not NOT_PROVIDED:
        if isinstance(blacklist, Matcher):
            raise InvalidTransitionRequirements(
                f"{blacklist_name} cannot use matchers; use {whitelist_name} instead",
                {"key": blacklist_name}
            )
        return BlacklistMatcher(blacklist)
    return ALL


class Branch:
    """One guarded set of from/to requirements.

    Requirements are either explicit (``from_``, ``to``, ``except_from``,
    ``except_to``) or an implicit mapping of from-states to to-states such as
    ``{ALL - "idling": "parked", "idling": SAME}``. The guard is the
    conjunction of every ``if_`` predicate and the negation of every
    ``unless`` predicate.
    """

    def __init__(
        self,
        requirements: Optional[Dict[Any, Any]] = None,
        *,
        from_: Any = NOT_PROVIDED,
        to: Any = NOT_PROVIDED,
        except_from: Any = NOT_PROVIDED,
        except_to: Any = NOT_PROVIDED,
        on: Any = NOT_PROVIDED,
        except_on: Any = NOT_PROVIDED,
        if_: Any = None,
        unless: Any = None
    ) -> None:
        self.if_condition: List[Evaluator] = [Evaluator(condition) for condition in as_list(if_)]
        self.unless_condition: List[Evaluator] = [Evaluator(condition) for condition in as_list(unless)]
        self.event_requirement = _requirement(on, except_on, "on", "except_on")

        explicit = any(value is not NOT_PROVIDED for value in (from_, to, except_from, except_to))
        if requirements and explicit:
            raise InvalidTransitionRequirements(
                "Cannot mix a from/to mapping with from_, to, except_from or except_to",
                {"requirements": requirements}
            )

        if requirements:
            self.state_requirements = [
                {"from": build_matcher(from_state), "to": build_matcher(to_state)}
                for from_state, to_state in requirements.items()
            ]
        else:
            self.state_requirements = [{
                "from": _requirement(from_, except_from, "from_", "except_from"),
                "to": _requirement(to, except_to, "to", "except_to"),
            }]

        self.known_states: List[Any] = []
        for state_requirement in self.state_requirements:
            for option in ("from", "to"):
                for value in state_requirement[option].values:
                    if value not in self.known_states:
                        self.known_states.append(value)

    def matches(self, obj: Any, query: Optional[Dict[str, Any]] = None) -> bool:
        return self.match(obj, query) is not None

    def match(
        self,
        obj: Any,
        query: Optional[Dict[str, Any]] = None,
        event_args: Sequence[Any] = ()
    ) -> Optional[Dict[str, Matcher]]:
        """Match a query of states and event against this branch.

        Args:
            obj: Object the guard predicates run against
            query: Any of ``from``, ``to``, ``on`` and ``guard`` (False skips
                the predicates)
            event_args: Arguments forwarded to predicates that accept them

        Returns:
            The matching ``from``/``to``/``on`` matchers, or None
        """
        query = query or {}
        assert_valid_keys(query, "from", "to", "on", "guard")
        match = self._match_query(query)
        if match is not None and self._matches_conditions(obj, query, event_args):
            return match
        return None

    def _match_query(self, query: Dict[str, Any]) -> Optional[Dict[str, Matcher]]:
        if not self._matches_requirement(query, "on", self.event_requirement):
            return None

        for state_requirement in self.state_requirements:
            if all(self._matches_requirement(query, option, state_requirement[option])
                   for option in ("from", "to")):
                return {**state_requirement, "on": self.event_requirement}
        return None

    @staticmethod
    def _matches_requirement(query: Dict[str, Any], option: str, requirement: Matcher) -> bool:
        return option not in query or requirement.matches(query[option], query)

    def _matches_conditions(self, obj: Any, query: Dict[str, Any], event_args: Iterable[Any]) -> bool:
        if query.get("guard") is False:
            return True
        return all(condition(obj, *event_args) for condition in self.if_condition) and \
            not any(condition(obj, *event_args) for condition in self.unless_condition)

    def __repr__(self) -> str:
        requirements = ", ".join(
            f"{requirement['from'].description()} => {requirement['to'].description()}"
            for requirement in self.state_requirements
        )
        return f"<Branch {requirements}>"

