"""Atomic commit of several transitions on one object."""

from contextlib import nullcontext
from typing import Any, Dict, Iterator, List, Optional, Set

from loguru import logger

from state_machines.core.exceptions import InvalidTransitionCollectionError


class TransitionCollection:
    """Ordered transitions that commit together or not at all.

    Every transition runs its before phase, in collection order, before any
    attribute is written. Writes are then applied together and each distinct
    action runs once. A halt, a falsy action result or an action error rolls
    every write back and runs the failure callbacks of every transition.
    """

    def __init__(
        self,
        transitions: Optional[List[Any]] = None,
        *,
        skip_actions: bool = False,
        skip_after: bool = False,
        skip_persist: bool = False,
        suppress_errors: bool = False,
        use_transactions: bool = True
    ) -> None:
        """Initialize collection.

        Args:
            transitions: Transitions to commit; a None entry marks a
                transition that could not be resolved
            skip_actions: Do not invoke actions
            skip_after: Leave after callbacks (and the rest of around
                callbacks) for a later ``run_callbacks(before=False)``
            skip_persist: Do not write attributes, for dry validation
            suppress_errors: Turn action errors into a False result
            use_transactions: Wrap the commit in the machine's transaction

        Raises:
            InvalidTransitionCollectionError: If the transitions target
                different objects or repeat a machine attribute
        """
        transitions = list(transitions or [])
        self.valid = all(transition is not None for transition in transitions)
        self.transitions: List[Any] = [transition for transition in transitions if transition is not None]
        self.skip_actions = skip_actions
        self.skip_after = skip_after
        self.skip_persist = skip_persist
        self.suppress_errors = suppress_errors
        self.use_transactions = use_transactions
        self.actions_run: Set[str] = set()
        self.results: Dict[str, Any] = {}

        if len({id(transition.object) for transition in self.transitions}) > 1:
            raise InvalidTransitionCollectionError(
                "Cannot perform multiple transitions in parallel for different objects",
                {"objects": [repr(transition.object) for transition in self.transitions]}
            )
        attributes = [transition.attribute for transition in self.transitions]
        if len(set(attributes)) != len(attributes):
            raise InvalidTransitionCollectionError(
                "Cannot perform multiple transitions in parallel for the same state machine attribute",
                {"attributes": attributes}
            )

    def __len__(self) -> int:
        return len(self.transitions)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.transitions)

    def __getitem__(self, index: int) -> Any:
        return self.transitions[index]

    @property
    def object(self) -> Any:
        return self.transitions[0].object if self.transitions else None

    def perform(self, *args: Any) -> bool:
        """Commit every transition.

        Args:
            *args: Replace each transition's ``args`` when given

        Returns:
            Whether every transition committed

        Raises:
            Exception: The action's own error, unchanged, after rollback
                unless ``suppress_errors`` is set
        """
        if not self.valid:
            return False
        if not self.transitions:
            return True

        for transition in self.transitions:
            transition.close_arounds()
            transition.reset()
            if args:
                transition.args = list(args)
        self.actions_run = set()
        self.results = {}

        with self._transaction() as transaction:
            success = self._run()
            if not success and transaction is not None:
                transaction.fail()
            return success

    def _transaction(self) -> Any:
        if not self.use_transactions:
            return nullcontext()
        first = self.transitions[0]
        return first.machine.transaction(first.object)

    def _run(self) -> bool:
        try:
            halted = next((transition for transition in self.transitions if not transition.before()), None)
        except BaseException:
            for transition in self.transitions:
                transition.close_arounds()
            raise
        if halted is not None:
            logger.debug(f"Before phase halted by {halted!r}")
            self._abort()
            return False

        if not self.skip_persist:
            for transition in self.transitions:
                transition.persist()

        success = True
        if not self.skip_actions:
            try:
                success = self._run_actions()
            except Exception as e:
                logger.warning(f"Action failed for {type(self.object).__name__}, rolling back: {e}")
                self._abort()
                if self.suppress_errors:
                    return False
                raise
            if not success:
                logger.warning(f"Action returned a falsy result for {type(self.object).__name__}, rolling back")
                self._abort()
                return False

        for transition in self.transitions:
            transition.success = True
            transition.result = self.results.get(transition.action, True)
            logger.info(
                f"{type(transition.object).__name__}.{transition.attribute}: "
                f"{transition.from_name!r} => {transition.to_name!r} via {transition.event!r}"
            )

        self._finish()
        return True

    def _run_actions(self) -> bool:
        for transition in self.transitions:
            action = transition.action
            if action is None or action in self.actions_run:
                continue
            self.actions_run.add(action)
            self.results[action] = transition.machine.run_action(transition.object, *transition.args)
        return all(self.results.values())

    def _finish(self) -> None:
        if self.skip_after:
            for transition in self.transitions:
                transition.pause()
            return

        completed = {id(transition): transition.complete_arounds() for transition in reversed(self.transitions)}
        for transition in self.transitions:
            if completed[id(transition)]:
                transition.after()

    def _abort(self) -> None:
        for transition in self.transitions:
            transition.close_arounds()
            transition.rollback()
            transition.success = False
        for transition in self.transitions:
            transition.after()

    def __repr__(self) -> str:
        return f"<TransitionCollection transitions={self.transitions!r}>"
