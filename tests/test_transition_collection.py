"""Test atomic commits of several transitions."""

from contextlib import contextmanager

import pytest

from state_machines import InvalidTransitionCollectionError, Transaction, Transition, TransitionCollection


@pytest.fixture
def transitions(machine, alarm_machine, vehicle):
    """Create an ignite transition and an alarm disable transition."""
    return [
        machine.transition_for(vehicle, "ignite"),
        alarm_machine.transition_for(vehicle, "disable"),
    ]


def record(name):
    """Callback appending a marker to the vehicle's calls."""
    return lambda vehicle, transition: vehicle.calls.append(f"{name}:{transition.attribute}")


class TestCollectionValidation:
    """Test which transitions can be combined."""

    def test_empty_collection(self):
        """Test an empty collection succeeds without doing anything."""
        assert TransitionCollection([]).perform()
        assert TransitionCollection().perform()

    def test_unresolved_transition(self, transitions, vehicle):
        """Test a missing transition fails the whole collection."""
        collection = TransitionCollection([transitions[0], None])
        assert not collection.valid
        assert not collection.perform()
        assert vehicle.state == "parked"
        assert vehicle.saves == 0

    def test_rejects_different_objects(self, machine, vehicle, vehicle_class):
        """Test transitions must share one object."""
        other = vehicle_class()
        other.state = "parked"
        with pytest.raises(InvalidTransitionCollectionError):
            TransitionCollection([
                Transition(vehicle, machine, "ignite", "parked", "idling"),
                Transition(other, machine, "ignite", "parked", "idling"),
            ])

    def test_rejects_repeated_attribute(self, machine, vehicle):
        """Test each attribute may appear once."""
        with pytest.raises(InvalidTransitionCollectionError):
            TransitionCollection([
                Transition(vehicle, machine, "ignite", "parked", "idling"),
                Transition(vehicle, machine, "shift_up", "idling", "first_gear"),
            ])

    def test_sequence_protocol(self, transitions):
        """Test the collection behaves like its transitions."""
        collection = TransitionCollection(transitions)
        assert len(collection) == 2
        assert list(collection) == transitions
        assert collection[1] is transitions[1]


class TestCollectionPerform:
    """Test committing several attributes together."""

    def test_commits_all(self, transitions, vehicle):
        """Test every attribute is written and the shared action runs once."""
        collection = TransitionCollection(transitions)
        assert collection.perform()
        assert vehicle.state == "idling"
        assert vehicle.alarm_state == 0
        assert vehicle.saves == 1
        assert collection.actions_run == {"save"}
        assert all(transition.result is True for transition in transitions)

    def test_action_error_rolls_back_all(self, machine, alarm_machine, transitions, vehicle):
        """Test an action error reverts every attribute and is re-raised."""
        machine.after_transition(record("after"))
        machine.after_failure(record("failure"))
        alarm_machine.after_failure(record("failure"))
        vehicle.save_error = RuntimeError("disk full")

        with pytest.raises(RuntimeError, match="disk full"):
            TransitionCollection(transitions).perform()
        assert vehicle.state == "parked"
        assert vehicle.alarm_state == 1
        assert vehicle.saves == 1
        assert vehicle.calls == ["save", "failure:state", "failure:alarm_state"]

    def test_suppress_errors(self, transitions, vehicle):
        """Test suppressed action errors become a False result."""
        vehicle.save_error = RuntimeError("disk full")
        assert not TransitionCollection(transitions, suppress_errors=True).perform()
        assert vehicle.state == "parked"
        assert vehicle.alarm_state == 1

    def test_falsy_action_rolls_back_all(self, machine, transitions, vehicle):
        """Test a falsy action result reverts every attribute."""
        machine.after_transition(record("after"))
        vehicle.save_result = False
        assert not TransitionCollection(transitions).perform()
        assert vehicle.state == "parked"
        assert vehicle.alarm_state == 1
        assert "after:state" not in vehicle.calls

    def test_halt_aborts_all(self, machine, alarm_machine, transitions, vehicle):
        """Test a halt in any before phase aborts every transition."""
        alarm_machine.before_transition(lambda: False)
        machine.after_failure(record("failure"))
        alarm_machine.after_failure(record("failure"))

        assert not TransitionCollection(transitions).perform()
        assert vehicle.state == "parked"
        assert vehicle.alarm_state == 1
        assert vehicle.saves == 0
        assert vehicle.calls == ["failure:state", "failure:alarm_state"]

    def test_phase_order(self, machine, alarm_machine, transitions, vehicle):
        """Test every before phase runs before any write and after phases follow the action."""
        writes = []
        machine.before_transition(lambda vehicle: writes.append(vehicle.alarm_state))
        for state_machine in (machine, alarm_machine):
            state_machine.before_transition(record("before"))
            state_machine.after_transition(record("after"))

        assert TransitionCollection(transitions).perform()
        assert writes == [1]
        assert vehicle.calls == [
            "before:state",
            "before:alarm_state",
            "save",
            "after:state",
            "after:alarm_state",
        ]

    def test_skip_actions(self, transitions, vehicle):
        """Test actions can be skipped."""
        assert TransitionCollection(transitions, skip_actions=True).perform()
        assert vehicle.state == "idling"
        assert vehicle.saves == 0

    def test_skip_persist(self, transitions, vehicle):
        """Test writes can be skipped for dry validation."""
        assert TransitionCollection(transitions, skip_persist=True, skip_actions=True).perform()
        assert vehicle.state == "parked"
        assert vehicle.alarm_state == 1

    def test_skip_after(self, machine, transitions, vehicle):
        """Test after callbacks can be deferred."""
        machine.after_transition(record("after"))
        assert TransitionCollection(transitions, skip_after=True).perform()
        assert vehicle.calls == ["save"]

        transitions[0].run_callbacks(before=False)
        assert vehicle.calls == ["save", "after:state"]

    def test_arguments_replace_transition_args(self, transitions):
        """Test perform arguments are given to every transition."""
        TransitionCollection(transitions).perform("fast")
        assert [transition.args for transition in transitions] == [["fast"], ["fast"]]

    def test_uses_transaction(self, machine, transitions, vehicle, mocker):
        """Test the commit runs inside the first machine's transaction."""
        transaction = mocker.patch.object(machine, "transaction")
        assert TransitionCollection(transitions).perform()
        transaction.assert_called_once_with(vehicle)
        transaction.return_value.__enter__.assert_called_once()

    def test_without_transaction(self, machine, transitions, mocker):
        """Test transactions can be turned off."""
        transaction = mocker.patch.object(machine, "transaction")
        assert TransitionCollection(transitions, use_transactions=False).perform()
        transaction.assert_not_called()

    def test_transaction_marks_failed_commit(self, machine, transitions, vehicle, mocker):
        """Test a commit refused by its action marks the transaction failed."""
        handles = []

        @contextmanager
        def transaction(obj):
            handle = Transaction(obj)
            handles.append(handle)
            yield handle

        mocker.patch.object(machine, "transaction", transaction)
        vehicle.save_result = False
        assert not TransitionCollection(transitions).perform()
        assert handles[0].failed

        vehicle.save_result = True
        assert TransitionCollection(transitions).perform()
        assert not handles[1].failed

    def test_transaction_marks_halted_commit(self, machine, transitions, vehicle, mocker):
        """Test a halted before phase marks the transaction failed."""
        handles = []

        @contextmanager
        def transaction(obj):
            handle = Transaction(obj)
            handles.append(handle)
            yield handle

        mocker.patch.object(machine, "transaction", transaction)
        machine.before_transition(lambda: False)
        assert not TransitionCollection(transitions).perform()
        assert handles[0].failed

    def test_perform_again(self, machine, vehicle):
        """Test a transition performed twice runs its whole chain twice."""
        machine.before_transition(record("before"))
        machine.after_transition(record("after"))
        transition = machine.transition_for(vehicle, "ignite")
        assert transition.perform()
        assert vehicle.state == "idling"

        vehicle.state = "parked"
        assert transition.perform()
        assert vehicle.state == "idling"
        assert vehicle.saves == 2
        assert vehicle.calls == [
            "before:state", "save", "after:state",
            "before:state", "save", "after:state",
        ]

    def test_before_error_closes_started_arounds(self, machine, alarm_machine, transitions, vehicle):
        """Test an error in a later before phase closes around callbacks already started."""
        log = []

        def around(vehicle, transition):
            log.append("start")
            try:
                yield
            finally:
                log.append("closed")

        machine.around_transition(around)
        alarm_machine.before_transition(lambda: 1 / 0)

        with pytest.raises(ZeroDivisionError):
            TransitionCollection(transitions).perform()
        assert log == ["start", "closed"]
        assert vehicle.state == "parked"
        assert vehicle.saves == 0

    def test_repr(self, transitions):
        """Test repr lists transitions."""
        assert repr(TransitionCollection(transitions)).startswith("<TransitionCollection transitions=[<Transition")
