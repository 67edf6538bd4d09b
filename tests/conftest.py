"""Root test configuration and shared fixtures."""

import sys

import pytest
from loguru import logger

from state_machines import Machine, machines_for


class Vehicle:
    """Host object with two state attributes committed by one save."""

    def __init__(self, seatbelt: bool = True):
        """Initialize vehicle."""
        self.state = None
        self.alarm_state = None
        self.errors = {}
        self.calls = []
        self.saves = 0
        self.save_result = True
        self.save_error = None
        self.seatbelt = seatbelt

    def save(self):
        """Commit the vehicle, failing when configured to."""
        self.saves += 1
        self.calls.append("save")
        if self.save_error is not None:
            raise self.save_error
        return self.save_result

    def seatbelt_on(self):
        return self.seatbelt

    def record_ignition(self):
        self.calls.append("ignition")

    def speed(self):
        return 0


@pytest.fixture
def vehicle_class():
    """Fresh Vehicle subclass so machines never leak between tests."""
    return type("Vehicle", (Vehicle,), {})


@pytest.fixture
def machine(vehicle_class) -> Machine:
    """Create the main vehicle state machine.

    parked --ignite--> idling --shift_up--> first_gear
    idling/first_gear --park--> parked, first_gear --idle--> idling
    """
    machine = Machine(vehicle_class, initial="parked", action="save")
    machine.state("parked", "idling", "first_gear")
    machine.event("ignite").transition(from_="parked", to="idling")
    machine.event("park").transition(from_=["idling", "first_gear"], to="parked")
    machine.event("shift_up").transition(from_="idling", to="first_gear")
    machine.event("idle").transition(from_="first_gear", to="idling")
    return machine


@pytest.fixture
def alarm_machine(vehicle_class) -> Machine:
    """Create the namespaced alarm machine sharing the save action."""
    machine = Machine(vehicle_class, "alarm_state", namespace="alarm", initial="active", action="save")
    machine.state("active", value=1)
    machine.state("off", value=0)
    machine.event("enable").transition(to="active")
    machine.event("disable").transition(to="off")
    return machine


@pytest.fixture
def vehicle(vehicle_class, machine, alarm_machine):
    """Create a parked vehicle with its alarm active."""
    vehicle = vehicle_class()
    machines_for(vehicle_class).initialize_states(vehicle)
    return vehicle


@pytest.fixture
def log_messages():
    """Capture engine log messages, restoring the library default afterwards."""
    messages = []
    logger.enable("state_machines")
    sink_id = logger.add(messages.append, level="DEBUG", format="{level} {message}")
    yield messages
    logger.remove(sink_id)
    logger.disable("state_machines")


@pytest.fixture
def restore_logger():
    """Put loguru back to its default handler after a test reconfigures it."""
    yield
    logger.remove()
    logger.add(sys.stderr)
    logger.disable("state_machines")
