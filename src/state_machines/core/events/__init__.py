"""Events and their branches."""

from state_machines.core.events.branch import Branch
from state_machines.core.events.event import Event
from state_machines.core.events.event_collection import EventCollection

__all__ = [
    "Branch",
    "Event",
    "EventCollection"
]
