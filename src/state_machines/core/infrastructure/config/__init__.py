"""YAML machine definitions."""

from state_machines.core.infrastructure.config.config_loader import (
    build_machine,
    load_definition,
    load_machine
)
from state_machines.core.infrastructure.config.definition_models import (
    BranchDefinition,
    CallbackDefinition,
    EventDefinition,
    MachineDefinition,
    StateDefinition
)

__all__ = [
    # Loading
    "build_machine",
    "load_definition",
    "load_machine",
    # Models
    "BranchDefinition",
    "CallbackDefinition",
    "EventDefinition",
    "MachineDefinition",
    "StateDefinition"
]
