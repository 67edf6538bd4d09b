"""Load state machine definitions from YAML."""

from pathlib import Path
from typing import Any, Union

import yaml
from loguru import logger
from pydantic import ValidationError

from state_machines.core.exceptions import ConfigurationError
from state_machines.core.infrastructure.config.definition_models import MachineDefinition
from state_machines.core.machine import Machine


ROOT_KEY = "state_machine"


def load_definition(path: Union[str, Path]) -> MachineDefinition:
    """Load and validate a machine definition file.

    The file holds a single ``state_machine`` mapping.

    Raises:
        ConfigurationError: If the file is missing, empty, not valid YAML or
            does not describe a machine
    """
    config_file = Path(path)
    try:
        if not config_file.exists():
            raise ConfigurationError(f"Config not found: {config_file}", {"path": str(config_file)})

        with open(config_file, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
            if config_data is None:
                raise ConfigurationError(f"Empty config file: {config_file}", {"path": str(config_file)})

        if not isinstance(config_data, dict) or ROOT_KEY not in config_data:
            raise ConfigurationError(
                f"Missing '{ROOT_KEY}' section in {config_file}",
                {"path": str(config_file)}
            )

        definition = MachineDefinition.model_validate(config_data[ROOT_KEY])
        logger.debug(f"Loaded machine definition {definition.name!r} from {config_file}")
        return definition

    except ConfigurationError as e:
        logger.error(e.message)
        raise
    except yaml.YAMLError as e:
        error_msg = f"Invalid YAML in config {config_file}: {str(e)}"
        logger.error(error_msg)
        raise ConfigurationError(error_msg, {"path": str(config_file)}) from e
    except ValidationError as e:
        error_msg = f"Invalid machine definition in {config_file}: {str(e)}"
        logger.error(error_msg)
        raise ConfigurationError(error_msg, {"path": str(config_file), "errors": e.errors()}) from e


def build_machine(owner_class: type, definition: MachineDefinition, machine_class: Any = Machine) -> Machine:
    """Create a live machine for the owner class from a definition."""
    machine = machine_class(
        owner_class,
        definition.name,
        attribute=definition.attribute,
        namespace=definition.namespace,
        initial=definition.initial,
        action=definition.action,
        use_transactions=definition.use_transactions,
        messages=definition.messages
    )

    for state in definition.states:
        options = {"initial": state.initial, "human_name": state.human_name}
        if "value" in state.model_fields_set:
            options["value"] = state.value
        machine.state(state.name, **options)

    for event_definition in definition.events:
        event = machine.event(event_definition.name, human_name=event_definition.human_name)
        for branch in event_definition.transitions:
            event.transition(**branch.to_options())

    helpers = {
        "before": machine.before_transition,
        "after": machine.after_transition,
        "around": machine.around_transition,
        "failure": machine.after_failure,
    }
    for callback in definition.callbacks:
        helpers[callback.type](**callback.to_options())

    logger.info(
        f"Built machine {machine.name!r} for {owner_class.__name__} with "
        f"{len(machine.states)} states and {len(machine.events)} events"
    )
    return machine


def load_machine(owner_class: type, path: Union[str, Path]) -> Machine:
    """Load a definition file and build its machine for the owner class."""
    return build_machine(owner_class, load_definition(path))
