"""Machine definition models."""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from state_machines.core.matchers import ALL, SAME


Names = Union[str, List[str]]


def _keyword(value: Any, keyword: str, matcher: Any) -> Any:
    return matcher if value == keyword else value


class RequirementDefinition(BaseModel):
    """From/to requirements and guards shared by branches and callbacks."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    from_: Optional[Names] = Field(None, alias="from", description="State(s) to transition from, or 'all'")
    to: Optional[Names] = Field(None, description="State(s) to transition to, or 'same'")
    except_from: Optional[Names] = Field(None, description="State(s) not to transition from")
    except_to: Optional[Names] = Field(None, description="State(s) not to transition to")
    if_: Optional[Names] = Field(None, alias="if", description="Host method(s) that must return true")
    unless: Optional[Names] = Field(None, description="Host method(s) that must return false")

    def to_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``Event.transition`` and the callback helpers."""
        options = {
            name: getattr(self, name)
            for name in ("from_", "to", "except_from", "except_to", "if_", "unless")
            if getattr(self, name) is not None
        }
        if "from_" in options:
            options["from_"] = _keyword(options["from_"], "all", ALL)
        if "to" in options:
            options["to"] = _keyword(options["to"], "same", SAME)
        return options


class BranchDefinition(RequirementDefinition):
    """One guarded from/to rule of an event."""

    @model_validator(mode="after")
    def check_requirements(self) -> "BranchDefinition":
        if all(value is None for value in (self.from_, self.to, self.except_from, self.except_to)):
            raise ValueError("Must specify at least one transition requirement")
        return self


class CallbackDefinition(RequirementDefinition):
    """Host methods run around matching transitions."""
    type: Literal["before", "after", "around", "failure"] = Field(..., description="Callback phase")
    do: Names = Field(..., description="Host method name(s) to run")
    on: Optional[Names] = Field(None, description="Event(s) the callback applies to")
    except_on: Optional[Names] = Field(None, description="Event(s) the callback skips")

    @model_validator(mode="before")
    @classmethod
    def restore_on_key(cls, data: Any) -> Any:
        # YAML 1.1 reads a bare on: key as the boolean True
        if isinstance(data, dict) and True in data:
            data = {("on" if key is True else key): value for key, value in data.items()}
        return data

    def to_options(self) -> Dict[str, Any]:
        options = super().to_options()
        for name in ("on", "except_on"):
            if getattr(self, name) is not None:
                options[name] = getattr(self, name)
        options["do"] = self.do
        return options


class StateDefinition(BaseModel):
    """State definition."""
    name: Optional[str] = Field(..., description="State name")
    value: Any = Field(None, description="Value stored in the attribute; defaults to the name")
    initial: bool = Field(False, description="Whether new objects start in this state")
    human_name: Optional[str] = Field(None, description="Readable name")


class EventDefinition(BaseModel):
    """Event definition."""
    name: str = Field(..., description="Event name")
    human_name: Optional[str] = Field(None, description="Readable name")
    transitions: List[BranchDefinition] = Field(default_factory=list, description="Branches in priority order")


class MachineDefinition(BaseModel):
    """State machine definition."""
    name: str = Field("state", description="Machine name")
    attribute: Optional[str] = Field(None, description="Attribute storing the state; defaults to the name")
    namespace: Optional[str] = Field(None, description="Namespace for state and event names")
    initial: Optional[str] = Field(None, description="Initial state name")
    action: Optional[str] = Field(None, description="Host method committing transitions")
    use_transactions: bool = Field(True, description="Wrap commits in a transaction")
    messages: Dict[str, str] = Field(default_factory=dict, description="Error message overrides")
    states: List[StateDefinition] = Field(default_factory=list, description="States in definition order")
    events: List[EventDefinition] = Field(default_factory=list, description="Events in definition order")
    callbacks: List[CallbackDefinition] = Field(default_factory=list, description="Callbacks in registration order")
