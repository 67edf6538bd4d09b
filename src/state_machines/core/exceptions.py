"""Core exceptions module."""


class StateMachineError(Exception):
    """Base exception for the state machine engine."""

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context."""
        super().__init__(message)
        self.message = message
        self.context = context if context is not None else {}


class ConfigurationError(StateMachineError):
    """Machine definition related errors."""


class InvalidTransitionRequirements(ConfigurationError):
    """Branch declarations or requirement sets that cannot be used."""


class DuplicateNodeError(ConfigurationError):
    """A state or event collides with one already in a collection."""


class QualifiedNameConflictError(ConfigurationError):
    """Qualified name already defined by another machine on the owner class."""

    def __init__(self, message: str, owner: str, context: dict | None = None):
        """Initialize with the name of the machine owning the name."""
        super().__init__(message, context)
        self.owner = owner


class UnknownNodeError(StateMachineError, KeyError):
    """Lookup of a state or event that was never defined."""

    def __str__(self) -> str:
        return self.message


class NoMatchingStateError(StateMachineError):
    """An object's attribute value does not correspond to any state."""

    def __init__(self, message: str, value, context: dict | None = None):
        """Initialize with the unmatched value."""
        super().__init__(message, context)
        self.value = value


class InvalidContextError(StateMachineError):
    """A state-scoped method was called while the object is in another state."""


class InvalidEventError(StateMachineError):
    """An event name is not defined on any machine of the owner class."""

    def __init__(self, message: str, event: str, context: dict | None = None):
        """Initialize with the unknown event name."""
        super().__init__(message, context)
        self.event = event


class InvalidTransitionError(StateMachineError):
    """An event could not transition the object when a result was required."""

    def __init__(
            self,
            message: str,
            event: str,
            from_name,
            context: dict | None = None):
        """Initialize with event and current state."""
        super().__init__(message, context)
        self.event = event
        self.from_name = from_name


class InvalidTransitionCollectionError(StateMachineError):
    """Transitions that cannot be committed together."""


class Halt(Exception):
    """Stops the remaining callbacks of the current phase.

    Raised by the engine when a before callback signals halt, and may be
    raised directly from any callback. Never escapes a transition.
    """
