"""Exceptions raised by the simulation engine."""


class SimulationError(Exception):
    """Base class for simulation engine errors."""


class DesignNotFoundError(SimulationError, LookupError):
    """Raised when a design id is not present in the design store."""

    def __init__(self, design_id: str):
        super().__init__(f"Design not found: {design_id}")
        self.design_id = design_id


class ComponentEvaluationError(SimulationError):
    """A single component's model raised or produced a non-finite value."""

    def __init__(self, component_id, reason: str):
        super().__init__(f"Component {component_id} failed to evaluate: {reason}")
        self.component_id = component_id
        self.reason = reason


class SessionStateError(SimulationError):
    """Operation not allowed in the session's current state."""


class MalformedRequestError(SimulationError, ValueError):
    """Inbound message could not be parsed or validated."""
