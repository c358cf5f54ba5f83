"""WebSocket message models for streaming simulation."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from backend import config
from engine.errors import MalformedRequestError


class SimulationCommand(str, Enum):
    START = "start_simulation"
    STOP = "stop_simulation"
    UPDATE = "update_component"


class SimulationConfig(BaseModel):
    """Streaming parameters. Accepts the legacy updateRate/duration keys."""
    model_config = ConfigDict(populate_by_name=True)

    tick_interval_ms: float = Field(
        config.DEFAULT_TICK_INTERVAL_MS,
        ge=config.MIN_TICK_INTERVAL_MS,
        validation_alias=AliasChoices("tickIntervalMs", "updateRate", "tick_interval_ms"),
        serialization_alias="tickIntervalMs",
    )
    duration_ms: float = Field(
        config.DEFAULT_DURATION_MS,
        gt=0,
        le=config.MAX_DURATION_MS,
        validation_alias=AliasChoices("durationMs", "duration", "duration_ms"),
        serialization_alias="durationMs",
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class StartSimulationMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    design_id: str = Field(..., alias="designId", min_length=1)
    config: Optional[SimulationConfig] = None


class StopSimulationMessage(BaseModel):
    pass


class UpdateComponentMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    component_id: Union[int, str] = Field(..., alias="componentId")
    properties: dict[str, Any]


_MESSAGE_MODELS = {
    SimulationCommand.START: StartSimulationMessage,
    SimulationCommand.STOP: StopSimulationMessage,
    SimulationCommand.UPDATE: UpdateComponentMessage,
}


def parse_inbound(raw: str) -> tuple[SimulationCommand, BaseModel]:
    """
    Decode one inbound WebSocket text frame.

    Raises:
        MalformedRequestError: invalid JSON, unknown type, or failed validation.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        raise MalformedRequestError("Invalid JSON")
    if not isinstance(data, dict):
        raise MalformedRequestError("Message must be a JSON object")

    try:
        command = SimulationCommand(data.get("type"))
    except ValueError:
        raise MalformedRequestError(f"Unknown message type: {data.get('type')!r}")

    body = {k: v for k, v in data.items() if k != "type"}
    try:
        message = _MESSAGE_MODELS[command].model_validate(body)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'message'}: {err['msg']}"
            for err in e.errors()
        )
        raise MalformedRequestError(f"Invalid {command.value} message: {errors}")
    return command, message


# --- Outbound events ---

def started_event(design_id: str, sim_config: SimulationConfig) -> dict:
    return {"type": "simulation_started", "designId": design_id, "config": sim_config.to_wire()}


def data_event(snapshot: dict) -> dict:
    return {"type": "simulation_data", "data": snapshot}


def stopped_event() -> dict:
    return {"type": "simulation_stopped"}


def updated_event(component_id, properties: dict) -> dict:
    return {"type": "component_updated", "componentId": component_id, "properties": properties}


def error_event(message: str) -> dict:
    return {"error": message}
