"""Pydantic models for VelocityChip API requests and responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from backend import config


# --- Batch simulation ---

class BatchSimulationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    steps: int = Field(config.DEFAULT_BATCH_STEPS, ge=0, le=config.MAX_BATCH_STEPS, description="Number of snapshots")
    time_step: float = Field(config.DEFAULT_BATCH_TIME_STEP, gt=0, alias="timeStep", description="Simulated seconds per step")


class BatchSimulationMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    steps: int
    time_step: float = Field(..., alias="timeStep")
    duration: float = Field(..., description="steps * timeStep, in simulated seconds")
    timestamp: str


class BatchSimulationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    design_id: str = Field(..., alias="designId")
    simulation_results: list[dict[str, Any]] = Field(..., alias="simulationResults")
    metadata: BatchSimulationMetadata


# --- Health ---

class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    service: str
    timestamp: str
    uptime: float
    active_simulations: int = Field(..., alias="activeSimulations")
    connected_clients: int = Field(..., alias="connectedClients")
    total_designs: int = Field(..., alias="totalDesigns")
