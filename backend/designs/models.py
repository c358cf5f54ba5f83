from __future__ import annotations
from typing import Any, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, model_validator
import uuid


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Component(BaseModel):
    id: int
    type: str  # transistor, resistor, capacitor, inductor, diode; others use the default model
    name: str = ""
    properties: dict[str, Any] = Field(default_factory=dict)


class Connection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: int = Field(..., alias="from")
    to: int
    signal: str = ""


class DesignMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: str = "1.0"
    author: str = "VelocityChip User"
    description: str = ""


class Design(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "Untitled Design"
    components: list[Component] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)
    created: datetime = Field(default_factory=_now)
    modified: datetime = Field(default_factory=_now)
    metadata: DesignMetadata = Field(default_factory=DesignMetadata)

    @model_validator(mode="after")
    def _unique_component_ids(self) -> "Design":
        seen = set()
        for comp in self.components:
            if comp.id in seen:
                raise ValueError(f"Duplicate component id {comp.id}")
            seen.add(comp.id)
        return self

    def to_engine(self) -> dict:
        """Plain dict form consumed by the simulation engine."""
        return self.model_dump(mode="json", by_alias=True)


class CreateDesignRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    components: list[Component] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)
    metadata: Optional[dict[str, Any]] = None


class DesignSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    created: datetime
    modified: datetime
    component_count: int = Field(..., alias="componentCount")
