import asyncio
import json
from datetime import datetime, timezone
from typing import Optional

from backend.designs.models import Connection, Component, Design, DesignMetadata, DesignSummary


class InMemoryDesignStore:
    def __init__(self):
        self._designs: dict[str, Design] = {}
        self._lock = asyncio.Lock()

    async def add_design(self, design: Design) -> Design:
        async with self._lock:
            self._designs[design.id] = design.model_copy(deep=True)
        return design

    async def get_design(self, design_id: str) -> Optional[Design]:
        async with self._lock:
            design = self._designs.get(design_id)
            return design.model_copy(deep=True) if design else None

    async def list_designs(self) -> list[Design]:
        async with self._lock:
            return [d.model_copy(deep=True) for d in self._designs.values()]

    async def list_summaries(self) -> list[DesignSummary]:
        async with self._lock:
            return [_summary(d) for d in self._designs.values()]

    async def count(self) -> int:
        async with self._lock:
            return len(self._designs)


class SQLiteDesignStore:
    """Persistent design store backed by SQLite via SQLAlchemy."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def _to_pydantic(self, row) -> Design:
        """Convert ORM DesignRecord row to Pydantic Design."""
        components = [Component(**c) for c in json.loads(row.components_json or "[]")]
        connections = [Connection(**c) for c in json.loads(row.connections_json or "[]")]
        metadata = json.loads(row.metadata_json) if row.metadata_json else {}
        return Design(
            id=row.id,
            name=row.name,
            components=components,
            connections=connections,
            created=_as_utc(row.created),
            modified=_as_utc(row.modified),
            metadata=DesignMetadata(**metadata),
        )

    async def add_design(self, design: Design) -> Design:
        from backend.models_db import DesignRecord
        db = self._session_factory()
        try:
            row = DesignRecord(
                id=design.id,
                name=design.name,
                components_json=json.dumps([c.model_dump(mode="json") for c in design.components]),
                connections_json=json.dumps([c.model_dump(mode="json", by_alias=True) for c in design.connections]),
                metadata_json=design.metadata.model_dump_json(),
                component_count=len(design.components),
                created=design.created,
                modified=design.modified,
            )
            db.add(row)
            db.commit()
        finally:
            db.close()
        return design

    async def get_design(self, design_id: str) -> Optional[Design]:
        from backend.models_db import DesignRecord
        db = self._session_factory()
        try:
            row = db.query(DesignRecord).filter(DesignRecord.id == design_id).first()
            if not row:
                return None
            return self._to_pydantic(row)
        finally:
            db.close()

    async def list_designs(self) -> list[Design]:
        from backend.models_db import DesignRecord
        db = self._session_factory()
        try:
            rows = db.query(DesignRecord).order_by(DesignRecord.modified.desc()).all()
            return [self._to_pydantic(r) for r in rows]
        finally:
            db.close()

    async def list_summaries(self) -> list[DesignSummary]:
        """Summaries read from the row columns, without decoding component JSON."""
        from backend.models_db import DesignRecord
        db = self._session_factory()
        try:
            rows = db.query(DesignRecord).order_by(DesignRecord.modified.desc()).all()
            return [
                DesignSummary(
                    id=r.id,
                    name=r.name,
                    created=_as_utc(r.created),
                    modified=_as_utc(r.modified),
                    component_count=r.component_count,
                )
                for r in rows
            ]
        finally:
            db.close()

    async def count(self) -> int:
        from backend.models_db import DesignRecord
        db = self._session_factory()
        try:
            return db.query(DesignRecord).count()
        finally:
            db.close()


def _summary(design: Design) -> DesignSummary:
    return DesignSummary(
        id=design.id,
        name=design.name,
        created=design.created,
        modified=design.modified,
        component_count=len(design.components),
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
