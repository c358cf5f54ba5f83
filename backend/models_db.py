"""SQLAlchemy ORM models."""
from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, DateTime, Text
from backend.database import Base


class DesignRecord(Base):
    __tablename__ = "designs"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, default="Untitled Design")
    components_json = Column(Text, nullable=False, default="[]")
    connections_json = Column(Text, nullable=False, default="[]")
    metadata_json = Column(Text, nullable=False, default="{}")
    component_count = Column(Integer, nullable=False, default=0)
    created = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    modified = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
