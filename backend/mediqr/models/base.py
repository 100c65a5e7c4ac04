from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import Column, DateTime, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


def create_db_engine(database_url: str) -> Engine:
    """Build an engine; in-memory SQLite shares one connection so data survives."""
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


class CamelModel(BaseModel):
    """Domain model persisted with camelCase keys (``createdAt``, ``patientId``)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


def blank_to_none(value):
    """Form fields left empty arrive as "" and mean "not given"."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def as_local(value: datetime) -> datetime:
    """Timestamps stored without an offset are read as local time."""
    if value is None or value.tzinfo is not None:
        return value
    return value.astimezone()
