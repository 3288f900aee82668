"""Audit event model (append-only, immutable once written)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlalchemy import event as sa_event
from sqlmodel import Field, SQLModel

from .base import JSONType, utcnow


class ImmutableEventError(RuntimeError):
    """Raised when code tries to update or delete a persisted audit event."""


class Event(SQLModel, table=True):
    __tablename__ = "events"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    organization_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    user_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")  # null = system
    event_type: str = Field(nullable=False, index=True)  # e.g. project.created
    entity_type: str = Field(nullable=False)  # organization | membership | project
    entity_id: Optional[uuid.UUID] = None
    event_metadata: dict = Field(
        default_factory=dict,
        sa_column=sa.Column("metadata", JSONType, nullable=False),
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )


@sa_event.listens_for(Event, "before_update")
def _reject_update(mapper, connection, target: Event) -> None:
    raise ImmutableEventError(f"Audit event {target.id} cannot be updated")


@sa_event.listens_for(Event, "before_delete")
def _reject_delete(mapper, connection, target: Event) -> None:
    raise ImmutableEventError(f"Audit event {target.id} cannot be deleted")
