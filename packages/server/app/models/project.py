"""Project model."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import JSONType, TimestampMixin, UUIDMixin


class Project(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "projects"

    organization_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    description: Optional[str] = None
    status: str = Field(default="draft", nullable=False)  # draft | active | archived | deleted
    owner_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    settings: dict = Field(default_factory=dict, sa_type=JSONType, nullable=False)
