"""User profile model.

Rows mirror identity-provider accounts; ``id`` is the provider subject. The
profile is created outside this application on first sign-in.
"""

from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONType, TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: str = Field(unique=True, index=True, nullable=False)
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    # "metadata" is reserved on declarative classes
    profile_metadata: dict = Field(
        default_factory=dict,
        sa_column=sa.Column("metadata", JSONType, nullable=False),
    )
