from datetime import datetime, timezone
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator


class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


# Higher rank = more privilege
ROLE_RANK: dict["Role", int] = {
    Role.OWNER: 3,
    Role.ADMIN: 2,
    Role.MEMBER: 1,
    Role.VIEWER: 0,
}


def rank(role: Role | str) -> int:
    """Numeric privilege level of a role. Raises ValueError for unknown roles."""
    return ROLE_RANK[Role(role)]


def role_at_least(role: Role | str, min_role: Role | str) -> bool:
    return rank(role) >= rank(min_role)


class ProjectStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


class OAuthProvider(str, Enum):
    GOOGLE = "google"
    GITHUB = "github"


def as_utc(value: datetime) -> datetime:
    """Stored timestamps are UTC; naive values read back from the store get the zone attached."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]
