# SQLModel definitions, imported here so the metadata is populated.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .organization import Organization  # noqa: F401
from .user import User  # noqa: F401
from .membership import Membership  # noqa: F401
from .project import Project  # noqa: F401
from .event import Event, ImmutableEventError  # noqa: F401
