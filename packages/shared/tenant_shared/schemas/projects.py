from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from uuid import UUID
from .common import ProjectStatus, UTCDateTime


class ProjectBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    settings: Dict[str, object] = Field(default_factory=dict)


class ProjectCreate(ProjectBase):
    status: ProjectStatus = ProjectStatus.DRAFT


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    settings: Optional[Dict[str, object]] = None


class ProjectRead(ProjectBase):
    id: UUID
    organization_id: UUID
    owner_id: UUID
    status: ProjectStatus
    created_at: UTCDateTime
    updated_at: UTCDateTime

    model_config = {"from_attributes": True}


class ProjectListResponse(BaseModel):
    data: List[ProjectRead]


# Legal status changes, keyed by current status. None means no rules are
# enforced; deployments that need a lifecycle plug their graph in here.
StatusTransitions = Dict[ProjectStatus, List[ProjectStatus]]

PROJECT_STATUS_TRANSITIONS: Optional[StatusTransitions] = None


def validate_status_transition(
    current: ProjectStatus,
    target: ProjectStatus,
    transitions: Optional[StatusTransitions] = None,
) -> tuple[bool, str]:
    """Validate a project status change against a transition graph.

    Rules:
    - No graph: every change is allowed.
    - Staying in the same status is always allowed.
    - Otherwise the target must be listed for the current status.

    Returns (is_valid, error_message).
    """
    if transitions is None or current == target:
        return True, ""

    allowed = transitions.get(current, [])
    if target in allowed:
        return True, ""

    return False, (
        f"Cannot transition project from {current.value} to {target.value}"
    )
