"""Project permission schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..models import ProjectRole


class PermissionCreate(BaseModel):
    email: str = Field(..., description="Email of an existing account")
    role: ProjectRole = ProjectRole.VIEWER

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    model_config = {
        "json_schema_extra": {
            "examples": [{"email": "bob@example.com", "role": "editor"}]
        }
    }


class PermissionUpdate(BaseModel):
    role: ProjectRole


class PermissionResponse(BaseModel):
    project_id: str
    user_id: str
    role: ProjectRole
    email: Optional[str] = None
    display_name: Optional[str] = None
    granted_by: Optional[str] = None
    created_at: Optional[datetime] = None


class MyRoleResponse(BaseModel):
    project_id: str
    role: Optional[ProjectRole] = None
