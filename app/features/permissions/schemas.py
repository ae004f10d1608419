"""
Pydantic schemas for permission responses.
"""
from pydantic import BaseModel


class UserPermissionResponse(BaseModel):
    source: str
    target_id: str
    scope: str
    action: str

    model_config = {"from_attributes": True}
