"""
Schemas for location admin grants
"""
from pydantic import BaseModel, EmailStr
from typing import Optional


class GrantLocationAdminRequest(BaseModel):
    user_id: str
    user_email: EmailStr
    user_username: str
    role: str = "staff"
    granted_by_username: Optional[str] = None
