"""
Schemas for the review workflow API
"""
from pydantic import BaseModel
from typing import Optional


class ReviewActionRequest(BaseModel):
    """Review action sent by a reviewer. The action is validated by the workflow."""
    action: str
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    reviewer_id: Optional[str] = None    # falls back to X-Actor-Id
    reviewer_name: Optional[str] = None  # falls back to X-Actor-Name
