"""
Schemas for the registration API

Field rules (lengths, email shape, documents) are enforced by
RegistrationService so every entry point reports the same errors.
"""
from pydantic import BaseModel
from typing import Optional, List


class SubmitRegistrationRequest(BaseModel):
    """Payload sent by business owners to register a business"""
    user_id: str
    name: str
    category: str
    address: str
    description: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    tax_id: Optional[str] = None
    document_urls: List[str] = []
    is_multi_user_team: bool = False
    owner_email: str
    owner_username: str
