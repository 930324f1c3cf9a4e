from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

class UserContext(BaseModel):
    user_id: str = Field(..., description="Cognito subject of the signed-in user")
    email: Optional[str] = None
    groups: List[str] = Field(default_factory=list)
    username: Optional[str] = None

    class Config:
        frozen = True

class RequestMetadata(BaseModel):
    user_agent: Optional[str] = None
    ip_address: str = "unknown"

    class Config:
        frozen = True

class AuthTokens(BaseModel):
    access_token: Optional[str] = None
    id_token: Optional[str] = None

    class Config:
        frozen = True

class AuthSession(BaseModel):
    tokens: Optional[AuthTokens] = None
    user_attributes: Dict[str, str] = Field(default_factory=dict)

    class Config:
        frozen = True

class UserProfile(BaseModel):
    user_id: str
    email: Optional[str] = None
    username: Optional[str] = None
    groups: List[str] = Field(default_factory=list)
    is_admin: bool = False

    class Config:
        alias_generator = to_camel
        populate_by_name = True
