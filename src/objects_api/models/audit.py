from enum import Enum
from typing import Dict, Any, Optional, List
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

class AuditAction(str, Enum):
    OBJECT_ACCESSED = "OBJECT_ACCESSED"
    OBJECT_CREATED = "OBJECT_CREATED"
    OBJECT_UPDATED = "OBJECT_UPDATED"
    OBJECT_DELETED = "OBJECT_DELETED"
    OBJECT_ACCESS_FAILED = "OBJECT_ACCESS_FAILED"
    OBJECT_ACCESS_ERROR = "OBJECT_ACCESS_ERROR"

class AuditEvent(BaseModel):
    timestamp: str = Field(..., description="ISO-8601 UTC generation time")
    action: str = Field(..., min_length=1, description="e.g., OBJECT_CREATED, OBJECT_ACCESS_FAILED")
    user_id: str = Field(..., min_length=1)
    user_email: Optional[str] = None
    user_groups: Optional[List[str]] = None
    object_id: Optional[str] = Field(None, description="Identifier of the upstream object")
    details: Dict[str, Any] = Field(default_factory=dict)
    service: str = Field(..., min_length=1)
    request_id: str = Field(..., min_length=1)
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None

    class Config:
        frozen = True
        alias_generator = to_camel
        populate_by_name = True
