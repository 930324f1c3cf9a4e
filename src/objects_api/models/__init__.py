from .audit import AuditAction, AuditEvent
from .context import UserContext, RequestMetadata, AuthTokens, AuthSession, UserProfile

__all__ = ["AuditAction", "AuditEvent", "UserContext", "RequestMetadata", "AuthTokens", "AuthSession", "UserProfile"]
