from .audit import AuditLogger
from .context import ContextExtractor, get_request_context, parse_groups

__all__ = ["AuditLogger", "ContextExtractor", "get_request_context", "parse_groups"]
