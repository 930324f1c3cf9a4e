import json
import logging
import os
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Union
import structlog
import ulid
from src.objects_api.logging_config import AUDIT_LOGGER_NAME
from src.objects_api.models import AuditAction, AuditEvent, RequestMetadata, UserContext

AUDIT_LOG_LABEL = "AUDIT_LOG:"
ANONYMOUS_USER = "anonymous"

logger = structlog.get_logger(__name__)

def render_audit_line(_, __, event_dict: Dict[str, Any]) -> str:
    # Single line, compact separators, unserializable details fall back to str()
    payload = json.dumps(event_dict["audit_event"], separators=(",", ":"), default=str)
    return f"{event_dict['event']} {payload}"

def generate_request_id() -> str:
    return str(ulid.new()).lower()

def utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")

class AuditLogger:
    """
    Emits one structured audit line per call. Holds no per-request state, so a
    single instance can be shared across invocations.
    """

    def __init__(self, service: Optional[str] = None):
        self.service = service or os.environ.get("AUDIT_SERVICE_NAME", "objects-api")
        self._sink = structlog.wrap_logger(
            logging.getLogger(AUDIT_LOGGER_NAME),
            processors=[render_audit_line],
            wrapper_class=structlog.stdlib.BoundLogger,
        )

    def log_event(
        self,
        action: Union[AuditAction, str],
        user_context: Optional[UserContext],
        object_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None
    ):
        """
        Logs an action to the audit sink. Never raises.
        """
        action = getattr(action, "value", action)
        try:
            event = AuditEvent(
                timestamp=utc_timestamp(),
                action=action,
                user_id=(user_context.user_id if user_context else None) or ANONYMOUS_USER,
                user_email=user_context.email if user_context else None,
                user_groups=user_context.groups if user_context else None,
                object_id=object_id,
                details=details or {},
                service=self.service,
                request_id=request_id or generate_request_id(),
                user_agent=user_agent,
                ip_address=ip_address
            )
            self._sink.info(
                AUDIT_LOG_LABEL,
                audit_event=event.model_dump(by_alias=True, exclude_none=True),
            )
        except Exception:
            logger.exception("audit_event_emit_failed", action=action, object_id=object_id)

    def _log_with_request(
        self,
        action: AuditAction,
        user_context: Optional[UserContext],
        object_id: Optional[str],
        details: Dict[str, Any],
        request_context: Optional[RequestMetadata],
        request_id: Optional[str]
    ):
        self.log_event(
            action,
            user_context,
            object_id=object_id,
            details=details,
            request_id=request_id,
            user_agent=request_context.user_agent if request_context else None,
            ip_address=request_context.ip_address if request_context else None
        )

    def log_object_access(
        self,
        user_context: Optional[UserContext],
        object_id: Optional[str] = None,
        object_count: Optional[int] = None,
        request_context: Optional[RequestMetadata] = None,
        request_id: Optional[str] = None
    ):
        details = {"objectCount": object_count} if object_count is not None else {}
        self._log_with_request(
            AuditAction.OBJECT_ACCESSED, user_context, object_id, details, request_context, request_id
        )

    def log_object_created(
        self,
        user_context: Optional[UserContext],
        object_id: Optional[str],
        object_data: Dict[str, Any],
        request_context: Optional[RequestMetadata] = None,
        request_id: Optional[str] = None
    ):
        details = {"name": object_data.get("name"), "originalRequest": object_data}
        self._log_with_request(
            AuditAction.OBJECT_CREATED, user_context, object_id, details, request_context, request_id
        )

    def log_object_updated(
        self,
        user_context: Optional[UserContext],
        object_id: str,
        object_data: Dict[str, Any],
        request_context: Optional[RequestMetadata] = None,
        request_id: Optional[str] = None
    ):
        details = {"name": object_data.get("name"), "originalRequest": object_data}
        self._log_with_request(
            AuditAction.OBJECT_UPDATED, user_context, object_id, details, request_context, request_id
        )

    def log_object_deleted(
        self,
        user_context: Optional[UserContext],
        object_id: str,
        deleted_object: Any,
        request_context: Optional[RequestMetadata] = None,
        request_id: Optional[str] = None
    ):
        self._log_with_request(
            AuditAction.OBJECT_DELETED,
            user_context,
            object_id,
            {"deletedObject": deleted_object},
            request_context,
            request_id
        )

    def log_access_failure(
        self,
        user_context: Optional[UserContext],
        object_id: Optional[str],
        error: str,
        status_code: int,
        request_context: Optional[RequestMetadata] = None,
        request_id: Optional[str] = None
    ):
        self._log_with_request(
            AuditAction.OBJECT_ACCESS_FAILED,
            user_context,
            object_id,
            {"error": error, "status": status_code},
            request_context,
            request_id
        )

    def log_system_error(
        self,
        user_context: Optional[UserContext],
        object_id: Optional[str],
        error: str,
        request_context: Optional[RequestMetadata] = None,
        request_id: Optional[str] = None
    ):
        self._log_with_request(
            AuditAction.OBJECT_ACCESS_ERROR,
            user_context,
            object_id,
            {"error": error},
            request_context,
            request_id
        )
