import base64
import json
import os
from typing import Any, Callable, Dict, Optional
import structlog
import requests
from src.objects_api.clients import ObjectsClient, error_message, is_success
from src.objects_api.logging_config import configure_logging
from src.objects_api.models import RequestMetadata, UserContext
from src.objects_api.services import AuditLogger, ContextExtractor, get_request_context
from src.objects_api.services.context import normalize_headers

configure_logging()
logger = structlog.get_logger(__name__)

def json_response(status_code: int, body: Any) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": body if isinstance(body, str) else json.dumps(body)
    }

def get_http_method(event: Dict[str, Any]) -> Optional[str]:
    request_context = event.get("requestContext") or {}
    return event.get("httpMethod") or (request_context.get("http") or {}).get("method")

def forward(response: requests.Response) -> Dict[str, Any]:
    # Upstream status, body and content type pass through untouched
    return {
        "statusCode": response.status_code,
        "headers": {"Content-Type": response.headers.get("Content-Type", "application/json")},
        "body": response.text
    }

def read_body(event: Dict[str, Any]) -> Dict[str, Any]:
    raw = event.get("body") or "{}"
    if event.get("isBase64Encoded"):
        raw = base64.b64decode(raw).decode("utf-8")
    body = json.loads(raw)
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body

class ObjectsAPI:
    def __init__(
        self,
        client: Optional[ObjectsClient] = None,
        audit: Optional[AuditLogger] = None,
        extractor: Optional[ContextExtractor] = None
    ):
        self.client = client or ObjectsClient()
        self.audit = audit or AuditLogger()
        self.extractor = extractor or ContextExtractor()
        self.server_note = os.environ.get("OBJECTS_API_SERVER_NOTE")

    def _proxy(
        self,
        call: Callable[[], requests.Response],
        on_success: Callable[[Any], None],
        failure_message: str,
        user_context: Optional[UserContext],
        request_context: RequestMetadata,
        request_id: Optional[str],
        object_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Makes one upstream call and records exactly one audit event for its
        outcome: success, upstream failure (non-2xx) or system error.
        """
        try:
            response = call()
            if not is_success(response):
                self.audit.log_access_failure(
                    user_context,
                    object_id,
                    error_message(response),
                    response.status_code,
                    request_context=request_context,
                    request_id=request_id
                )
                return forward(response)
            data = response.json()
        except Exception as e:
            logger.error("upstream_call_failed", object_id=object_id, error=str(e))
            self.audit.log_system_error(
                user_context,
                object_id,
                str(e),
                request_context=request_context,
                request_id=request_id
            )
            return json_response(500, {"error": failure_message})

        on_success(data)
        return forward(response)

    def get_objects(self, user_context, request_context, request_id=None, object_id=None):
        def audit_access(data):
            count = len(data) if object_id is None and isinstance(data, list) else None
            self.audit.log_object_access(
                user_context, object_id, count, request_context=request_context, request_id=request_id
            )

        call = (lambda: self.client.get_object(object_id)) if object_id else self.client.list_objects
        return self._proxy(
            call, audit_access, "Failed to fetch objects",
            user_context, request_context, request_id, object_id
        )

    def create_object(self, user_context, request_context, body: Dict[str, Any], request_id=None):
        payload = dict(body)
        if self.server_note:
            # Appended server-side only; never echoed into the audit record
            data = dict(payload.get("data") or {})
            description = data.get("description")
            data["description"] = f"{description} - {self.server_note}" if description else self.server_note
            payload["data"] = data

        def audit_created(created):
            created_id = created.get("id") if isinstance(created, dict) else None
            self.audit.log_object_created(
                user_context,
                str(created_id) if created_id is not None else None,
                body,
                request_context=request_context,
                request_id=request_id
            )

        return self._proxy(
            lambda: self.client.create_object(payload), audit_created, "Failed to create object",
            user_context, request_context, request_id
        )

    def update_object(self, user_context, request_context, object_id: str, body: Dict[str, Any], request_id=None):
        def audit_updated(_):
            self.audit.log_object_updated(
                user_context, object_id, body, request_context=request_context, request_id=request_id
            )

        return self._proxy(
            lambda: self.client.update_object(object_id, body), audit_updated, "Failed to update object",
            user_context, request_context, request_id, object_id
        )

    def delete_object(self, user_context, request_context, object_id: str, request_id=None):
        def audit_deleted(deleted):
            self.audit.log_object_deleted(
                user_context, object_id, deleted, request_context=request_context, request_id=request_id
            )

        return self._proxy(
            lambda: self.client.delete_object(object_id), audit_deleted, "Failed to delete object",
            user_context, request_context, request_id, object_id
        )

    def handle(self, event: Dict[str, Any]) -> Dict[str, Any]:
        http_method = get_http_method(event)
        query_params = event.get("queryStringParameters") or {}
        path_params = event.get("pathParameters") or {}
        object_id = path_params.get("id") or query_params.get("id")
        request_id = (event.get("requestContext") or {}).get("requestId")

        request_context = get_request_context(normalize_headers(event))
        user_context = self.extractor.get_user_context(event)

        if http_method == "GET":
            return self.get_objects(user_context, request_context, request_id, object_id)

        if http_method in ("PUT", "DELETE") and not object_id:
            verb = "update" if http_method == "PUT" else "delete"
            return json_response(400, {"error": f"ID is required for {verb}"})

        if http_method == "DELETE":
            return self.delete_object(user_context, request_context, object_id, request_id)

        if http_method in ("POST", "PUT"):
            try:
                body = read_body(event)
            except ValueError as e:
                return json_response(400, {"error": f"Invalid request body: {e}"})
            if http_method == "POST":
                return self.create_object(user_context, request_context, body, request_id)
            return self.update_object(user_context, request_context, object_id, body, request_id)

        return json_response(405, {"error": "Method not allowed"})

def handler(event, context):
    return ObjectsAPI().handle(event)
