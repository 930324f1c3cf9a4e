import os
from typing import Any, Dict, Optional
import requests

DEFAULT_BASE_URL = "https://api.restful-api.dev/objects"

def is_success(response: requests.Response) -> bool:
    return 200 <= response.status_code < 300

def error_message(response: requests.Response) -> str:
    """The `error` field of a JSON error body, else the raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.text or f"HTTP {response.status_code}"

class ObjectsClient:
    """Client for the external objects REST API. Non-2xx responses are returned, not raised."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or os.environ.get("OBJECTS_API_BASE_URL", DEFAULT_BASE_URL)).rstrip("/")
        self.timeout = timeout or float(os.environ.get("OBJECTS_API_TIMEOUT", "30"))
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _url(self, object_id: Optional[str] = None) -> str:
        return f"{self.base_url}/{object_id}" if object_id else self.base_url

    def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> requests.Response:
        return self.session.request(method, url, json=payload, timeout=self.timeout)

    def list_objects(self) -> requests.Response:
        return self._request("GET", self._url())

    def get_object(self, object_id: str) -> requests.Response:
        return self._request("GET", self._url(object_id))

    def create_object(self, data: Dict[str, Any]) -> requests.Response:
        return self._request("POST", self._url(), payload=data)

    def update_object(self, object_id: str, data: Dict[str, Any]) -> requests.Response:
        return self._request("PUT", self._url(object_id), payload=data)

    def delete_object(self, object_id: str) -> requests.Response:
        return self._request("DELETE", self._url(object_id))
