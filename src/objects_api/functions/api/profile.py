import os
from typing import Any, Dict, Optional
from src.objects_api.functions.api.objects import get_http_method, json_response
from src.objects_api.models import UserProfile
from src.objects_api.services import ContextExtractor
from src.objects_api.services.context import is_admin

class ProfileAPI:
    def __init__(self, extractor: Optional[ContextExtractor] = None):
        self.extractor = extractor or ContextExtractor()
        self.admin_group_id = os.environ.get("ADMIN_GROUP_ID")

    def get_profile(self, event: Dict[str, Any]) -> Optional[UserProfile]:
        user_context = self.extractor.get_user_context(event)
        if not user_context:
            return None
        return UserProfile(
            user_id=user_context.user_id,
            email=user_context.email,
            username=user_context.username,
            groups=user_context.groups,
            is_admin=is_admin(user_context.groups, self.admin_group_id)
        )

    def handle(self, event: Dict[str, Any]) -> Dict[str, Any]:
        http_method = get_http_method(event)
        if http_method != "GET":
            return json_response(405, {"error": "Method not allowed"})

        profile = self.get_profile(event)
        if not profile:
            return json_response(401, {"error": "Not authenticated"})
        return json_response(200, profile.model_dump(mode="json", by_alias=True))

def handler(event, context):
    return ProfileAPI().handle(event)
