import json
import os
from typing import Dict, Any, Optional, List
import jwt
import structlog
from src.objects_api.identity import CognitoSessionProvider, COOKIE_PREFIX
from src.objects_api.models import RequestMetadata, UserContext

logger = structlog.get_logger(__name__)

UNKNOWN = "unknown"

def normalize_headers(event: Dict[str, Any]) -> Dict[str, str]:
    """
    Lower-cases header names of an API Gateway proxy event. Payload v2 carries
    cookies in a separate list; they are folded back into a cookie header.
    """
    headers = {k.lower(): v for k, v in (event.get("headers") or {}).items() if v is not None}
    cookies = event.get("cookies")
    if cookies and "cookie" not in headers:
        headers["cookie"] = "; ".join(cookies)
    return headers

def get_request_context(headers: Dict[str, str]) -> RequestMetadata:
    headers = {k.lower(): v for k, v in (headers or {}).items()}
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        # Leftmost entry is the originating client
        ip_address = forwarded_for.split(",")[0].strip() or UNKNOWN
    else:
        ip_address = headers.get("x-real-ip") or UNKNOWN
    return RequestMetadata(user_agent=headers.get("user-agent") or None, ip_address=ip_address)

def decode_token_payload(token: str) -> Dict[str, Any]:
    """
    Decodes the claims segment of a JWT. The signature is NOT checked: the
    token comes from a session Cognito has already accepted.
    """
    try:
        return jwt.decode(str(token), options={"verify_signature": False})
    except jwt.InvalidTokenError as e:
        raise ValueError(f"Malformed identity token: {e}") from e

def parse_groups(value: Any) -> List[str]:
    """
    Normalizes a groups value into a list of group ids.

    Accepts a list, a JSON array string, a bracketed comma list such as
    "[g1, g2]" (how the SAML mapping stores Entra ID groups), a single plain
    string, or nothing. Group names that contain commas get split; this matches
    how the attribute has always been read.
    """
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        groups = [str(g).strip() for g in value]
    elif isinstance(value, str):
        groups = None
        text = value.strip()
        if text.startswith("["):
            try:
                decoded = json.loads(text)
                if isinstance(decoded, list):
                    groups = [str(g).strip() for g in decoded]
            except ValueError:
                pass
        if groups is None:
            if text.startswith("["):
                text = text[1:]
            if text.endswith("]"):
                text = text[:-1]
            groups = [g.strip() for g in text.split(",")]
    else:
        groups = [str(value).strip()]
    return [g for g in groups if g]

def is_admin(groups: List[str], admin_group_id: Optional[str] = None) -> bool:
    admin_group_id = admin_group_id or os.environ.get("ADMIN_GROUP_ID")
    return bool(admin_group_id) and admin_group_id in groups

class ContextExtractor:
    def __init__(self, session_provider=None):
        self.session_provider = session_provider or CognitoSessionProvider()

    def get_user_context(self, event: Dict[str, Any]) -> Optional[UserContext]:
        """
        Returns the signed-in user's context, or None. Never raises: any
        failure fetching or decoding the session is treated as anonymous.
        """
        try:
            headers = normalize_headers(event)
            cookie_header = headers.get("cookie")
            logger.debug("auth_cookies", present=bool(cookie_header and COOKIE_PREFIX in cookie_header))

            session = self.session_provider.fetch_auth_session(cookie_header)
            tokens = session.tokens
            if not tokens or not tokens.access_token:
                logger.debug("no_access_token")
                return None
            if not tokens.id_token:
                logger.debug("no_id_token")
                return None

            claims = decode_token_payload(tokens.id_token)
            groups_claim = claims.get("cognito:groups")
            if groups_claim is None:
                groups_claim = claims.get("family_name")

            context = UserContext(
                user_id=claims.get("sub") or claims.get("cognito:username") or UNKNOWN,
                email=claims.get("email"),
                groups=parse_groups(groups_claim),
                username=claims.get("cognito:username")
            )
            logger.debug("user_context_extracted", user_id=context.user_id, groups=context.groups)
            return context
        except Exception as e:
            logger.warning("user_context_failed", error=str(e))
            return None
