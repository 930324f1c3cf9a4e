import os
from typing import Dict, Optional
from urllib.parse import unquote
import boto3
import structlog
from botocore.exceptions import ClientError
from src.objects_api.models import AuthSession, AuthTokens

logger = structlog.get_logger(__name__)

COOKIE_PREFIX = "CognitoIdentityServiceProvider"

def parse_cookies(cookie_header: Optional[str]) -> Dict[str, str]:
    if not cookie_header:
        return {}
    pairs = (part.split("=", 1) for part in cookie_header.split(";") if "=" in part)
    return {unquote(name.strip()): unquote(value.strip()) for name, value in pairs}

class CognitoSessionProvider:
    """
    Reads the session cookies Amplify writes for a Cognito user pool client and
    confirms the access token with Cognito. Tokens are not refreshed or
    signature-checked here; Cognito's GetUser is the authority on whether the
    access token is still live.
    """

    def __init__(self, client_id: Optional[str] = None, region_name: Optional[str] = None):
        self.client_id = client_id or os.environ.get("COGNITO_USER_POOL_CLIENT_ID", "")
        region_name = region_name or os.environ.get("AWS_REGION", "us-east-1")
        self.client = boto3.client("cognito-idp", region_name=region_name)

    def _cookie_name(self, *parts: str) -> str:
        return ".".join((COOKIE_PREFIX, self.client_id) + parts)

    def read_tokens(self, cookie_header: Optional[str]) -> Optional[AuthTokens]:
        cookies = parse_cookies(cookie_header)
        username = cookies.get(self._cookie_name("LastAuthUser"))
        if not username:
            return None
        access_token = cookies.get(self._cookie_name(username, "accessToken"))
        if not access_token:
            return None
        return AuthTokens(
            access_token=access_token,
            id_token=cookies.get(self._cookie_name(username, "idToken"))
        )

    def fetch_auth_session(self, cookie_header: Optional[str]) -> AuthSession:
        """
        Returns the current session. `tokens` is None when the caller is not
        signed in or Cognito rejects the access token.
        """
        tokens = self.read_tokens(cookie_header)
        if tokens is None:
            return AuthSession()

        try:
            response = self.client.get_user(AccessToken=tokens.access_token)
        except ClientError as e:
            if e.response["Error"]["Code"] == "NotAuthorizedException":
                logger.info("session_rejected", reason=e.response["Error"].get("Message"))
                return AuthSession()
            raise e

        attributes = {
            attr["Name"]: attr["Value"] for attr in response.get("UserAttributes", [])
        }
        return AuthSession(tokens=tokens, user_attributes=attributes)
