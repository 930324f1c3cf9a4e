import base64
import json
import unittest
from botocore.exceptions import ClientError
from src.objects_api.models import AuthSession, AuthTokens
from src.objects_api.services.context import (
    ContextExtractor,
    decode_token_payload,
    get_request_context,
    is_admin,
    normalize_headers,
    parse_groups,
)

def make_token(claims) -> str:
    def segment(data):
        return base64.urlsafe_b64encode(json.dumps(data).encode()).decode().rstrip("=")
    return f"{segment({'alg': 'RS256', 'kid': 'test'})}.{segment(claims)}.c2lnbmF0dXJl"

class StubSessionProvider:
    def __init__(self, session=None, error=None):
        self.session = session or AuthSession()
        self.error = error
        self.cookie_headers = []

    def fetch_auth_session(self, cookie_header):
        self.cookie_headers.append(cookie_header)
        if self.error:
            raise self.error
        return self.session

def signed_in(claims) -> StubSessionProvider:
    return StubSessionProvider(AuthSession(tokens=AuthTokens(access_token="access", id_token=make_token(claims))))

class TestParseGroups(unittest.TestCase):
    def test_bracketed_comma_list(self):
        self.assertEqual(parse_groups("[g1, g2 ,g3]"), ["g1", "g2", "g3"])

    def test_json_array(self):
        self.assertEqual(parse_groups(["g1", " g2 "]), ["g1", "g2"])
        self.assertEqual(parse_groups('["g1", "g2"]'), ["g1", "g2"])

    def test_single_plain_string(self):
        self.assertEqual(parse_groups(" admins "), ["admins"])

    def test_absent(self):
        self.assertEqual(parse_groups(None), [])
        self.assertEqual(parse_groups(""), [])
        self.assertEqual(parse_groups("[]"), [])

    def test_group_names_with_commas_are_split(self):
        self.assertEqual(parse_groups("[Sales, EMEA, Support]"), ["Sales", "EMEA", "Support"])

    def test_is_admin(self):
        self.assertTrue(is_admin(["g1", "admin-id"], "admin-id"))
        self.assertFalse(is_admin(["g1"], "admin-id"))
        self.assertFalse(is_admin(["g1"], ""))

class TestDecodeTokenPayload(unittest.TestCase):
    def test_decodes_unpadded_payload(self):
        claims = {"sub": "u1", "email": "a@b.com"}
        self.assertEqual(decode_token_payload(make_token(claims)), claims)

    def test_malformed_tokens(self):
        for token in ("", "abc", "a.b", "a.!!!.c", "a.bm90LWpzb24.c", f"a.{base64.b64encode(b'[1]').decode()}.c"):
            with self.assertRaises(ValueError):
                decode_token_payload(token)

    def test_malformed_payload_with_valid_header(self):
        header = make_token({}).split(".")[0]
        for payload in ("bm90LWpzb24", base64.urlsafe_b64encode(b"[1]").decode().rstrip("="), "!!!"):
            with self.assertRaises(ValueError):
                decode_token_payload(f"{header}.{payload}.c2lnbmF0dXJl")

    def test_expired_token_still_decodes(self):
        claims = {"sub": "u1", "exp": 1}
        self.assertEqual(decode_token_payload(make_token(claims)), claims)

class TestRequestContext(unittest.TestCase):
    def test_forwarded_for_takes_precedence(self):
        metadata = get_request_context({
            "User-Agent": "Mozilla/5.0",
            "X-Forwarded-For": "203.0.113.7, 10.0.0.1",
            "X-Real-IP": "10.0.0.2"
        })
        self.assertEqual(metadata.user_agent, "Mozilla/5.0")
        self.assertEqual(metadata.ip_address, "203.0.113.7")

    def test_real_ip_fallback(self):
        self.assertEqual(get_request_context({"x-real-ip": "10.0.0.2"}).ip_address, "10.0.0.2")

    def test_unknown_when_no_headers(self):
        metadata = get_request_context({})
        self.assertIsNone(metadata.user_agent)
        self.assertEqual(metadata.ip_address, "unknown")
        self.assertEqual(get_request_context(None).ip_address, "unknown")

    def test_normalize_headers_folds_v2_cookies(self):
        headers = normalize_headers({"headers": {"User-Agent": "curl"}, "cookies": ["a=1", "b=2"]})
        self.assertEqual(headers, {"user-agent": "curl", "cookie": "a=1; b=2"})

class TestContextExtractor(unittest.TestCase):
    def test_extracts_claims(self):
        provider = signed_in({"sub": "u1", "email": "a@b.com", "cognito:groups": ["g1", "g2"]})
        context = ContextExtractor(provider).get_user_context({"headers": {"Cookie": "session=1"}})

        self.assertEqual(context.user_id, "u1")
        self.assertEqual(context.email, "a@b.com")
        self.assertEqual(context.groups, ["g1", "g2"])
        self.assertEqual(provider.cookie_headers, ["session=1"])

    def test_username_fallback(self):
        context = ContextExtractor(signed_in({"cognito:username": "alice"})).get_user_context({})
        self.assertEqual(context.user_id, "alice")
        self.assertEqual(context.username, "alice")
        self.assertEqual(context.groups, [])

        context = ContextExtractor(signed_in({"email": "a@b.com"})).get_user_context({})
        self.assertEqual(context.user_id, "unknown")

    def test_groups_from_saml_family_name(self):
        provider = signed_in({"sub": "u1", "family_name": "[f9cf5862, 0b1c]"})
        context = ContextExtractor(provider).get_user_context({})
        self.assertEqual(context.groups, ["f9cf5862", "0b1c"])

    def test_no_session(self):
        extractor = ContextExtractor(StubSessionProvider())
        self.assertIsNone(extractor.get_user_context({"headers": {}}))

    def test_missing_id_token(self):
        provider = StubSessionProvider(AuthSession(tokens=AuthTokens(access_token="access")))
        self.assertIsNone(ContextExtractor(provider).get_user_context({}))

    def test_malformed_id_token(self):
        for id_token in ("not-a-jwt", "a.%%%.c", "a.e30.c.d"):
            provider = StubSessionProvider(AuthSession(tokens=AuthTokens(access_token="access", id_token=id_token)))
            self.assertIsNone(ContextExtractor(provider).get_user_context({}))

    def test_provider_errors_degrade_to_none(self):
        errors = (
            ClientError({"Error": {"Code": "InternalErrorException", "Message": "boom"}}, "GetUser"),
            ConnectionError("network down"),
        )
        for error in errors:
            extractor = ContextExtractor(StubSessionProvider(error=error))
            self.assertIsNone(extractor.get_user_context({"headers": {"cookie": "x=y"}}))

if __name__ == "__main__":
    unittest.main()
