from .session import CognitoSessionProvider, COOKIE_PREFIX

__all__ = ["CognitoSessionProvider", "COOKIE_PREFIX"]
