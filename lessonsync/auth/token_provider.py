# auth/token_provider.py
import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class TokenProvider(Protocol):
    def current_token(self) -> Optional[str]:
        ...


def _normalize(token: Optional[str]) -> Optional[str]:
    if token is None:
        return None
    token = token.strip()
    return token or None


class StaticTokenProvider:
    def __init__(self, token: Optional[str]):
        self._token = _normalize(token)

    def current_token(self) -> Optional[str]:
        return self._token


class TokenStore:
    """
    Holds the bearer token handed over by the authentication flow.
    Login stores it, logout clears it; the progress client only reads it.
    """

    def __init__(self, token: Optional[str] = None):
        self._token = _normalize(token)

    def set_token(self, token: Optional[str]) -> None:
        self._token = _normalize(token)
        if self._token is None:
            logger.info("Auth token cleared")

    def clear(self) -> None:
        self.set_token(None)

    def current_token(self) -> Optional[str]:
        return self._token
