from .token_provider import TokenProvider, TokenStore, StaticTokenProvider

__all__ = ["TokenProvider", "TokenStore", "StaticTokenProvider"]
