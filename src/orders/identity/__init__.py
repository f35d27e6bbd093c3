"""Token verifier factory.

Provides get_token_verifier() / set_token_verifier() to swap implementations:
- HttpTokenVerifier for talking to the auth service
- FakeTokenVerifier for development and testing
"""

from orders.identity.port import TokenVerifier

_current_verifier: TokenVerifier | None = None


def get_token_verifier() -> TokenVerifier:
    """Return the current token verifier. Defaults to the HTTP adapter built from the active config."""
    global _current_verifier
    if _current_verifier is None:
        from orders.config import get_config
        from orders.identity.http_adapter import HttpTokenVerifier

        _current_verifier = HttpTokenVerifier(get_config())
    return _current_verifier


def set_token_verifier(verifier: TokenVerifier) -> None:
    """Override the active token verifier (useful for tests)."""
    global _current_verifier
    _current_verifier = verifier


def reset_token_verifier() -> None:
    """Reset to the default token verifier."""
    global _current_verifier
    _current_verifier = None
