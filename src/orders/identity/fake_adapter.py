"""Token verifier backed by a dict of known tokens, for development and testing."""

from orders.identity.port import Caller, TokenVerifier


class FakeTokenVerifier(TokenVerifier):
    def __init__(self) -> None:
        self._tokens: dict[str, Caller] = {}

    def register(self, token: str, caller: Caller) -> Caller:
        self._tokens[token] = caller
        return caller

    def verify(self, token: str) -> Caller | None:
        return self._tokens.get(token)
