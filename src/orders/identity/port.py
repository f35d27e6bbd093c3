"""Identity port: verifies bearer tokens issued by the auth service."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Caller:
    """The authenticated user behind a request."""

    id: str
    role: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    store_id: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email or self.id


class TokenVerifier(ABC):
    """Abstract token verification interface."""

    @abstractmethod
    def verify(self, token: str) -> Caller | None:
        """Return the caller for a valid token, or None when the token is rejected."""
        ...
