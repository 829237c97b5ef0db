"""Principal and the session-verifier capability.

The core never parses credentials itself. A ``SessionVerifier`` turns a
bearer credential into a ``Principal`` (or ``None``), and everything
downstream works with ``Optional[Principal]``, where ``None`` is anonymous.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from ..models.enums import UserRole
from .token_factory import decode_token


@dataclass(frozen=True)
class Principal:
    """A verified caller: user id plus global role."""

    id: str
    role: str = UserRole.USER.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class SessionVerifier(Protocol):
    def verify(self, credential: str) -> Optional[Principal]:
        ...


class TokenSessionVerifier:
    """Verifies HS256 tokens minted by ``token_factory.create_token``."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self._secret = secret
        self._algorithm = algorithm

    def verify(self, credential: str) -> Optional[Principal]:
        payload = decode_token(credential, self._secret, self._algorithm)
        if payload is None:
            return None
        role = payload.role if payload.role in (UserRole.ADMIN.value, UserRole.USER.value) else UserRole.USER.value
        return Principal(id=payload.sub, role=role)
