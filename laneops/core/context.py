"""Explicit authentication context handed to every outbound client."""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class AuthContext:
    """Bearer credentials for the lanes backend.

    Clients never read tokens from ambient storage; whoever builds a client
    decides which context it carries.
    """

    token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}


ANONYMOUS = AuthContext()
