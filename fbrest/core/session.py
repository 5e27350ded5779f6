from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

log = logging.getLogger("fbrest.client")


class SessionStatus(str, Enum):
    """Progress of the authentication handshake."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    TOKEN_ISSUED = "TOKEN_ISSUED"
    SESSION_ESTABLISHED = "SESSION_ESTABLISHED"


@dataclass
class SessionState:
    """
    Credentials established by the authentication handshake.

    Responsibilities
    - Hold the session key, session secret (installed applications only),
      user id and expiry
    - Supply session parameters to session-scoped requests

    Invariants
    - Only the handshake (`issue_token`, `establish`) mutates it
    - Never cleared automatically; `expires` is advisory data

    """

    desktop: bool = False
    session_key: Optional[str] = None
    session_secret: Optional[str] = field(default=None, repr=False)
    user_id: Optional[int] = None
    expires: Optional[int] = None
    auth_token: Optional[str] = field(default=None, repr=False)

    @property
    def status(self) -> SessionStatus:
        if self.session_key is not None:
            return SessionStatus.SESSION_ESTABLISHED
        if self.auth_token is not None:
            return SessionStatus.TOKEN_ISSUED
        return SessionStatus.UNAUTHENTICATED

    @property
    def is_established(self) -> bool:
        return self.session_key is not None

    def issue_token(self, token: str) -> None:
        """Record a one-time auth token. No session fields change."""

        self.auth_token = token

    def establish(
        self,
        *,
        session_key: str,
        user_id: int,
        expires: Optional[int],
        session_secret: Optional[str] = None,
    ) -> None:
        if self.session_key is not None and self.session_key != session_key:
            log.info("session_replaced", extra={"user_id": user_id})
        self.session_key = session_key
        self.user_id = user_id
        self.expires = expires
        if self.desktop:
            self.session_secret = session_secret
        # The token is single use; once exchanged it has no further meaning.
        self.auth_token = None

    def signing_secret(self, app_secret: str, requires_session: bool) -> str:
        """Pick the secret used to sign a call.

        Installed applications sign session-scoped calls with the session
        secret; everything else uses the application secret.
        """

        if self.desktop and requires_session:
            if self.session_secret:
                return self.session_secret
            log.warning("session_secret_missing")
        return app_secret
