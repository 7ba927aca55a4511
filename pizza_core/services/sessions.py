"""
Server-side session liveness for signed bearer tokens.

Only the signature segment of a token is stored. A token is live while its row
exists, whatever its own signature or expiry says, so deleting the row revokes it.
Signing and cryptographic verification happen before this check, outside the core.
"""

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError

from pizza_core.models import AuthSession

if TYPE_CHECKING:
    from pizza_core.core.database import Database

logger = logging.getLogger(__name__)

# header.payload.signature
SIGNATURE_SEGMENT_INDEX = 2


def derive_fragment(token: str) -> str:
    """Signature segment of a dot-delimited token, or '' when the token has fewer than three segments."""
    parts = token.split(".")
    if len(parts) > SIGNATURE_SEGMENT_INDEX:
        return parts[SIGNATURE_SEGMENT_INDEX]
    return ""


class SessionValidator:
    """Records, checks and revokes sessions keyed by token signature."""

    def __init__(self, database: "Database") -> None:
        self._db = database

    derive_fragment = staticmethod(derive_fragment)

    def record_session(self, user_id: int, token: str) -> None:
        """Mark the token live for user_id. Recording the same token again is a no-op."""
        fragment = derive_fragment(token)
        if not fragment:
            raise ValueError("token has no signature segment")
        try:
            with self._db.connection() as conn:
                existing = conn.execute(
                    select(AuthSession.token_fragment).where(
                        AuthSession.token_fragment == fragment
                    )
                ).first()
                if existing is None:
                    conn.execute(
                        insert(AuthSession).values(token_fragment=fragment, user_id=user_id)
                    )
        except IntegrityError:
            # Lost a race against a concurrent login with the same token; fine if the row is there.
            if not self.is_valid(token):
                raise
            logger.debug("Session for user=%s already recorded", user_id)

    def is_valid(self, token: str) -> bool:
        fragment = derive_fragment(token)
        if not fragment:
            return False
        with self._db.connection() as conn:
            row = conn.execute(
                select(AuthSession.user_id).where(AuthSession.token_fragment == fragment)
            ).first()
        return row is not None

    def revoke_session(self, token: str) -> None:
        fragment = derive_fragment(token)
        if not fragment:
            return
        with self._db.connection() as conn:
            conn.execute(delete(AuthSession).where(AuthSession.token_fragment == fragment))
