"""
Identity Service - sign-up, sign-in, session lookup and session-change events.

Identities live in the users table; sessions are stateless JWTs issued by
core.auth. Listeners registered with on_session_change receive
(event, identity) for every SIGNED_IN / SIGNED_OUT.
"""

import logging
import threading
from typing import Callable, List, Optional, Tuple

from sqlalchemy import bindparam, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from placement_hub.core.auth import create_access_token, decode_token, hash_password, verify_password
from placement_hub.core.exceptions import AuthenticationError, ConflictError, RemoteError
from placement_hub.core.session import SIGNED_IN, SIGNED_OUT
from placement_hub.db.postgres import get_db_session
from placement_hub.schemas.schemas import Identity

logger = logging.getLogger(__name__)

Listener = Callable[[str, Identity], None]


class Subscription:
    def __init__(self, events: "SessionEvents", listener: Listener):
        self._events = events
        self._listener = listener

    def unsubscribe(self) -> None:
        self._events.remove(self._listener)


class SessionEvents:
    """In-process publisher for session-change notifications."""

    def __init__(self):
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Subscription:
        with self._lock:
            self._listeners.append(listener)
        return Subscription(self, listener)

    def remove(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def emit(self, event: str, identity: Identity) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, identity)
            except Exception as e:
                logger.warning(f"[IDENTITY] session listener failed on {event}: {e}")

    def __len__(self) -> int:
        return len(self._listeners)


class IdentityService:
    def __init__(self, events: Optional[SessionEvents] = None):
        self.events = events or SessionEvents()

    def sign_up(self, email: str, password: str, metadata: dict) -> Identity:
        """Create an identity. Duplicate emails raise ConflictError."""
        stmt = text("""
            INSERT INTO users (email, password_hash, metadata)
            VALUES (:email, :password_hash, :metadata)
            RETURNING user_id
        """).bindparams(bindparam("metadata", type_=JSONB))
        try:
            with get_db_session() as db:
                result = db.execute(stmt, {
                    "email": email.lower(),
                    "password_hash": hash_password(password),
                    "metadata": metadata,
                })
                user_id = str(result.fetchone()[0])
        except IntegrityError as e:
            raise ConflictError("User already registered") from e
        except SQLAlchemyError as e:
            logger.error(f"[IDENTITY] sign-up failed: {e}", exc_info=True)
            raise RemoteError("Could not create account") from e

        logger.info(f"[IDENTITY] created identity {user_id}")
        return Identity(user_id=user_id, email=email.lower(), metadata=metadata)

    def sign_in(self, email: str, password: str) -> Tuple[Identity, str]:
        """Verify credentials and issue an access token."""
        try:
            with get_db_session() as db:
                result = db.execute(
                    text("SELECT user_id, password_hash, metadata FROM users WHERE email = :email"),
                    {"email": email.lower()}
                )
                row = result.fetchone()
        except SQLAlchemyError as e:
            logger.error(f"[IDENTITY] sign-in lookup failed: {e}", exc_info=True)
            raise RemoteError("Could not sign in") from e

        if not row or not verify_password(password, row[1]):
            raise AuthenticationError("Invalid login credentials")

        identity = Identity(user_id=str(row[0]), email=email.lower(), metadata=row[2] or {})
        token = create_access_token({"sub": identity.user_id, "email": identity.email})
        self.events.emit(SIGNED_IN, identity)
        return identity, token

    def get_session(self, token: str) -> Optional[Identity]:
        """Identity behind a token, or None when the token is invalid or expired."""
        payload = decode_token(token)
        if not payload or not payload.get("sub"):
            return None
        return Identity(user_id=payload["sub"], email=payload.get("email", ""))

    def sign_out(self, identity: Identity) -> None:
        self.events.emit(SIGNED_OUT, identity)

    def on_session_change(self, listener: Listener) -> Subscription:
        return self.events.subscribe(listener)
