"""
Role Resolver - decides whether the acting identity is a student, faculty
member or admin, creating the profile row on the first visit.
"""

import logging

from placement_hub.core.exceptions import ConflictError, PortalError, ProfileSetupError
from placement_hub.core.session import SessionContext
from placement_hub.schemas.schemas import ProfileRow, UserRole

logger = logging.getLogger(__name__)

SETUP_MESSAGE = "We couldn't finish setting up your account. Please refresh the page to try again."


class RoleResolver:
    def __init__(self, remote):
        self.remote = remote

    async def ensure_profile(self, identity: str) -> ProfileRow:
        """
        Read the profile row, inserting a student profile when there is none.

        Two first visits racing each other both try the insert; the loser gets
        a unique violation, which only means the row exists now, so it
        re-reads. Any other insert failure leaves the account in the setup
        state (ProfileSetupError) and is not retried here.
        """
        row = await self.remote.maybe_single("profiles", user_id=identity)
        if row is not None:
            return ProfileRow.model_validate(row)

        try:
            created = await self.remote.insert(
                "profiles", {"user_id": identity, "role": UserRole.student.value}
            )
        except ConflictError:
            logger.info(f"[ROLE] profile for {identity} created concurrently, re-reading")
            row = await self.remote.maybe_single("profiles", user_id=identity)
            if row is None:
                raise ProfileSetupError(SETUP_MESSAGE)
            return ProfileRow.model_validate(row)
        except PortalError as e:
            logger.error(f"[ROLE] could not create profile for {identity}: {e}")
            raise ProfileSetupError(SETUP_MESSAGE) from e

        logger.info(f"[ROLE] created student profile for {identity}")
        return ProfileRow.model_validate(created)

    async def resolve_role(self, identity: str) -> UserRole:
        return (await self.ensure_profile(identity)).role

    async def role_for(self, session: SessionContext) -> UserRole:
        """Role of a session, resolved once and cached on the session."""
        if session.role is None:
            session.resolving_role = True
            try:
                session.role = await self.resolve_role(session.user_id)
            finally:
                session.resolving_role = False
        return session.role
