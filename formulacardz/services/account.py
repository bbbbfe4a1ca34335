"""
Account settings.

Profile edits are sent as a partial update containing only the fields that
changed; the server's confirmed profile is then merged into the session.
"""

import logging
from collections.abc import Iterable

from formulacardz.client.formula_api import FormulaCardzClient
from formulacardz.client.schemas import ForgotPasswordRequest, UpdateUserRequest
from formulacardz.models.failure import FailureKind, ValidationError
from formulacardz.models.session import Session, UserProfile
from formulacardz.services.session_store import SessionStore
from formulacardz.services.validation import validate_email

logger = logging.getLogger(__name__)


def _clean_names(names: Iterable[str]) -> frozenset[str]:
    return frozenset(name.strip() for name in names if name.strip())


def build_profile_update(
    profile: UserProfile,
    username: str | None = None,
    favorite_drivers: Iterable[str] | None = None,
    favorite_constructors: Iterable[str] | None = None,
) -> UpdateUserRequest | None:
    """
    Diff requested settings against the current profile.

    Favorites compare as sets, so reordering is not a change. Returns None
    when nothing changed.

    Raises:
        ValidationError: If the username is blank
    """
    changes: dict[str, object] = {}

    if username is not None:
        username = username.strip()
        if not username:
            raise ValidationError(
                "username", "Username is required", FailureKind.MISSING_REQUIRED
            )
        if username != profile.username:
            changes["username"] = username

    if favorite_drivers is not None:
        drivers = _clean_names(favorite_drivers)
        if drivers != profile.favorite_drivers:
            changes["favorite_drivers"] = sorted(drivers)

    if favorite_constructors is not None:
        constructors = _clean_names(favorite_constructors)
        if constructors != profile.favorite_constructors:
            changes["favorite_constructors"] = sorted(constructors)

    if not changes:
        return None
    return UpdateUserRequest.model_validate(changes)


class AccountService:
    """Profile settings and password reset."""

    def __init__(self, client: FormulaCardzClient, sessions: SessionStore) -> None:
        self._client = client
        self._sessions = sessions

    async def update_profile(
        self,
        username: str | None = None,
        favorite_drivers: Iterable[str] | None = None,
        favorite_constructors: Iterable[str] | None = None,
    ) -> Session:
        """
        Save profile settings.

        Makes no remote call when nothing changed.

        Raises:
            AuthError: If nobody is signed in
            ValidationError: If the username is blank
            NetworkError: If the service rejects the update
        """
        session = self._sessions.require()
        update = build_profile_update(
            session.profile, username, favorite_drivers, favorite_constructors
        )
        if update is None:
            return session

        response = await self._client.update_user(session.user_id, update)
        logger.info("Updated profile for user %s", session.user_id)
        return await self._sessions.refresh(response.user.to_profile())

    async def forgot_password(self, email: str) -> None:
        """
        Ask the service to email a password reset link.

        Raises:
            ValidationError: If the email is blank or malformed
            NetworkError: If the request fails
        """
        email = validate_email(email)
        await self._client.forgot_password(ForgotPasswordRequest(email=email))
        logger.info("Password reset requested")
