"""
Session store.

Owns the authenticated session and its persistence/expiry policy.

State machine:
    Anonymous --(login | register)--> Authenticated
    Authenticated --(logout | expired on restore)--> Anonymous

There is no silent token renewal. Expiry is discovered by `restore()` at
process start; a session that outlives its window while the process keeps
running stays usable until `restore()` or `is_expired()` is consulted.

Persistence is planned by pure functions returning a SessionCommit (the new
session plus the storage writes to perform). The store applies the writes
in a single transaction and only then swaps its in-memory session.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone

import pydantic
from sqlalchemy.exc import SQLAlchemyError

from formulacardz.client.formula_api import FormulaCardzClient
from formulacardz.client.schemas import AuthRequest, AuthResponse, NewUserRequest
from formulacardz.config import (
    REMEMBER_ME_KEY,
    SESSION_KEYS,
    TOKEN_KEY,
    TOKEN_TIMESTAMP_KEY,
    USER_KEY,
)
from formulacardz.db.storage import LocalStorage, StorageWrite
from formulacardz.models.failure import AuthError, FailureKind, NetworkError, StateError
from formulacardz.models.session import DEFAULT_EXPIRY, REMEMBER_ME_EXPIRY, Session, UserProfile
from formulacardz.services.validation import validate_credentials, validate_registration

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def from_epoch_millis(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


# =============================================================================
# COMMIT PLANNING (pure)
# =============================================================================


@dataclass(frozen=True, slots=True)
class SessionCommit:
    """A session transition: the resulting session and the writes that persist it."""

    session: Session | None
    writes: tuple[StorageWrite, ...]


def serialize_session(session: Session) -> str:
    """Serialize the profile entry in the service's own AuthResponse shape."""
    profile = session.profile
    return AuthResponse(
        id=session.user_id,
        email=profile.email,
        username=profile.username,
        token=session.token,
        profile_image_url=profile.profile_image_url,
        favorite_drivers=sorted(profile.favorite_drivers),
        favorite_constructors=sorted(profile.favorite_constructors),
        has_premium=profile.has_premium,
    ).model_dump_json(by_alias=True)


def plan_persist(session: Session) -> SessionCommit:
    """All four session entries, always written together."""
    return SessionCommit(
        session=session,
        writes=(
            StorageWrite(TOKEN_KEY, session.token),
            StorageWrite(USER_KEY, serialize_session(session)),
            StorageWrite(TOKEN_TIMESTAMP_KEY, str(to_epoch_millis(session.issued_at))),
            StorageWrite(REMEMBER_ME_KEY, "true" if session.remember_me else "false"),
        ),
    )


def plan_clear() -> SessionCommit:
    return SessionCommit(session=None, writes=tuple(StorageWrite(k, None) for k in SESSION_KEYS))


def is_expired_at(
    entries: dict[str, str],
    now: datetime,
    default_expiry: timedelta = DEFAULT_EXPIRY,
    remember_me_expiry: timedelta = REMEMBER_ME_EXPIRY,
) -> bool:
    """
    Apply the expiry policy to persisted entries.

    A missing or unreadable timestamp counts as expired. The session is
    still valid at exactly `issued_at + policy`.
    """
    timestamp = entries.get(TOKEN_TIMESTAMP_KEY)
    if not timestamp:
        return True

    try:
        issued_ms = int(timestamp)
    except ValueError:
        logger.warning("Persisted session timestamp is unreadable; treating as expired")
        return True

    remember_me = entries.get(REMEMBER_ME_KEY) == "true"
    window = remember_me_expiry if remember_me else default_expiry
    expiry_ms = issued_ms + int(window.total_seconds() * 1000)

    return to_epoch_millis(now) > expiry_ms


def session_from_entries(entries: dict[str, str]) -> Session | None:
    """
    Rebuild a session from persisted entries.

    Returns None if the token or profile is missing, or the profile cannot
    be parsed.
    """
    token = entries.get(TOKEN_KEY)
    user_json = entries.get(USER_KEY)
    if not token or not user_json:
        return None

    try:
        stored = AuthResponse.model_validate_json(user_json)
        issued_at = from_epoch_millis(int(entries.get(TOKEN_TIMESTAMP_KEY, "")))
    except (pydantic.ValidationError, ValueError):
        logger.warning("Persisted session is unreadable")
        return None

    return Session(
        user_id=stored.id,
        token=token,
        issued_at=issued_at,
        remember_me=entries.get(REMEMBER_ME_KEY) == "true",
        profile=stored.to_profile(),
    )


# =============================================================================
# SESSION STORE
# =============================================================================


class SessionStore:
    """Holds the current session and keeps local storage in step with it."""

    def __init__(
        self,
        client: FormulaCardzClient,
        storage: LocalStorage,
        clock: Clock = utc_now,
        default_expiry: timedelta = DEFAULT_EXPIRY,
        remember_me_expiry: timedelta = REMEMBER_ME_EXPIRY,
    ) -> None:
        self._client = client
        self._storage = storage
        self._clock = clock
        self._default_expiry = default_expiry
        self._remember_me_expiry = remember_me_expiry
        self._session: Session | None = None

    @property
    def current(self) -> Session | None:
        return self._session

    @property
    def token(self) -> str | None:
        return self._session.token if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def require(self) -> Session:
        """
        Return the active session.

        Raises:
            AuthError: If nobody is signed in
        """
        if self._session is None:
            raise AuthError(
                "Please log in to manage your collection.",
                kind=FailureKind.NOT_AUTHENTICATED,
            )
        return self._session

    async def _commit(self, commit: SessionCommit) -> None:
        try:
            await self._storage.apply(commit.writes)
        except SQLAlchemyError as e:
            raise StateError("Could not save your session on this device.") from e
        self._session = commit.session

    def _open(self, response: AuthResponse, remember_me: bool) -> Session:
        return Session(
            user_id=response.id,
            token=response.token,
            issued_at=self._clock(),
            remember_me=remember_me,
            profile=response.to_profile(),
        )

    async def login(self, email: str, password: str, remember_me: bool = False) -> Session:
        """
        Sign in and persist the new session, replacing any current one.

        Raises:
            ValidationError: If the email or password is malformed
            AuthError: If the service rejects the credentials or cannot be
                reached; the message is the service's, verbatim
        """
        email, password = validate_credentials(email, password)

        try:
            response = await self._client.login(AuthRequest(email=email, password=password))
        except NetworkError as e:
            logger.info("Login rejected (status=%s)", e.status_code)
            raise AuthError(e.message, detail="Login failed") from e

        session = self._open(response, remember_me)
        await self._commit(plan_persist(session))
        logger.info("User %s logged in (remember_me=%s)", session.user_id, remember_me)
        return session

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        confirm_password: str | None = None,
        favorite_drivers: Iterable[str] = (),
        favorite_constructors: Iterable[str] = (),
        remember_me: bool = False,
    ) -> Session:
        """
        Create an account and persist its session.

        New accounts always start on the one-day policy; `remember_me` is
        accepted for call-site symmetry with `login` and ignored.

        Raises:
            ValidationError: If the registration form is incomplete
            AuthError: If the service refuses the account or cannot be reached
        """
        username, email, password = validate_registration(
            username, email, password, confirm_password
        )
        if remember_me:
            logger.debug("remember_me ignored for a new account")

        request = NewUserRequest(
            username=username,
            email=email,
            password=password,
            favorite_drivers=sorted(set(favorite_drivers)),
            favorite_constructors=sorted(set(favorite_constructors)),
        )
        try:
            response = await self._client.register(request)
        except NetworkError as e:
            logger.info("Registration rejected (status=%s)", e.status_code)
            raise AuthError(e.message, detail="Registration failed") from e

        session = self._open(response, remember_me=False)
        await self._commit(plan_persist(session))
        logger.info("User %s registered", session.user_id)
        return session

    async def is_expired(self) -> bool:
        entries = await self._storage.get_many((TOKEN_TIMESTAMP_KEY, REMEMBER_ME_KEY))
        return is_expired_at(
            entries, self._clock(), self._default_expiry, self._remember_me_expiry
        )

    async def restore(self) -> Session | None:
        """
        Reload the persisted session at process start.

        A missing, unreadable or expired session is cleared from storage as
        an implicit logout; no error is raised for it.
        """
        entries = await self._storage.get_many(SESSION_KEYS)
        session = session_from_entries(entries)

        if session is None or is_expired_at(
            entries, self._clock(), self._default_expiry, self._remember_me_expiry
        ):
            if entries:
                logger.info("Stored session missing or expired; signing out")
            await self.logout()
            return None

        self._session = session
        logger.info("Restored session for user %s", session.user_id)
        return session

    async def refresh(self, server_profile: UserProfile) -> Session:
        """
        Merge server-confirmed profile fields into the current session.

        Token, issue time and remember-me flag are preserved.

        Raises:
            StateError: If there is no active session
        """
        if self._session is None:
            raise StateError("Cannot refresh the profile without an active session.")

        session = replace(self._session, profile=server_profile)
        await self._commit(plan_persist(session))
        return session

    async def logout(self) -> None:
        """Clear storage and memory. Never raises."""
        user_id = self._session.user_id if self._session else None
        self._session = None
        try:
            await self._storage.apply(plan_clear().writes)
        except SQLAlchemyError as e:
            logger.error("Failed to clear stored session: %s", e)
        if user_id:
            logger.info("User %s logged out", user_id)
