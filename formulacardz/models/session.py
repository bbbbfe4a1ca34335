"""
Authenticated session model.

A Session is valid iff `now <= issued_at + policy(remember_me)` where the
policy is 24 hours by default and 60 days with remember-me.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

DEFAULT_EXPIRY = timedelta(hours=24)
REMEMBER_ME_EXPIRY = timedelta(hours=24 * 60)


@dataclass(frozen=True, slots=True)
class UserProfile:
    """
    Profile fields of the signed-in user.

    Attributes:
        username: Display name
        email: Login email
        favorite_drivers: Driver names the user follows
        favorite_constructors: Constructor (team) names the user follows
        has_premium: Whether the account has premium features
        profile_image_url: Avatar URL, if the user uploaded one
    """

    username: str
    email: str
    favorite_drivers: frozenset[str] = field(default_factory=frozenset)
    favorite_constructors: frozenset[str] = field(default_factory=frozenset)
    has_premium: bool = False
    profile_image_url: str | None = None


@dataclass(frozen=True, slots=True)
class Session:
    """An authenticated session as held in memory and in local storage."""

    user_id: str
    token: str
    issued_at: datetime
    remember_me: bool
    profile: UserProfile
