"""
Form validation.

Runs before any remote call. Each check raises ValidationError naming the
offending field.
"""

import re

from formulacardz.models.failure import FailureKind, ValidationError

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
MIN_PASSWORD_LENGTH = 6

CONDITION_OPTIONS: tuple[str, ...] = (
    "Raw",
    "PSA 10",
    "PSA 9",
    "PSA 8",
    "PSA 7",
    "PSA 6",
    "PSA 5",
    "PSA 4",
    "PSA 3",
    "PSA 2",
    "PSA 1",
    "BGS 10",
    "BGS 9.5",
    "BGS 9",
    "BGS 8.5",
    "BGS 8",
    "BGS 7.5",
    "BGS 7",
    "BGS 6.5",
    "BGS 6",
    "SGC 10",
    "SGC 9.5",
    "SGC 9",
    "SGC 8.5",
    "SGC 8",
    "SGC 7.5",
    "SGC 7",
    "SGC 6.5",
    "SGC 6",
    "Other",
)

DEFAULT_CONDITION = "Raw"


def validate_email(email: str) -> str:
    """Return the trimmed email, or raise if it is empty or malformed."""
    email = email.strip()
    if not email:
        raise ValidationError("email", "Email is required", FailureKind.MISSING_REQUIRED)
    if not EMAIL_PATTERN.search(email):
        raise ValidationError("email", "Please enter a valid email")
    return email


def validate_password(password: str) -> str:
    if not password.strip():
        raise ValidationError("password", "Password is required", FailureKind.MISSING_REQUIRED)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            "password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    return password


def validate_credentials(email: str, password: str) -> tuple[str, str]:
    """Validate a login form."""
    return validate_email(email), validate_password(password)


def validate_registration(
    username: str,
    email: str,
    password: str,
    confirm_password: str | None = None,
) -> tuple[str, str, str]:
    """
    Validate a registration form.

    `confirm_password` is only checked when the form collected it.
    """
    email, password = validate_credentials(email, password)

    username = username.strip()
    if not username:
        raise ValidationError("username", "Username is required", FailureKind.MISSING_REQUIRED)

    if confirm_password is not None and confirm_password != password:
        raise ValidationError("confirm_password", "Passwords do not match")

    return username, email, password


def validate_quantity(quantity: int, field: str = "quantity") -> int:
    # bool is an int subclass; a checkbox value is never a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError(field, "Please enter a valid quantity")
    return quantity


def validate_condition(condition: str, field: str = "condition") -> str:
    """
    Condition must be non-empty.

    Labels outside CONDITION_OPTIONS are accepted; the service stores
    whatever grade string it is given.
    """
    condition = condition.strip()
    if not condition:
        raise ValidationError(field, "Condition is required", FailureKind.MISSING_REQUIRED)
    return condition


def validate_card_id(card_id: str) -> str:
    card_id = card_id.strip()
    if not card_id:
        raise ValidationError("card_id", "Please select a card", FailureKind.MISSING_REQUIRED)
    return card_id


def normalize_parallel(parallel: str | None) -> str | None:
    """Blank parallel names mean the base card."""
    if parallel is None:
        return None
    parallel = parallel.strip()
    return parallel or None
