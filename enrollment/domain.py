"""Defines the core data structures for the enrollment service."""

from typing import Any, Optional, NamedTuple
from datetime import date, datetime
from pytz import UTC


class UserFullName(NamedTuple):
    """Represents a user's full name."""

    forename: str
    """First name or given name."""

    surname: str
    """Last name or family name."""


class PostalAddress(NamedTuple):
    """A US postal address."""

    street: str
    city: str
    state: str
    """Two-letter state code, upper case."""
    zip_code: str
    """Five-digit ZIP code."""


class User(NamedTuple):
    """
    Represents an enrolled user.

    There is deliberately no password or SSN attribute here. Both are only
    ever held as hashes in the user store, and never leave it.
    """

    email: str
    """The user's primary e-mail address, lower case."""

    user_id: Optional[int] = None
    """Unique identifier for the user. If ``None``, the user does not exist."""

    name: Optional[UserFullName] = None
    """The user's full name."""

    phone_number: Optional[str] = None
    """E.164-like phone number, e.g. ``+14155552671``."""

    date_of_birth: Optional[date] = None

    address: Optional[PostalAddress] = None


class Registration(NamedTuple):
    """Represents a validated request to register a new user."""

    user: User
    """Identity and contact details for the new account."""

    password: str
    """Plaintext password, to be hashed before it is stored."""

    ssn: str
    """Plaintext nine-digit SSN, to be hashed before it is stored."""


class Session(NamedTuple):
    """Represents the single active session of a user."""

    user_id: int
    """The user for which the session was created."""

    token: str
    """The signed session token issued to the client."""

    expires_at: datetime
    """When the session token stops being valid (UTC)."""

    @property
    def expires(self) -> int:
        """
        Number of seconds until the session expires.

        If the session is already expired, returns 0.
        """
        duration = (self.expires_at - datetime.now(tz=UTC)).total_seconds()
        return max(int(duration), 0)


def to_dict(obj: tuple) -> dict:
    """
    Generate a dict representation of a NamedTuple instance.

    This just uses the built-in ``_asdict`` method on the intance, but also
    calls this on any child NamedTuple instances (recursively) so that the
    entire tree is cast to ``dict``. Dates are rendered in ISO-8601 format.

    Parameters
    ----------
    obj : tuple
        A NamedTuple instance.

    Returns
    -------
    dict

    """
    if not hasattr(obj, '_asdict'):  # NamedTuple-generated classes have this.
        return {}

    def _cast(value: Any) -> Any:
        if hasattr(value, '_asdict'):
            return to_dict(value)
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        return value

    return {key: _cast(value) for key, value in obj._asdict().items()}
