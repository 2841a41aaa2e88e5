"""Exceptions raised by the enrollment services."""


class ConfigurationError(RuntimeError):
    """The application is missing required configuration, or it is unsafe."""


class Unavailable(RuntimeError):
    """The database is temporarily unavailable."""


class UserExists(RuntimeError):
    """A user with the requested e-mail address already exists."""


class RegistrationFailed(RuntimeError):
    """Could not create a user."""


class NoSuchUser(RuntimeError):
    """User does not exist."""


class AuthenticationFailed(RuntimeError):
    """Failed to authenticate user with provided credentials."""


class InvalidToken(ValueError):
    """Session token is malformed, forged, or no longer backed by a session."""


class ExpiredToken(InvalidToken):
    """Session token is past its embedded expiry."""


class SessionCreationFailed(RuntimeError):
    """Failed to create a session in the session store."""


class SessionDeletionFailed(RuntimeError):
    """Failed to delete a session in the session store."""


class UnknownSession(RuntimeError):
    """Failed to locate a session in the session store."""
