"""
Account lifecycle: signup, login, session checks, and logout.

This is where the pieces come together. Signup checks that the e-mail
address is free, hashes the password and SSN, stores the user, and only then
starts a session. Login checks credentials and starts a session. Starting a
session always replaces whatever session the user already had.
"""

from typing import Tuple
import logging

from flask import current_app
from retry import retry

from .. import domain
from . import passwords, sessions, tokens, users
from .cookies import RequestCookieReader
from .exceptions import AuthenticationFailed, NoSuchUser, Unavailable, \
    UnknownSession, InvalidToken, UserExists

logger = logging.getLogger(__name__)


def signup(registration: domain.Registration) \
        -> Tuple[domain.User, domain.Session]:
    """
    Create a new account and log it in.

    Parameters
    ----------
    registration : :class:`.domain.Registration`

    Returns
    -------
    :class:`.domain.User`
        The created user.
    :class:`.domain.Session`
        The new user's only session.

    Raises
    ------
    :class:`UserExists`
        Nothing was written.
    :class:`RegistrationFailed`
        Nothing was written.
    :class:`SessionCreationFailed`
        The user was created, but has no session. They should log in rather
        than register again.

    """
    if _email_exists(registration.user.email):
        raise UserExists('User already exists')

    config = current_app.config
    password_hash = passwords.hash_secret(registration.password,
                                          int(config['PASSWORD_HASH_ROUNDS']))
    ssn_hash = passwords.hash_secret(registration.ssn,
                                     int(config['SSN_HASH_ROUNDS']))

    user = users.create(registration.user, password_hash, ssn_hash)
    logger.info('Created user %s', user.user_id)

    session = create_active_session(user.user_id)
    return user, session


def login(email: str, password: str) -> Tuple[domain.User, domain.Session]:
    """
    Check credentials and start a new session, evicting any prior one.

    Raises
    ------
    :class:`AuthenticationFailed`
        Either there is no such user, or the password is wrong. Callers
        should not tell the two apart.

    """
    try:
        user, password_hash = _get_credentials(email)
    except NoSuchUser as e:
        raise AuthenticationFailed('Invalid credentials') from e
    if not passwords.check_secret(password, password_hash):
        raise AuthenticationFailed('Invalid credentials')

    session = create_active_session(user.user_id)
    logger.info('User %s logged in', user.user_id)
    return user, session


def create_active_session(user_id: int) -> domain.Session:
    """Issue a token for a user and make it their only session."""
    config = current_app.config
    token, expires_at = tokens.issue(user_id, config['JWT_SECRET'],
                                     int(config['SESSION_DURATION']))
    return sessions.replace(user_id, token, expires_at)


def authenticate(token: str) -> Tuple[domain.User, domain.Session]:
    """
    Get the user and session for a session token.

    The token must be authentic and inside its embedded expiry, and it must
    still be the user's active session.

    Raises
    ------
    :class:`ExpiredToken`
    :class:`InvalidToken`

    """
    claims = tokens.decode(token, current_app.config['JWT_SECRET'])
    try:
        session = sessions.load(token)
    except UnknownSession as e:
        raise InvalidToken('Session is no longer active') from e
    if session.user_id != claims['user_id']:
        raise InvalidToken('Token does not match session; likely a forgery')
    try:
        user = users.get_user_by_id(session.user_id)
    except NoSuchUser as e:
        raise InvalidToken('Session user no longer exists') from e
    return user, session


def terminate_session(cookies: RequestCookieReader) -> bool:
    """
    End the session identified by the request's session cookie.

    Returns
    -------
    bool
        True if a session was found and removed; False if the request had no
        session cookie or its session was already gone.

    """
    token = cookies.get(current_app.config['AUTH_SESSION_COOKIE_NAME'])
    if not token:
        return False
    removed = sessions.delete_by_token(token)
    logger.info('Logout removed a session: %s', removed)
    return removed


def terminate_all(user_id: int) -> int:
    """End every session for a user; returns how many were removed."""
    count = sessions.delete_by_user(user_id)
    logger.info('Removed %i session(s) for user %s', count, user_id)
    return count


# These are broken out to add retry logic.
@retry(Unavailable, tries=3, delay=0.5, backoff=2)
def _email_exists(email: str) -> bool:
    return users.does_email_exist(email)


@retry(Unavailable, tries=3, delay=0.5, backoff=2)
def _get_credentials(email: str) -> Tuple[domain.User, str]:
    return users.get_credentials(email)
