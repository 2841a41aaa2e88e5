"""
Controllers for login, logout, and session checks.

A successful login issues a signed session token, which is returned in the
response body and set as an HttpOnly cookie. Logging in again evicts the
previous session, so only the newest token works. Logout removes the session
identified by the request's cookie; the cookie is cleared whether or not a
session was found.
"""

from typing import Optional, Tuple
from http import HTTPStatus
import logging

from flask import current_app
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import InternalServerError, Unauthorized

from .. import domain
from ..services import accounts
from ..services.cookies import RequestCookieReader
from ..services.exceptions import AuthenticationFailed, ExpiredToken, \
    InvalidToken, SessionCreationFailed, SessionDeletionFailed, Unavailable
from . import ResponseData, ValidationFailed
from .forms import LoginForm, field_errors

logger = logging.getLogger(__name__)

CLEAR_COOKIE = {'auth_session_cookie': ('', 0)}


def login(form_data: MultiDict) -> ResponseData:
    """
    Log a user in with e-mail and password.

    Parameters
    ----------
    form_data : MultiDict
        Should include ``email`` and ``password``.

    Returns
    -------
    dict
        The user and the new session token; ``cookies`` for the route.
    int
        200 OK.
    dict
        Headers to add to the response.

    """
    form = LoginForm(form_data)
    if not form.validate():
        logger.debug('Login form is invalid')
        raise ValidationFailed(field_errors(form))

    try:
        user, session = accounts.login(form.email.data, form.password.data)
    except AuthenticationFailed as e:
        logger.debug('Authentication failed: %s', e)
        raise Unauthorized('Invalid credentials') from e
    except Unavailable as e:
        logger.exception('Database unavailable during login')
        raise InternalServerError('Cannot log in') from e
    except SessionCreationFailed as e:
        logger.exception('Could not create session')
        raise InternalServerError('Cannot log in') from e

    data = {
        'user': domain.to_dict(user),
        'session_token': session.token,
        'cookies': {
            'auth_session_cookie': (session.token, session.expires)
        }
    }
    return data, HTTPStatus.OK, {}


def logout(cookies: RequestCookieReader) -> ResponseData:
    """
    End the session named by the request's session cookie.

    Never fails: a missing cookie, an unknown session, or a store error
    all result in ``terminated: false``. The cookie is always cleared.
    """
    logger.debug('Request to log out')
    terminated = False
    try:
        terminated = accounts.terminate_session(cookies)
    except SessionDeletionFailed as e:
        logger.error('Logout failed: %s', e)

    data = {
        'success': True,
        'message': 'Logged out successfully' if terminated
                   else 'No active session',
        'terminated': terminated,
        'cookies': dict(CLEAR_COOKIE)
    }
    return data, HTTPStatus.OK, {}


def logout_user(user_id: int, cookies: RequestCookieReader) -> ResponseData:
    """
    End every session of a user.

    The request must carry a valid session cookie for that same user.
    """
    user, _ = _authenticated(cookies)
    if user.user_id != user_id:
        logger.debug('User %s tried to log out user %s',
                      user.user_id, user_id)
        raise Unauthorized('Not authorized to log out this user')

    count = 0
    try:
        count = accounts.terminate_all(user_id)
    except SessionDeletionFailed as e:
        logger.error('Logout of user %s failed: %s', user_id, e)

    data = {
        'success': True,
        'message': 'All sessions terminated',
        'user_id': user_id,
        'terminated': count,
        'cookies': dict(CLEAR_COOKIE)
    }
    return data, HTTPStatus.OK, {}


def current_user(cookies: RequestCookieReader) -> ResponseData:
    """Get the user and expiry for the request's session."""
    user, session = _authenticated(cookies)
    data = {
        'user': domain.to_dict(user),
        'expires_at': session.expires_at.isoformat()
    }
    return data, HTTPStatus.OK, {}


def _authenticated(cookies: RequestCookieReader) \
        -> Tuple[domain.User, domain.Session]:
    token: Optional[str] = \
        cookies.get(current_app.config['AUTH_SESSION_COOKIE_NAME'])
    if not token:
        raise Unauthorized('Not authenticated')
    try:
        return accounts.authenticate(token)
    except ExpiredToken as e:
        raise Unauthorized('Session expired') from e
    except InvalidToken as e:
        logger.debug('Rejected session token: %s', e)
        raise Unauthorized('Invalid session') from e
    except Unavailable as e:
        logger.exception('Database unavailable during session check')
        raise InternalServerError('Cannot check session') from e
