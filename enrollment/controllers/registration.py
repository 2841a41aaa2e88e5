"""Controller for account signup."""

from http import HTTPStatus
import logging

from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import Conflict, InternalServerError

from .. import domain
from ..services import accounts
from ..services.exceptions import RegistrationFailed, \
    SessionCreationFailed, Unavailable, UserExists
from . import ResponseData, ValidationFailed
from .forms import RegistrationForm, field_errors

logger = logging.getLogger(__name__)


def signup(params: MultiDict) -> ResponseData:
    """
    Create an account and start its first session.

    Parameters
    ----------
    params : MultiDict
        Signup data; see :class:`.RegistrationForm`.

    Returns
    -------
    dict
        The new user and its session token. The ``cookies`` key carries the
        session cookie for the route to set.
    int
        201 Created.
    dict
        Headers to add to the response.

    Raises
    ------
    :class:`ValidationFailed`
    :class:`werkzeug.exceptions.Conflict`
    :class:`werkzeug.exceptions.InternalServerError`

    """
    form = RegistrationForm(params)
    if not form.validate():
        logger.debug('Registration form is invalid: %s', list(form.errors))
        raise ValidationFailed(field_errors(form))

    try:
        user, session = accounts.signup(form.to_domain())
    except UserExists as e:
        logger.debug('Signup for an address that is taken')
        raise Conflict('User already exists') from e
    except (RegistrationFailed, Unavailable) as e:
        logger.exception('Could not create user')
        raise InternalServerError('Failed to create user') from e
    except SessionCreationFailed as e:
        logger.exception('Created user, but could not create session')
        raise InternalServerError(
            'Your account was created, but we could not log you in. '
            'Please log in.'
        ) from e

    data = {
        'user': domain.to_dict(user),
        'session_token': session.token,
        'cookies': {
            'auth_session_cookie': (session.token, session.expires)
        }
    }
    return data, HTTPStatus.CREATED, {}
