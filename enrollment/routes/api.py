"""Provides the JSON API for signup, login, and logout."""

from typing import Any
from datetime import timedelta
from http import HTTPStatus
import logging

from flask import Blueprint, Response, current_app, jsonify, \
    make_response, request
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import HTTPException

from ..controllers import authentication, registration
from ..services import util
from ..services.cookies import RequestCookieReader, reader_for

logger = logging.getLogger(__name__)
blueprint = Blueprint('api', __name__, url_prefix='')


def jsonify_exception(error: HTTPException) -> Response:
    """Render an HTTP exception as a JSON error body."""
    exc_resp = error.get_response()
    body: dict = {
        'code': (error.name or 'Error').upper().replace(' ', '_'),
        'message': error.description
    }
    fields = getattr(error, 'fields', None)
    if fields:
        body['fields'] = fields
    response = jsonify(error=body)
    response.status_code = exc_resp.status_code
    return response


def set_cookies(response: Response, data: dict) -> None:
    """
    Update a :class:`.Response` with cookies in controller data.

    Contollers seeking to update cookies must include a 'cookies' key
    in their response data.
    """
    cookies = data.pop('cookies', None)
    if cookies is None:
        return None
    for cookie_key, (cookie_value, expires) in cookies.items():
        cookie_name = current_app.config[f'{cookie_key.upper()}_NAME']
        max_age = timedelta(seconds=expires)
        logger.debug('Set cookie %s, max_age %s', cookie_name, max_age)
        params: dict = dict(httponly=True, path='/', samesite='Strict')
        if current_app.config['AUTH_SESSION_COOKIE_SECURE']:
            params['secure'] = True
        response.set_cookie(cookie_name, cookie_value, max_age=max_age,
                            **params)


def _payload() -> MultiDict:
    """Get request data from a JSON object body, or a form body."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return MultiDict([(key, str(value)) for key, value in data.items()
                          if value is not None])
    return request.form


def _cookies() -> RequestCookieReader:
    return reader_for(request.cookies)


def _respond(data: dict, code: int, headers: dict) -> Response:
    # Flask puts cookie-setting methods on the response, so we do that here
    # instead of in the controller.
    cookies = {'cookies': data.pop('cookies', None)}
    response = make_response(jsonify(data), code, headers)
    set_cookies(response, cookies)
    return response


@blueprint.after_app_request
def apply_response_headers(response: Response) -> Response:
    """Prevent UI redress attacks."""
    response.headers['Content-Security-Policy'] = "frame-ancestors 'none'"
    response.headers['X-Frame-Options'] = 'DENY'
    return response


@blueprint.route('/signup', methods=['POST'])
def signup() -> Response:
    """Create an account, and log it in."""
    data, code, headers = registration.signup(_payload())
    return _respond(data, code, headers)


@blueprint.route('/login', methods=['POST'])
def login() -> Response:
    """Log in with e-mail and password."""
    data, code, headers = authentication.login(_payload())
    return _respond(data, code, headers)


@blueprint.route('/logout', methods=['POST'])
def logout() -> Response:
    """Log out of the current session."""
    data, code, headers = authentication.logout(_cookies())
    return _respond(data, code, headers)


@blueprint.route('/logout/<int:user_id>', methods=['POST'])
def logout_user(user_id: int) -> Response:
    """Log a user out of all of their sessions."""
    data, code, headers = authentication.logout_user(user_id, _cookies())
    return _respond(data, code, headers)


@blueprint.route('/session', methods=['GET'])
def session() -> Response:
    """Get the user of the current session."""
    data, code, headers = authentication.current_user(_cookies())
    return _respond(data, code, headers)


@blueprint.route('/auth_status', methods=['GET'])
def auth_status() -> Any:
    """Get if the app is running."""
    if not util.is_available():
        return make_response('Database unavailable',
                             HTTPStatus.SERVICE_UNAVAILABLE)
    return make_response("OK")
