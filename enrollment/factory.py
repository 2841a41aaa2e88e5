"""Application factory for the enrollment service."""

from typing import Any

from flask import Flask
from werkzeug.exceptions import HTTPException

from . import app_logging
from .routes import api
from .services import sessions, util
from .services.exceptions import ConfigurationError


def create_web_app(**overrides: Any) -> Flask:
    """
    Initialize and configure the enrollment application.

    Keyword arguments override values loaded from :mod:`enrollment.config`.

    Raises
    ------
    :class:`ConfigurationError`
        If no signing secret is configured, or if SSNs would be hashed more
        cheaply than passwords.

    """
    app = Flask('enrollment')
    app.config.from_object('enrollment.config')
    app.config.update(overrides)
    _check_config(app)

    app_logging.setup_logger(int(app.config['LOGLEVEL']),
                             bool(app.config['LOG_JSON']))

    util.init_app(app)
    sessions.init_app(app)

    app.register_blueprint(api.blueprint)
    app.register_error_handler(HTTPException, api.jsonify_exception)

    if app.config['CREATE_DB']:
        with app.app_context():
            util.create_all()

    return app


def _check_config(app: Flask) -> None:
    if not app.config.get('JWT_SECRET'):
        raise ConfigurationError('JWT_SECRET must be set')
    try:
        password_rounds = int(app.config['PASSWORD_HASH_ROUNDS'])
        ssn_rounds = int(app.config['SSN_HASH_ROUNDS'])
        duration = int(app.config['SESSION_DURATION'])
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f'Invalid configuration: {e}') from e
    if not 4 <= password_rounds <= 31 or not 4 <= ssn_rounds <= 31:
        raise ConfigurationError('bcrypt rounds must be between 4 and 31')
    if ssn_rounds < password_rounds:
        raise ConfigurationError('SSN_HASH_ROUNDS must be at least '
                                 'PASSWORD_HASH_ROUNDS')
    if duration <= 0:
        raise ConfigurationError('SESSION_DURATION must be positive')
