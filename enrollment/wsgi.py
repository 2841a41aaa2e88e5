"""Web Server Gateway Interface entry-point."""

import os

from enrollment.factory import create_web_app

__flask_app__ = None


def application(environ, start_response):    # type: ignore
    """WSGI application."""
    for key, value in environ.items():
        # Configuration is read from the process environment. Request-level
        # keys like SERVER_NAME are not configuration.
        if key == 'SERVER_NAME' or not isinstance(value, str):
            continue
        os.environ[key] = value

    global __flask_app__
    if __flask_app__ is None:
        __flask_app__ = create_web_app()
    return __flask_app__(environ, start_response)
