"""Flask configuration."""
import os

#################### Session tokens ####################
JWT_SECRET = os.environ.get('JWT_SECRET')
"""Secret used to sign session tokens.

Required. The application refuses to start without it; there is no fallback
value."""

SESSION_DURATION = os.environ.get('SESSION_DURATION', '86400')
"""Lifetime of a session in seconds.

Applies to the token's embedded expiry, the session record, and the cookie
``Max-Age`` alike, so that a cookie never outlives its token."""

AUTH_SESSION_COOKIE_NAME = os.environ.get('AUTH_SESSION_COOKIE_NAME', 'session')
AUTH_SESSION_COOKIE_SECURE = bool(int(os.environ.get('AUTH_SESSION_COOKIE_SECURE', '1')))


#################### Credential hashing ####################
PASSWORD_HASH_ROUNDS = os.environ.get('PASSWORD_HASH_ROUNDS', '12')
"""bcrypt cost factor for passwords."""

SSN_HASH_ROUNDS = os.environ.get('SSN_HASH_ROUNDS', '13')
"""bcrypt cost factor for SSNs.

Must be at least :const:`PASSWORD_HASH_ROUNDS`; an SSN has far less entropy
than a password."""


#################### Registration ####################
MINIMUM_AGE = int(os.environ.get('MINIMUM_AGE', '18'))


#################### Session store ####################
SESSION_BACKEND = os.environ.get('SESSION_BACKEND', 'database')
"""Either ``database`` or ``redis``."""

REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')

REDIS_FAKE = bool(int(os.environ.get('REDIS_FAKE', '0')))
"""Use the FakeRedis library instead of a redis service.

Useful for testing, dev, beta."""


#################### Database ####################
SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite:///enrollment.db')
SQLALCHEMY_TRACK_MODIFICATIONS = False

CREATE_DB = bool(int(os.environ.get('CREATE_DB', '0')))


#################### Logging ####################
LOGLEVEL = int(os.environ.get('LOGLEVEL', '20'))
LOG_JSON = bool(int(os.environ.get('LOG_JSON', '1')))
"""Emit log records as JSON lines."""
