"""Helpers for setting up test applications and data."""

from typing import Any
from datetime import date

from flask import Flask

from .. import domain
from ..factory import create_web_app
from ..services import passwords, users

TEST_CONFIG = {
    'JWT_SECRET': 'foosecret',
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'CREATE_DB': True,
    'PASSWORD_HASH_ROUNDS': 4,
    'SSN_HASH_ROUNDS': 4,
    'SESSION_DURATION': 86400,
    'SESSION_BACKEND': 'database',
    'REDIS_FAKE': True,
    'AUTH_SESSION_COOKIE_NAME': 'session',
    'AUTH_SESSION_COOKIE_SECURE': False,
    'LOGLEVEL': 40,
    'LOG_JSON': False,
}

PASSWORD = 'Sup3r$ecret'
SSN = '123456789'


def create_test_app(**overrides: Any) -> Flask:
    """Create an app with cheap hashing and a fresh in-memory database."""
    config = dict(TEST_CONFIG)
    config.update(overrides)
    return create_web_app(**config)


def signup_params(**overrides: Any) -> dict:
    """Get a complete, valid set of signup fields."""
    params = {
        'email': 'jane.doe@example.com',
        'password': PASSWORD,
        'confirm_password': PASSWORD,
        'first_name': 'Jane',
        'last_name': 'Doe',
        'phone_number': '+14155552671',
        'date_of_birth': '1990-04-01',
        'ssn': SSN,
        'address': '1 Main St',
        'city': 'Ithaca',
        'state': 'NY',
        'zip_code': '14850'
    }
    params.update(overrides)
    return params


def make_user(email: str = 'jane.doe@example.com',
              password: str = PASSWORD) -> domain.User:
    """Insert a user directly. Requires an application context."""
    user = domain.User(
        email=email,
        name=domain.UserFullName('Jane', 'Doe'),
        phone_number='+14155552671',
        date_of_birth=date(1990, 4, 1),
        address=domain.PostalAddress('1 Main St', 'Ithaca', 'NY', '14850')
    )
    return users.create(user, passwords.hash_secret(password, 4),
                        passwords.hash_secret(SSN, 4))
