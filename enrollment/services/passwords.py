"""
One-way hashing of passwords and other low-entropy secrets.

Secrets are hashed with bcrypt, using a fresh salt for every call. The cost
factor (``rounds``) is chosen by the caller, so that different kinds of
secret can be tuned independently. An SSN is nine digits, so it has far less
entropy than a decent password; it should never get a lower cost.
"""

import logging

import bcrypt

logger = logging.getLogger(__name__)

MAX_SECRET_BYTES = 72
"""bcrypt only considers this many bytes of input."""


def _encode(secret: str) -> bytes:
    encoded = secret.encode('utf-8')
    if len(encoded) > MAX_SECRET_BYTES:
        raise ValueError(f'Secret exceeds {MAX_SECRET_BYTES} bytes')
    return encoded


def hash_secret(secret: str, rounds: int) -> str:
    """
    Generate a salted, adaptive hash of a secret.

    Parameters
    ----------
    secret : str
        At most 72 bytes once encoded as UTF-8.
    rounds : int
        bcrypt cost factor (log2 of the number of iterations), 4 to 31.

    Returns
    -------
    str
        Modular-crypt formatted hash, e.g. ``$2b$12$...``.

    Raises
    ------
    :class:`ValueError`
        Raised if the secret is too long or the cost factor is out of range.

    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_encode(secret), salt).decode('ascii')


def check_secret(secret: str, hashed: str) -> bool:
    """Check a secret against a hash generated by :func:`hash_secret`."""
    try:
        encoded = _encode(secret)
    except ValueError:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode('ascii'))
    except ValueError as e:
        logger.error('Stored hash is malformed: %s', e)
        return False
