"""Functions for minting and verifying session tokens."""

from typing import Optional, Tuple
from datetime import datetime, timedelta
import secrets

import jwt
from pytz import UTC

from .exceptions import InvalidToken, ExpiredToken

ALGORITHM = 'HS256'
REQUIRED_CLAIMS = ['user_id', 'iat', 'exp', 'nonce']


def issue(user_id: int, secret: str, duration: int,
          issued_at: Optional[datetime] = None) -> Tuple[str, datetime]:
    """
    Mint a signed session token for a user.

    The token embeds its own expiry, so a stale token can be rejected without
    looking anything up. A random nonce keeps two tokens minted for the same
    user in the same second distinct.

    Parameters
    ----------
    user_id : int
    secret : str
        Server-held signing secret.
    duration : int
        Lifetime of the token, in seconds.
    issued_at : :class:`datetime`
        Defaults to now.

    Returns
    -------
    str
        The encoded token.
    :class:`datetime`
        When the token expires (UTC, whole seconds).

    """
    if not secret:
        raise ValueError('A signing secret is required')
    if issued_at is None:
        issued_at = datetime.now(tz=UTC)
    # JWT time claims have a resolution of one second.
    issued_at = issued_at.astimezone(UTC).replace(microsecond=0)
    expires_at = issued_at + timedelta(seconds=duration)
    claims = {
        'user_id': user_id,
        'iat': issued_at,
        'exp': expires_at,
        'nonce': secrets.token_hex(8)
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM), expires_at


def decode(token: str, secret: str) -> dict:
    """
    Verify a session token and get its claims.

    Raises
    ------
    :class:`ExpiredToken`
        The token is authentic, but past its embedded expiry.
    :class:`InvalidToken`
        The token is malformed, forged, or missing required claims.

    """
    try:
        claims: dict = jwt.decode(token, secret, algorithms=[ALGORITHM],
                                  options={'require': REQUIRED_CLAIMS})
    except jwt.exceptions.ExpiredSignatureError as e:
        raise ExpiredToken('Session token has expired') from e
    except jwt.exceptions.InvalidTokenError as e:
        raise InvalidToken('Not a valid token') from e
    if not isinstance(claims['user_id'], int):
        raise InvalidToken('Token payload malformed')
    return claims
