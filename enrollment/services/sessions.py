"""
Internal service API for the session store.

Each user has at most one active session. :meth:`SessionStore.replace`
evicts whatever session a user already has and stores the new one in a
single operation, so there is no window in which a user holds two sessions.
Two backends are provided: the relational database (the default), and Redis.
"""

from typing import Optional
from abc import ABC, abstractmethod
from datetime import datetime
from functools import wraps
import json
import logging

import dateutil.parser
import fakeredis
import redis
from flask import Flask, current_app
from retry import retry
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .. import domain
from . import util
from .exceptions import ConfigurationError, SessionCreationFailed, \
    SessionDeletionFailed, UnknownSession
from .models import DBSession

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'enrollment.session_store'


class SessionStore(ABC):
    """Persistent mapping from a user to their single active session."""

    @abstractmethod
    def replace(self, user_id: int, token: str,
                expires_at: datetime) -> domain.Session:
        """
        Make ``token`` the only session for ``user_id``.

        Raises
        ------
        :class:`SessionCreationFailed`

        """

    @abstractmethod
    def load(self, token: str) -> domain.Session:
        """
        Load the session that was issued ``token``.

        Raises
        ------
        :class:`UnknownSession`
            No session matches the token.

        """

    @abstractmethod
    def delete_by_token(self, token: str) -> bool:
        """Delete the session matching ``token``; True if one was removed."""

    @abstractmethod
    def delete_by_user(self, user_id: int) -> int:
        """Delete all sessions for ``user_id``; returns how many."""


class _ReplaceRaced(RuntimeError):
    """A concurrent request inserted a session for the same user."""


class DatabaseSessionStore(SessionStore):
    """
    Sessions in the ``sessions`` table.

    The ``user_id`` column is unique, so two interleaved replacements for the
    same user cannot both commit. The loser is retried, which evicts the
    winner's row; the last writer wins.
    """

    def replace(self, user_id: int, token: str,
                expires_at: datetime) -> domain.Session:
        try:
            self._replace(user_id, token, expires_at)
        except _ReplaceRaced as e:
            raise SessionCreationFailed(
                f'Concurrent session replacement for user {user_id}'
            ) from e
        except SQLAlchemyError as e:
            raise SessionCreationFailed(f'Failed to create: {e}') from e
        logger.debug('Replaced session for user %s', user_id)
        return domain.Session(user_id=user_id, token=token,
                              expires_at=expires_at)

    @retry(_ReplaceRaced, tries=3, delay=0.05, backoff=2)
    def _replace(self, user_id: int, token: str,
                 expires_at: datetime) -> None:
        try:
            with util.transaction() as session:
                session.query(DBSession) \
                    .filter(DBSession.user_id == user_id) \
                    .delete(synchronize_session=False)
                session.add(DBSession(
                    user_id=user_id,
                    token=token,
                    expires_at=util.to_db_time(expires_at)
                ))
                session.commit()
        except IntegrityError as e:
            raise _ReplaceRaced(str(e)) from e

    def load(self, token: str) -> domain.Session:
        db_session: Optional[DBSession] = util.current_session() \
            .query(DBSession) \
            .filter(DBSession.token == token) \
            .first()
        if db_session is None:
            raise UnknownSession('No such session')
        return domain.Session(
            user_id=db_session.user_id,
            token=db_session.token,
            expires_at=util.from_db_time(db_session.expires_at)
        )

    def delete_by_token(self, token: str) -> bool:
        try:
            with util.transaction() as session:
                count = session.query(DBSession) \
                    .filter(DBSession.token == token) \
                    .delete(synchronize_session=False)
                session.commit()
        except SQLAlchemyError as e:
            raise SessionDeletionFailed(f'Failed to delete: {e}') from e
        return bool(count)

    def delete_by_user(self, user_id: int) -> int:
        try:
            with util.transaction() as session:
                count: int = session.query(DBSession) \
                    .filter(DBSession.user_id == user_id) \
                    .delete(synchronize_session=False)
                session.commit()
        except SQLAlchemyError as e:
            raise SessionDeletionFailed(f'Failed to delete: {e}') from e
        return count


class RedisSessionStore(SessionStore):
    """
    Sessions in Redis.

    Two keys are kept per session: ``session:user:<id>`` holds the token, and
    ``session:token:<token>`` holds the owner and expiry. Both expire with the
    session. Replacement is an optimistic transaction on the user key.
    """

    def __init__(self, connection: redis.Redis) -> None:
        """The connection must be created with ``decode_responses=True``."""
        self.r = connection

    @staticmethod
    def _user_key(user_id: int) -> str:
        return f'session:user:{user_id}'

    @staticmethod
    def _token_key(token: str) -> str:
        return f'session:token:{token}'

    def replace(self, user_id: int, token: str,
                expires_at: datetime) -> domain.Session:
        ttl = max(int((expires_at - util.now()).total_seconds()), 1)
        user_key = self._user_key(user_id)
        record = json.dumps({'user_id': user_id,
                             'expires_at': expires_at.isoformat()})

        def _swap(pipe: redis.client.Pipeline) -> None:
            previous = pipe.get(user_key)
            pipe.multi()
            if previous:
                pipe.delete(self._token_key(previous))
            pipe.set(user_key, token, ex=ttl)
            pipe.set(self._token_key(token), record, ex=ttl)

        try:
            self.r.transaction(_swap, user_key)
        except redis.exceptions.ConnectionError as e:
            raise SessionCreationFailed(f'Connection failed: {e}') from e
        except redis.exceptions.RedisError as e:
            raise SessionCreationFailed(f'Failed to create: {e}') from e
        logger.debug('Replaced session for user %s', user_id)
        return domain.Session(user_id=user_id, token=token,
                              expires_at=expires_at)

    def load(self, token: str) -> domain.Session:
        raw = self.r.get(self._token_key(token))
        if not raw:
            raise UnknownSession('No such session')
        record = json.loads(raw)
        user_id = int(record['user_id'])
        # The token key may outlive an eviction if a delete was interrupted.
        if self.r.get(self._user_key(user_id)) != token:
            raise UnknownSession('Session was superseded')
        return domain.Session(
            user_id=user_id,
            token=token,
            expires_at=dateutil.parser.parse(record['expires_at'])
        )

    def delete_by_token(self, token: str) -> bool:
        token_key = self._token_key(token)
        try:
            raw = self.r.get(token_key)
            if not raw:
                return False
            user_key = self._user_key(int(json.loads(raw)['user_id']))

            def _drop(pipe: redis.client.Pipeline) -> None:
                current = pipe.get(user_key)
                pipe.multi()
                pipe.delete(token_key)
                if current == token:
                    pipe.delete(user_key)

            self.r.transaction(_drop, user_key, token_key)
        except redis.exceptions.RedisError as e:
            raise SessionDeletionFailed(f'Failed to delete: {e}') from e
        return True

    def delete_by_user(self, user_id: int) -> int:
        user_key = self._user_key(user_id)

        def _drop(pipe: redis.client.Pipeline) -> int:
            token = pipe.get(user_key)
            pipe.multi()
            pipe.delete(user_key)
            if token:
                pipe.delete(self._token_key(token))
            return 1 if token else 0

        try:
            count: int = self.r.transaction(_drop, user_key,
                                            value_from_callable=True)
        except redis.exceptions.RedisError as e:
            raise SessionDeletionFailed(f'Failed to delete: {e}') from e
        return count


def _redis_connection(config: dict) -> redis.Redis:
    if config.get('REDIS_FAKE'):
        logger.debug('Using fakeredis')
        return fakeredis.FakeStrictRedis(server=fakeredis.FakeServer(),
                                         decode_responses=True)
    host = config.get('REDIS_HOST', 'localhost')
    port = int(config.get('REDIS_PORT', '6379'))
    db = int(config.get('REDIS_DATABASE', '0'))
    logger.debug('New Redis connection at %s, port %s', host, port)
    return redis.StrictRedis(host=host, port=port, db=db,
                             decode_responses=True)


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('SESSION_BACKEND', 'database')
    app.config.setdefault('REDIS_HOST', 'localhost')
    app.config.setdefault('REDIS_PORT', '6379')
    app.config.setdefault('REDIS_DATABASE', '0')
    app.config.setdefault('REDIS_FAKE', False)


def get_session_store(app: Optional[Flask] = None) -> SessionStore:
    """Get the session store for an application, creating it if needed."""
    if app is None:
        app = current_app
    store: Optional[SessionStore] = app.extensions.get(EXTENSION_KEY)
    if store is not None:
        return store
    backend = app.config.get('SESSION_BACKEND', 'database')
    if backend == 'database':
        store = DatabaseSessionStore()
    elif backend == 'redis':
        store = RedisSessionStore(_redis_connection(app.config))
    else:
        raise ConfigurationError(f'Unknown SESSION_BACKEND: {backend}')
    app.extensions[EXTENSION_KEY] = store
    return store


def current_session() -> SessionStore:
    """Get the :class:`.SessionStore` for the current application."""
    return get_session_store()


@wraps(SessionStore.replace)
def replace(user_id: int, token: str, expires_at: datetime) \
        -> domain.Session:
    """Make ``token`` the only session for ``user_id``."""
    return current_session().replace(user_id, token, expires_at)


@wraps(SessionStore.load)
def load(token: str) -> domain.Session:
    """Load a session by its token."""
    return current_session().load(token)


@wraps(SessionStore.delete_by_token)
def delete_by_token(token: str) -> bool:
    """Delete the session matching a token."""
    return current_session().delete_by_token(token)


@wraps(SessionStore.delete_by_user)
def delete_by_user(user_id: int) -> int:
    """Delete all sessions for a user."""
    return current_session().delete_by_user(user_id)
