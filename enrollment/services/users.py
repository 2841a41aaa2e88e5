"""Provide methods for working with user accounts in the database."""

from typing import Tuple
import logging

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from .. import domain
from . import util
from .exceptions import NoSuchUser, RegistrationFailed, Unavailable, \
    UserExists
from .models import DBUser

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """E-mail addresses are unique without regard to case or padding."""
    return email.strip().lower()


def does_email_exist(email: str) -> bool:
    """
    Determine whether a user with a particular address already exists.

    Parameters
    ----------
    email : str

    Returns
    -------
    bool

    """
    try:
        data = util.current_session().query(DBUser.id) \
            .filter(DBUser.email == normalize_email(email)) \
            .first()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    return data is not None


def get_user_by_id(user_id: int) -> domain.User:
    """Load user data from the database."""
    try:
        db_user = util.current_session().get(DBUser, user_id)
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    if db_user is None:
        raise NoSuchUser('User does not exist')
    return db_user.to_domain()


def get_credentials(email: str) -> Tuple[domain.User, str]:
    """
    Load a user and their password hash by e-mail address.

    The hash is returned separately so that it never travels on a
    :class:`.domain.User`.

    Raises
    ------
    :class:`NoSuchUser`

    """
    try:
        db_user = util.current_session().query(DBUser) \
            .filter(DBUser.email == normalize_email(email)) \
            .first()
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    if db_user is None:
        raise NoSuchUser('User does not exist')
    return db_user.to_domain(), db_user.password


def create(user: domain.User, password_hash: str, ssn_hash: str) \
        -> domain.User:
    """
    Insert a new user.

    Parameters
    ----------
    user : :class:`.domain.User`
        Identity and contact details. ``user_id`` is ignored.
    password_hash : str
    ssn_hash : str

    Returns
    -------
    :class:`.domain.User`
        The created user, with its new ``user_id``.

    Raises
    ------
    :class:`UserExists`
        The e-mail address is already taken. This can happen even if
        :func:`does_email_exist` said otherwise, when two registrations race.
    :class:`RegistrationFailed`
        Any other failure to insert.

    """
    if user.name is None or user.address is None:
        raise ValueError('Name and address are required to create a user')
    db_user = DBUser(
        email=normalize_email(user.email),
        password=password_hash,
        ssn=ssn_hash,
        first_name=user.name.forename,
        last_name=user.name.surname,
        phone_number=user.phone_number,
        date_of_birth=user.date_of_birth,
        address=user.address.street,
        city=user.address.city,
        state=user.address.state,
        zip_code=user.address.zip_code
    )
    try:
        with util.transaction() as session:
            session.add(db_user)
            session.commit()
    except IntegrityError as e:
        if does_email_exist(user.email):
            raise UserExists('User already exists') from e
        raise RegistrationFailed('Could not create user') from e
    except OperationalError as e:
        raise Unavailable('Database is temporarily unavailable') from e
    except SQLAlchemyError as e:
        logger.debug(e)
        raise RegistrationFailed('Could not create user') from e
    return db_user.to_domain()
