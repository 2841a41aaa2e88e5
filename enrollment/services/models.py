"""Database models for users and their sessions."""

from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from pytz import UTC
from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, \
    Text
from sqlalchemy.orm import relationship

from .. import domain

db: SQLAlchemy = SQLAlchemy()


def _utcnow() -> datetime:
    return datetime.now(tz=UTC).replace(tzinfo=None)


class DBUser(db.Model):  # type: ignore
    """
    Enrolled users.

    +---------------+--------------+------+-----+----------------+
    | Field         | Type         | Null | Key | Extra          |
    +---------------+--------------+------+-----+----------------+
    | id            | int          | NO   | PRI | auto_increment |
    | email         | varchar(255) | NO   | UNI |                |
    | password      | varchar(60)  | NO   |     | bcrypt         |
    | ssn           | varchar(60)  | NO   |     | bcrypt         |
    | first_name    | varchar(50)  | NO   |     |                |
    | last_name     | varchar(50)  | NO   |     |                |
    | phone_number  | varchar(16)  | NO   |     |                |
    | date_of_birth | date         | NO   |     |                |
    | address       | varchar(255) | NO   |     |                |
    | city          | varchar(100) | NO   |     |                |
    | state         | char(2)      | NO   |     |                |
    | zip_code      | char(5)      | NO   |     |                |
    | created_at    | datetime     | NO   |     |                |
    +---------------+--------------+------+-----+----------------+
    """

    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(60), nullable=False)
    ssn = Column(String(60), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    phone_number = Column(String(16), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(2), nullable=False)
    zip_code = Column(String(5), nullable=False)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    sessions = relationship('DBSession', back_populates='user')

    def to_domain(self) -> domain.User:
        """Generate a :class:`.domain.User`, leaving the hashes behind."""
        return domain.User(
            user_id=self.id,
            email=self.email,
            name=domain.UserFullName(
                forename=self.first_name,
                surname=self.last_name
            ),
            phone_number=self.phone_number,
            date_of_birth=self.date_of_birth,
            address=domain.PostalAddress(
                street=self.address,
                city=self.city,
                state=self.state,
                zip_code=self.zip_code
            )
        )


class DBSession(db.Model):  # type: ignore
    """
    Active sessions.

    The unique constraint on ``user_id`` backs the one-session-per-user rule
    at the database level.
    """

    __tablename__ = 'sessions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(ForeignKey('users.id'), nullable=False, unique=True,
                     index=True)
    token = Column(Text, nullable=False, unique=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    user = relationship('DBUser', back_populates='sessions')
