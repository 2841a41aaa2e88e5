"""Provides forms for signup and login."""

from typing import Any, Callable, Optional
from datetime import date
import re

from dateutil.relativedelta import relativedelta
from flask import current_app
from wtforms import DateField, Form, PasswordField, StringField
from wtforms.validators import AnyOf, DataRequired, Email, EqualTo, \
    InputRequired, Length, Optional as OptionalField, Regexp, \
    ValidationError
import pycountry

from .. import domain

MAX_PASSWORD_BYTES = 72
COMMON_PASSWORDS = frozenset(['password', '12345678', 'qwerty'])

PHONE_PATTERN = r'^\+?[1-9]\d{7,14}$'

STATES = sorted(
    subdivision.code.split('-', 1)[1]
    for subdivision in pycountry.subdivisions.get(country_code='US')
    if subdivision.type in ('State', 'District')
)
"""Two-letter codes of the 50 states plus DC."""


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if value else value


def _lower(value: Optional[str]) -> Optional[str]:
    return value.lower() if value else value


def _upper(value: Optional[str]) -> Optional[str]:
    return value.upper() if value else value


def _requires(pattern: str, message: str) -> Callable:
    """Get a validator that fails unless the field matches ``pattern``."""
    expression = re.compile(pattern)

    def _validate(form: Form, field: Any) -> None:
        if field.data and not expression.search(field.data):
            raise ValidationError(message)
    return _validate


def password_length(form: Form, field: Any) -> None:
    if len(field.data) < 8:
        raise ValidationError('Password must be at least 8 characters')
    if len(field.data.encode('utf-8')) > MAX_PASSWORD_BYTES:
        raise ValidationError('Password must be at most 72 bytes')


def not_common(form: Form, field: Any) -> None:
    if field.data.lower() in COMMON_PASSWORDS:
        raise ValidationError('Password is too common')


def minimum_age(form: Form, field: Any) -> None:
    """Date of birth must be at least ``MINIMUM_AGE`` years ago."""
    if field.data is None:  # Unparseable; already reported.
        return
    years = int(current_app.config.get('MINIMUM_AGE', 18))
    if field.data > date.today() - relativedelta(years=years):
        raise ValidationError(f'Must be {years} years old.')


class LoginForm(Form):
    """Log in form."""

    email = StringField('E-mail', filters=[_strip, _lower],
                        validators=[DataRequired(),
                                    Email(message='Invalid email address')])
    password = PasswordField('Password', validators=[DataRequired()])


class RegistrationForm(Form):
    """Signup form: account, personal and address details in one."""

    email = StringField('E-mail', filters=[_strip, _lower],
                        validators=[DataRequired(),
                                    Email(message='Invalid email address')])
    password = PasswordField(
        'Password',
        validators=[
            InputRequired(),
            password_length,
            not_common,
            _requires(r'\d', 'Password must contain a number'),
            _requires('[A-Z]', 'Password must contain an uppercase letter'),
            _requires('[a-z]', 'Password must contain a lowercase letter'),
            _requires(r'[^A-Za-z0-9]',
                      'Password must contain a special character')
        ]
    )
    confirm_password = PasswordField(
        'Confirm password',
        validators=[OptionalField(),
                    EqualTo('password', message='Passwords do not match')]
    )

    first_name = StringField('First name', filters=[_strip],
                             validators=[DataRequired(), Length(max=50)])
    last_name = StringField('Last name', filters=[_strip],
                            validators=[DataRequired(), Length(max=50)])
    phone_number = StringField(
        'Phone number', filters=[_strip],
        validators=[
            DataRequired(),
            Regexp(PHONE_PATTERN,
                   message='Enter a valid phone number (e.g. +14155552671)')
        ]
    )
    date_of_birth = DateField('Date of birth', format='%Y-%m-%d',
                              validators=[InputRequired(), minimum_age])
    ssn = StringField('SSN', filters=[_strip],
                      validators=[DataRequired(),
                                  Regexp(r'^\d{9}$',
                                         message='SSN must be 9 digits')])

    address = StringField('Street address', filters=[_strip],
                          validators=[DataRequired()])
    city = StringField('City', filters=[_strip], validators=[DataRequired()])
    state = StringField(
        'State', filters=[_strip, _upper],
        validators=[DataRequired(),
                    AnyOf(STATES, message='Use a valid 2-letter state code')]
    )
    zip_code = StringField('ZIP code', filters=[_strip],
                           validators=[DataRequired(),
                                       Regexp(r'^\d{5}$',
                                              message='ZIP code must be 5 digits')])

    def to_domain(self) -> domain.Registration:
        """Generate a :class:`.Registration` from this form's data."""
        return domain.Registration(
            user=domain.User(
                email=self.email.data,
                name=domain.UserFullName(
                    forename=self.first_name.data,
                    surname=self.last_name.data
                ),
                phone_number=self.phone_number.data,
                date_of_birth=self.date_of_birth.data,
                address=domain.PostalAddress(
                    street=self.address.data,
                    city=self.city.data,
                    state=self.state.data,
                    zip_code=self.zip_code.data
                )
            ),
            password=self.password.data,
            ssn=self.ssn.data
        )


def field_errors(form: Form) -> dict:
    """Collect form errors as ``{field name: [message, ...]}``."""
    errors: dict = {}
    for name, messages in form.errors.items():
        errors[name] = list(messages)
    return errors
