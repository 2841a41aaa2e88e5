"""Tests for :mod:`enrollment.services.accounts`."""

from unittest import TestCase, mock
from datetime import date, timedelta

from ... import domain
from ...tests.util import PASSWORD, SSN, create_test_app, make_user
from .. import accounts, sessions, tokens, util
from ..cookies import HeaderCookieReader, MappingCookieReader
from ..exceptions import AuthenticationFailed, ExpiredToken, InvalidToken, \
    SessionCreationFailed, SessionDeletionFailed, Unavailable, UserExists
from ..models import DBSession, DBUser

DAY = 86400


def _registration(email='jane.doe@example.com'):
    return domain.Registration(
        user=domain.User(
            email=email,
            name=domain.UserFullName('Jane', 'Doe'),
            phone_number='+14155552671',
            date_of_birth=date(1990, 4, 1),
            address=domain.PostalAddress('1 Main St', 'Ithaca', 'NY',
                                         '14850')
        ),
        password=PASSWORD,
        ssn=SSN
    )


class AccountsTestCase(TestCase):
    """Runs each test in an application context with a fresh database."""

    def setUp(self):
        self.app = create_test_app(SSN_HASH_ROUNDS=5)
        context = self.app.app_context()
        context.push()
        self.addCleanup(context.pop)

    def tearDown(self):
        util.drop_all()

    def _count(self, model):
        return util.current_session().query(model).count()


class TestSignup(AccountsTestCase):
    """Signup creates a user and logs them in."""

    def test_signup(self):
        """One user row and one session row exist afterwards."""
        user, session = accounts.signup(_registration())
        self.assertIsNotNone(user.user_id)
        self.assertEqual(session.user_id, user.user_id)
        self.assertEqual(self._count(DBUser), 1)
        self.assertEqual(self._count(DBSession), 1)
        self.assertEqual(accounts.authenticate(session.token)[0], user)

    def test_hash_costs(self):
        """Password and SSN are hashed independently, at their own costs."""
        accounts.signup(_registration())
        row = util.current_session().query(DBUser).one()
        self.assertTrue(row.password.startswith('$2b$04$'))
        self.assertTrue(row.ssn.startswith('$2b$05$'))
        self.assertNotIn(SSN, row.ssn)

    def test_session_lifetime(self):
        """The session lasts a day."""
        _, session = accounts.signup(_registration())
        self.assertTrue(DAY - 10 <= session.expires <= DAY)

    def test_duplicate(self):
        """Signing up twice, in any case, is refused without writing."""
        accounts.signup(_registration('user@example.com'))
        with self.assertRaises(UserExists):
            accounts.signup(_registration('User@Example.com'))
        self.assertEqual(self._count(DBUser), 1)
        self.assertEqual(self._count(DBSession), 1)

    @mock.patch(f'{accounts.__name__}.sessions.replace')
    def test_session_creation_failed(self, mock_replace):
        """If the session can't be created, the user still exists."""
        mock_replace.side_effect = SessionCreationFailed('nope')
        with self.assertRaises(SessionCreationFailed):
            accounts.signup(_registration())
        self.assertEqual(self._count(DBUser), 1)
        self.assertEqual(self._count(DBSession), 0)

    @mock.patch('retry.api.time.sleep')
    @mock.patch(f'{accounts.__name__}.users.does_email_exist')
    def test_unavailable_is_retried(self, mock_exists, mock_sleep):
        """A database outage is retried before giving up."""
        mock_exists.side_effect = Unavailable('nope')
        with self.assertRaises(Unavailable):
            accounts.signup(_registration())
        self.assertEqual(mock_exists.call_count, 3)
        self.assertEqual(self._count(DBUser), 0)


class TestLogin(AccountsTestCase):
    """Login checks credentials and replaces the user's session."""

    def setUp(self):
        super(TestLogin, self).setUp()
        self.user = make_user('user@example.com')

    def test_login(self):
        user, session = accounts.login('user@example.com', PASSWORD)
        self.assertEqual(user, self.user)
        self.assertEqual(accounts.authenticate(session.token)[1], session)

    def test_email_is_normalized(self):
        user, _ = accounts.login('  User@Example.com ', PASSWORD)
        self.assertEqual(user.user_id, self.user.user_id)

    def test_bad_credentials(self):
        """Wrong password and unknown user look the same."""
        with self.assertRaises(AuthenticationFailed) as wrong:
            accounts.login('user@example.com', 'Wr0ng$ecret')
        with self.assertRaises(AuthenticationFailed) as unknown:
            accounts.login('nobody@example.com', PASSWORD)
        self.assertEqual(str(wrong.exception), str(unknown.exception))
        self.assertEqual(self._count(DBSession), 0)

    def test_single_session(self):
        """Logging in again invalidates the earlier session."""
        _, first = accounts.login('user@example.com', PASSWORD)
        _, second = accounts.login('user@example.com', PASSWORD)
        self.assertNotEqual(first.token, second.token)
        self.assertEqual(self._count(DBSession), 1)
        with self.assertRaises(InvalidToken):
            accounts.authenticate(first.token)
        self.assertEqual(accounts.authenticate(second.token)[1].token,
                         second.token)


class TestAuthenticate(AccountsTestCase):
    """A token is good while it is unexpired and still the active session."""

    def setUp(self):
        super(TestAuthenticate, self).setUp()
        self.user = make_user()

    def _session_issued(self, seconds_ago):
        issued_at = util.now() - timedelta(seconds=seconds_ago)
        token, expires_at = tokens.issue(self.user.user_id, 'foosecret', DAY,
                                         issued_at=issued_at)
        return sessions.replace(self.user.user_id, token, expires_at)

    def test_before_expiry(self):
        session = self._session_issued(DAY - 60)
        user, _ = accounts.authenticate(session.token)
        self.assertEqual(user, self.user)

    def test_after_expiry(self):
        """The embedded expiry wins, even if the record remains."""
        session = self._session_issued(DAY + 1)
        with self.assertRaises(ExpiredToken):
            accounts.authenticate(session.token)

    def test_forged(self):
        """A token signed with another secret is rejected."""
        token, expires_at = tokens.issue(self.user.user_id, 'othersecret',
                                         DAY)
        sessions.replace(self.user.user_id, token, expires_at)
        with self.assertRaises(InvalidToken):
            accounts.authenticate(token)

    def test_not_stored(self):
        """An authentic token with no session record is rejected."""
        token, _ = tokens.issue(self.user.user_id, 'foosecret', DAY)
        with self.assertRaises(InvalidToken):
            accounts.authenticate(token)

    def test_mismatched_user(self):
        """The record must belong to the user named in the token."""
        other = make_user('other@example.com')
        token, expires_at = tokens.issue(self.user.user_id, 'foosecret', DAY)
        sessions.replace(other.user_id, token, expires_at)
        with self.assertRaises(InvalidToken):
            accounts.authenticate(token)


class TestTerminate(AccountsTestCase):
    """Logout removes sessions."""

    def setUp(self):
        super(TestTerminate, self).setUp()
        self.user = make_user()
        _, self.session = accounts.login(self.user.email, PASSWORD)

    def test_terminate_session(self):
        """The session named by the cookie is removed."""
        reader = HeaderCookieReader(f'theme=dark; session={self.session.token}')
        self.assertTrue(accounts.terminate_session(reader))
        self.assertEqual(self._count(DBSession), 0)
        with self.assertRaises(InvalidToken):
            accounts.authenticate(self.session.token)

    def test_terminate_twice(self):
        reader = MappingCookieReader({'session': self.session.token})
        self.assertTrue(accounts.terminate_session(reader))
        self.assertFalse(accounts.terminate_session(reader))

    def test_no_cookie(self):
        self.assertFalse(accounts.terminate_session(HeaderCookieReader(None)))
        self.assertEqual(self._count(DBSession), 1)

    def test_cookie_name_is_configurable(self):
        self.app.config['AUTH_SESSION_COOKIE_NAME'] = 'enroll_session'
        reader = MappingCookieReader({'session': self.session.token})
        self.assertFalse(accounts.terminate_session(reader))
        reader = MappingCookieReader({'enroll_session': self.session.token})
        self.assertTrue(accounts.terminate_session(reader))

    def test_terminate_all(self):
        self.assertEqual(accounts.terminate_all(self.user.user_id), 1)
        self.assertEqual(accounts.terminate_all(self.user.user_id), 0)

    @mock.patch(f'{accounts.__name__}.sessions.delete_by_token')
    def test_store_error(self, mock_delete):
        """Store errors are left for the caller to handle."""
        mock_delete.side_effect = SessionDeletionFailed('nope')
        with self.assertRaises(SessionDeletionFailed):
            accounts.terminate_session(
                MappingCookieReader({'session': self.session.token})
            )
