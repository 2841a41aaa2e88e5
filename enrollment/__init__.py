"""
Account enrollment service.

The enrollment service is a Flask application that registers new accounts
and authenticates returning users. Registration collects identity, contact,
and financial (SSN) data, which is validated on the server with the same
rules the browser wizard applies. Passwords and SSNs are stored only as
adaptive one-way hashes.

Context
-------
When a user signs up or logs in, they are issued a session token in the form
of an HTTP-only cookie. The token is a signed JWT that embeds the user ID and
its own expiry, so a stale token can be rejected without a lookup. Each token
is also backed by a record in the session store, which makes it revocable: a
user has at most one active session, and creating a new session (on login)
evicts any prior one. Logging out removes the record and clears the cookie.

Quick start
-----------

.. code-block:: python

   from enrollment.factory import create_web_app

   app = create_web_app()    # Fails fast if JWT_SECRET is not configured.

"""
