"""
Request controllers for the enrollment service.

Controllers take validated-or-not request input, call the account service,
and return ``(data, status, headers)``. They translate service exceptions
into :mod:`werkzeug.exceptions` HTTP exceptions. Controllers that want a
cookie set or cleared put it under the ``cookies`` key of the response data;
the route sets it on the response.
"""

from typing import Tuple

from werkzeug.exceptions import BadRequest

ResponseData = Tuple[dict, int, dict]


class ValidationFailed(BadRequest):
    """Request data failed validation; ``fields`` has per-field messages."""

    def __init__(self, fields: dict,
                 description: str = 'Invalid input') -> None:
        super(ValidationFailed, self).__init__(description)
        self.fields = fields
