"""
Read cookies from an inbound request.

Requests reach us in one of two shapes: with cookies already parsed into a
mapping (as on :attr:`flask.Request.cookies`), or with only the raw
``Cookie`` header, e.g. ``session=abc.def.ghi; theme=dark``. Both are
exposed through :class:`RequestCookieReader`, and :func:`reader_for` picks
the right implementation at the boundary.
"""

from typing import Dict, Mapping, Optional, Union
from abc import ABC, abstractmethod


class RequestCookieReader(ABC):
    """Capability to look up a cookie value by name."""

    @abstractmethod
    def get(self, name: str) -> Optional[str]:
        """Get the value of cookie ``name``, or ``None`` if absent."""


class MappingCookieReader(RequestCookieReader):
    """Reads cookies from a pre-parsed mapping."""

    def __init__(self, cookies: Mapping[str, str]) -> None:
        self._cookies = cookies

    def get(self, name: str) -> Optional[str]:
        return self._cookies.get(name) or None


class HeaderCookieReader(RequestCookieReader):
    """Reads cookies from a raw ``Cookie`` header value."""

    def __init__(self, header: Optional[str]) -> None:
        self._cookies = parse_header(header or '')

    def get(self, name: str) -> Optional[str]:
        return self._cookies.get(name) or None


def parse_header(header: str) -> Dict[str, str]:
    """
    Split a ``Cookie`` header into a dict.

    Pairs are separated by ``;`` and split on the first ``=``, so values may
    themselves contain ``=``. Pairs without a ``=`` are ignored. If a name is
    repeated, the first occurrence wins.
    """
    cookies: Dict[str, str] = {}
    for pair in header.split(';'):
        if '=' not in pair:
            continue
        key, value = pair.split('=', 1)
        key = key.strip()
        if key and key not in cookies:
            cookies[key] = value.strip().strip('"')
    return cookies


def reader_for(source: Union[Mapping[str, str], str, None]) \
        -> RequestCookieReader:
    """Get a :class:`RequestCookieReader` for a parsed mapping or header."""
    if source is None or isinstance(source, str):
        return HeaderCookieReader(source)
    return MappingCookieReader(source)
