"""
Remote URL identity for scmbridge.

Decides whether two repository URL strings, possibly written in different
transport syntaxes, name the same remote endpoint. Accepted families:

    scheme://[user@]host[:port]/path[.git]   (https, http, git, ssh, file, ...)
    [user@]host:path[.git]                   (SCP-like, implied ssh)
    /some/local/path, relative/path          (local repositories)

Two URLs match when their normalized host and path are equal. Scheme,
port and user-info are ignored, so the same repository reachable over
https and ssh only needs to be registered once.

The relation is pairwise. It is symmetric, and reflexive for any parseable
non-blank value, but it is not guaranteed to be transitive for pathological
input (for example mixed local and network forms). Job configurations rely
on this loose matching, so it is kept as it is rather than tightened.
"""

import re
import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import ParseError

logger = logging.getLogger(__name__)

# User-info runs to the last '@' before the path, so passwords may hold '@'.
_SCHEME_URL = re.compile(
    r'^(?P<scheme>[A-Za-z][A-Za-z0-9+.\-]*)://'
    r'(?:(?P<user>[^/]*)@)?'
    r'(?P<host>\[[^\]]*\]|[^/:]*)'
    r'(?::(?P<port>\d*))?'
    r'(?P<path>/.*)?$'
)

_SCP_URL = re.compile(
    r'^(?:(?P<user>[^@/:]+)@)?'
    r'(?P<host>[^@/:\s]{2,}):'
    r'(?!//)(?P<path>.+)$'
)

_WHITESPACE = re.compile(r'\s')


@dataclass(frozen=True)
class ParsedURL:
    """A remote URL split into its parts. scheme is None for SCP and local forms."""
    scheme: Optional[str]
    user_info: Optional[str]
    host: str
    port: Optional[int]
    path: str

    @property
    def effective_scheme(self) -> str:
        """Scheme used for comparison; SCP form is ssh, bare paths are file."""
        if self.scheme:
            return self.scheme.lower()
        return 'ssh' if self.host else 'file'

    def normalized_host(self) -> str:
        return self.host.lower()

    def normalized_path(self) -> str:
        path = self.path.rstrip('/')
        if path.endswith('.git'):
            path = path[:-len('.git')]
        path = path.rstrip('/')
        if self.host:
            # "host:owner/repo" and "ssh://host/owner/repo" are the same path
            path = path.lstrip('/')
        return path


def parse_remote_url(url: str) -> ParsedURL:
    """
    Parse a remote URL string.

    Args:
        url: URL in any accepted syntax

    Returns:
        ParsedURL

    Raises:
        ParseError: if the value is blank or matches no accepted syntax
    """
    if url is None or not url.strip():
        raise ParseError(url or '', 'blank')

    value = url.strip()

    match = _SCHEME_URL.match(value)
    if match:
        scheme = match.group('scheme')
        host = match.group('host') or ''
        path = match.group('path') or ''
        if not host and scheme.lower() != 'file':
            raise ParseError(url, 'missing host')
        if not host and not path:
            raise ParseError(url, 'missing path')
        port = match.group('port')
        return ParsedURL(
            scheme=scheme,
            user_info=match.group('user'),
            host=host,
            port=int(port) if port else None,
            path=path,
        )

    if '://' in value:
        raise ParseError(url, 'malformed scheme URL')

    match = _SCP_URL.match(value)
    if match:
        return ParsedURL(
            scheme=None,
            user_info=match.group('user'),
            host=match.group('host'),
            port=None,
            path=match.group('path'),
        )

    if _WHITESPACE.search(value):
        raise ParseError(url, 'whitespace in local path')

    return ParsedURL(scheme=None, user_info=None, host='', port=None, path=value)


def loosely_matches(lhs: ParsedURL, rhs: ParsedURL) -> bool:
    """Compare two parsed URLs on normalized host and path only."""
    return (
        lhs.normalized_host() == rhs.normalized_host()
        and lhs.normalized_path() == rhs.normalized_path()
    )


def matches(a: str, b: str) -> bool:
    """
    Return True if two remote URL strings name the same repository.

    Never raises: a value that cannot be parsed simply matches nothing.

    Example:
        >>> matches("https://someone@github.com/org/repo.git", "git@github.com:org/repo")
        True
    """
    try:
        lhs = parse_remote_url(a)
        rhs = parse_remote_url(b)
    except ParseError as e:
        logger.debug(f"No match: {e}")
        return False
    return loosely_matches(lhs, rhs)
