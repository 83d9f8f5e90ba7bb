"""
Error taxonomy for scmbridge.

ParseError never leaves the URL matcher, ConfigurationError and
TransportError are caught per push action and turned into outcomes.
Only a build context that cannot be used at all escapes publish().
"""

from typing import Optional, Sequence


class ScmBridgeError(Exception):
    """Base class for all scmbridge errors."""


class ParseError(ScmBridgeError, ValueError):
    """A remote URL matched none of the accepted syntaxes."""

    def __init__(self, url: str, reason: str = "unrecognized syntax"):
        super().__init__(f"Cannot parse remote URL {url!r}: {reason}")
        self.url = url
        self.reason = reason


class ConfigurationError(ScmBridgeError):
    """Job or publisher configuration cannot be used as given."""


class TransportError(ScmBridgeError):
    """A git command against a repository or remote failed."""

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = ""
    ):
        super().__init__(message)
        self.command = list(command) if command else []
        self.returncode = returncode
        self.stderr = stderr


class PushRejectedError(TransportError):
    """The remote refused a non-fast-forward update."""


class TransportTimeoutError(TransportError):
    """A git command did not finish within its time budget."""
