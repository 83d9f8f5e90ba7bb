"""
Remote URL validation for scmbridge.

Checks a repository URL entered in a job definition before it is saved:
blank values are rejected, values built from variables are accepted
as-is, anything else must answer an ls-remote.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any

from ..errors import TransportError
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UrlCheck:
    """Result of validating a repository URL."""
    url: str
    ok: bool
    message: str = ""
    head: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {'url': self.url, 'ok': self.ok}
        if self.message:
            result['message'] = self.message
        if self.head:
            result['head'] = self.head
        return result


class RemoteCheckService:
    """
    Validates repository URLs against the remote.

    Example:
        check = RemoteCheckService().check_url("https://github.com/org/repo.git")
        if not check.ok:
            print(check.message)
    """

    def __init__(self, git_client: Optional[GitClient] = None):
        self.git = git_client or GitClient()

    def check_url(self, value: Optional[str]) -> UrlCheck:
        url = (value or '').strip()
        if not url:
            return UrlCheck(url='', ok=False, message="Please enter Git repository.")

        if '$' in url:
            # set by variable, can't validate
            return UrlCheck(url=url, ok=True, message="URL uses variables, not checked")

        try:
            head = self.git.head_revision(url, "HEAD")
        except TransportError as e:
            logger.debug(f"ls-remote {url} failed: {e.stderr or e}")
            return UrlCheck(url=url, ok=False, message=f"Failed to connect to repository : {e}")

        return UrlCheck(url=url, ok=True, head=head)
