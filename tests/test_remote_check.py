"""
Tests for RemoteCheckService.
"""

from unittest.mock import MagicMock

from scmbridge.errors import TransportError
from scmbridge.services.remote_check_service import RemoteCheckService


class TestCheckUrl:
    """Tests for RemoteCheckService.check_url()."""

    def setup_method(self):
        self.git = MagicMock()
        self.service = RemoteCheckService(self.git)

    def test_blank_rejected(self):
        for value in ("", "   ", None):
            check = self.service.check_url(value)
            assert not check.ok
            assert check.message == "Please enter Git repository."
        self.git.head_revision.assert_not_called()

    def test_variables_not_checked(self):
        check = self.service.check_url("https://${HOST}/org/app.git")
        assert check.ok
        self.git.head_revision.assert_not_called()

    def test_reachable(self):
        self.git.head_revision.return_value = "a" * 40
        check = self.service.check_url("  https://github.com/org/app.git ")
        assert check.ok
        assert check.head == "a" * 40
        self.git.head_revision.assert_called_once_with("https://github.com/org/app.git", "HEAD")

    def test_unreachable(self):
        self.git.head_revision.side_effect = TransportError(
            "git ls-remote failed: repository not found",
            stderr="fatal: repository not found",
        )
        check = self.service.check_url("https://github.com/org/missing.git")
        assert not check.ok
        assert check.message == (
            "Failed to connect to repository : git ls-remote failed: repository not found"
        )
        assert check.to_dict()['ok'] is False
