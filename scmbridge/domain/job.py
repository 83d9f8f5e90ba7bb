"""
Job abstraction consumed by the commit notification dispatcher.

The host owns jobs; scmbridge only needs to read a job's remotes and
branch filters, ask whether it opted out of commit notifications, and
fire its polling trigger.
"""

from abc import ABC, abstractmethod
from typing import List

from .branch_spec import BranchSpec
from .remote import RemoteConfig


class Job(ABC):
    """A configured job as seen by the dispatcher."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique job name; used for trigger de-duplication."""

    @abstractmethod
    def remotes(self) -> List[RemoteConfig]:
        """Configured remotes. May raise if the configuration is unreadable."""

    @abstractmethod
    def branch_specs(self) -> List[BranchSpec]:
        """Branches this job builds."""

    def is_notify_commit_disabled(self) -> bool:
        """True if this job ignores commit notifications."""
        return False

    @abstractmethod
    def trigger_poll(self) -> None:
        """Schedule a poll of the job's SCM. Must not block on the build."""
