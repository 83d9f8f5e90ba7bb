"""
Domain layer for scmbridge.

Contains pure domain objects with no I/O or side effects:
- RemoteConfig / remote URL matching: which repository a job talks to
- BranchSpec: which branches a job builds
- PushAction / PublishPolicy: what a publisher pushes after a build
- NotificationRequest / DispatchOutcome: inbound commit notifications
- CompletedBuild: a finished build unit handed to the publisher
- ActionOutcome / PublishResult: what the publisher did
"""

from .remote_url import ParsedURL, parse_remote_url, matches
from .remote import RemoteConfig
from .branch_spec import BranchSpec
from .push_action import PushKind, PushAction, PublishPolicy
from .notification import NotificationRequest, DispatchOutcome
from .build import BuildResult, CompletedBuild, MergeTarget
from .job import Job
from .operation import (
    ActionStatus,
    ActionOutcome,
    PublishStatus,
    PublishState,
    PublishResult,
)

__all__ = [
    'ParsedURL',
    'parse_remote_url',
    'matches',
    'RemoteConfig',
    'BranchSpec',
    'PushKind',
    'PushAction',
    'PublishPolicy',
    'NotificationRequest',
    'DispatchOutcome',
    'BuildResult',
    'CompletedBuild',
    'MergeTarget',
    'Job',
    'ActionStatus',
    'ActionOutcome',
    'PublishStatus',
    'PublishState',
    'PublishResult',
]
