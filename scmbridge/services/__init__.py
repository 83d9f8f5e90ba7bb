"""
Service layer for scmbridge.

Contains business logic that orchestrates domain objects and infrastructure:
- CommitNotifier: Commit notification dispatch to jobs
- GitPublisher: Post-build pushes of tags, branches and notes
- RemoteCheckService: Repository URL validation

Services are the primary API for commands to use.
They handle coordination between infrastructure and domain layers.
"""

from .notify_service import CommitNotifier, JobDecision
from .publish_service import GitPublisher, PublishOptions
from .remote_check_service import RemoteCheckService, UrlCheck

__all__ = [
    'CommitNotifier',
    'JobDecision',
    'GitPublisher',
    'PublishOptions',
    'RemoteCheckService',
    'UrlCheck',
]
