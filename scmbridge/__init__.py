"""
scmbridge - Git change integration for continuous-integration jobs.

scmbridge connects a CI host to its git remotes in both directions:
commit notifications come in and select the jobs to poll, and after a
build the job's tags, branches and notes go back out.

Quick Start:
    import scmbridge

    # Same repository, different transports
    scmbridge.matches("https://someone@github.com/org/app.git",
                      "git@github.com:org/app")            # True

    # Dispatch a commit notification
    notifier = scmbridge.CommitNotifier()
    request = scmbridge.NotificationRequest(
        "git@github.com:org/app.git", branches_csv="master")
    outcome = notifier.notify(request, registry.list_jobs())
    print(outcome.triggered)

    # Publish a finished build
    publisher = scmbridge.GitPublisher(scmbridge.GitClient(timeout=120))
    result = publisher.publish(build, policy)
    for outcome in result.outcomes:
        print(outcome.describe())

Domain Objects:
    RemoteConfig - A configured remote (name, url, refspec)
    BranchSpec - Branch filter of a job
    PushAction / PublishPolicy - What to push after a build
    NotificationRequest / DispatchOutcome - Commit notifications
    CompletedBuild / PublishResult - Finished builds and their pushes

Services:
    CommitNotifier - Notification dispatch
    GitPublisher - Post-build pushes
    RemoteCheckService - Repository URL validation
"""

__version__ = "0.4.0"

# Domain objects
from .domain import (
    matches,
    parse_remote_url,
    ParsedURL,
    RemoteConfig,
    BranchSpec,
    PushKind,
    PushAction,
    PublishPolicy,
    NotificationRequest,
    DispatchOutcome,
    BuildResult,
    CompletedBuild,
    MergeTarget,
    Job,
    ActionStatus,
    ActionOutcome,
    PublishStatus,
    PublishResult,
)

# Services
from .services import (
    CommitNotifier,
    GitPublisher,
    PublishOptions,
    RemoteCheckService,
)

# Infrastructure
from .infra import GitClient, EnvironmentResolver, ConfigJobRegistry

# Errors
from .errors import (
    ScmBridgeError,
    ParseError,
    ConfigurationError,
    TransportError,
    PushRejectedError,
    TransportTimeoutError,
)

# Configuration
from .config import load_config, save_config

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "matches",
    "parse_remote_url",
    "ParsedURL",
    "RemoteConfig",
    "BranchSpec",
    "PushKind",
    "PushAction",
    "PublishPolicy",
    "NotificationRequest",
    "DispatchOutcome",
    "BuildResult",
    "CompletedBuild",
    "MergeTarget",
    "Job",
    "ActionStatus",
    "ActionOutcome",
    "PublishStatus",
    "PublishResult",
    # Services
    "CommitNotifier",
    "GitPublisher",
    "PublishOptions",
    "RemoteCheckService",
    # Infrastructure
    "GitClient",
    "EnvironmentResolver",
    "ConfigJobRegistry",
    # Errors
    "ScmBridgeError",
    "ParseError",
    "ConfigurationError",
    "TransportError",
    "PushRejectedError",
    "TransportTimeoutError",
    # Configuration
    "load_config",
    "save_config",
]
