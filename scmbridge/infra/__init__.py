"""
Infrastructure layer for scmbridge.

Contains abstractions for external systems:
- GitClient: Git command execution (the publisher's transport)
- EnvironmentResolver: Build environment for ${VAR} expansion
- ConfigJobRegistry: Jobs defined in the configuration file

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient
from .environment import EnvironmentResolver, expand
from .job_registry import ConfigJobRegistry, ConfiguredJob

__all__ = [
    'GitClient',
    'EnvironmentResolver',
    'expand',
    'ConfigJobRegistry',
    'ConfiguredJob',
]
