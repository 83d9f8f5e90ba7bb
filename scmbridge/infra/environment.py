"""
Build environment resolution for scmbridge.

The publisher expands ${VAR} references in tag names, messages, branch
names and notes. Values come from the inherited process environment and
the build's characteristic variables; the latter win on conflict.
"""

import os
from string import Template
from typing import Dict, Mapping, Optional

from ..domain.build import CompletedBuild


def expand(text: Optional[str], env: Mapping[str, str]) -> str:
    """
    Expand $VAR and ${VAR} references.

    Unknown variables are left as written, so "${UNSET_VAR}-tag" stays
    "${UNSET_VAR}-tag". "$$" is a literal "$".
    """
    if not text:
        return text or ''
    return Template(text).safe_substitute(env)


class EnvironmentResolver:
    """
    Builds the variable mapping used to expand push action fields.

    Example:
        resolver = EnvironmentResolver()
        env = resolver.resolve(build)
        tag = expand("${GIT_BRANCH}-tag", env)
    """

    def __init__(self, inherited: Optional[Mapping[str, str]] = None):
        """
        Initialize EnvironmentResolver.

        Args:
            inherited: Base environment (default: os.environ at resolve time)
        """
        self._inherited = inherited

    def characteristic(self, build: CompletedBuild) -> Dict[str, str]:
        """Variables that identify the build."""
        env = {
            'JOB_NAME': build.job_name,
            'BUILD_NUMBER': str(build.number),
            'GIT_COMMIT': build.commit,
        }
        if build.branch:
            env['GIT_BRANCH'] = build.branch
        env.update(build.characteristic_env)
        return env

    def resolve(self, build: CompletedBuild) -> Dict[str, str]:
        """Inherited environment overlaid with the build's characteristic variables."""
        inherited = self._inherited if self._inherited is not None else os.environ
        env = dict(inherited)
        env.update(self.characteristic(build))
        return env
