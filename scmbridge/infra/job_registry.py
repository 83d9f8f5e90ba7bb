"""
Configuration-backed job registry for scmbridge.

Reads job definitions from the "jobs" section of the configuration:

    jobs:
      - name: app
        remotes:
          - url: git@github.com:org/app.git
            name: origin
        branches: ["master", "*/release-*"]
        ignoreNotifyCommit: false
        pollCommand: "ci-cli build app"
        workspace: /var/ci/app
        publisher:
          pushOnlyIfBuildSucceeds: true
          forcePush: false
          tagsToPush:
            - {remoteName: origin, tagName: "build-${BUILD_NUMBER}", createNewTag: true}

Job entries are parsed lazily, so one broken entry only affects itself.
"""

import subprocess
import logging
from typing import Any, Dict, Iterator, List, Optional

from ..domain.branch_spec import BranchSpec
from ..domain.job import Job
from ..domain.push_action import PublishPolicy
from ..domain.remote import RemoteConfig
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


class ConfiguredJob(Job):
    """A job defined in the scmbridge configuration file."""

    def __init__(self, data: Dict[str, Any], index: int = 0):
        self._data = data if isinstance(data, dict) else {}
        self._valid = isinstance(data, dict)
        self._name = str(self._data.get('name') or f"job-{index}")

    @property
    def name(self) -> str:
        return self._name

    def _require_valid(self) -> None:
        if not self._valid:
            raise ConfigurationError(f"Job entry {self._name} is not a mapping")

    def remotes(self) -> List[RemoteConfig]:
        self._require_valid()
        raw = self._data.get('remotes')
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ConfigurationError(f"Job {self._name}: 'remotes' must be a list")
        remotes = []
        for entry in raw:
            if isinstance(entry, str):
                entry = {'url': entry}
            if not isinstance(entry, dict) or not entry.get('url'):
                raise ConfigurationError(f"Job {self._name}: remote entry without url: {entry!r}")
            remotes.append(RemoteConfig.from_dict(entry))
        return remotes

    def branch_specs(self) -> List[BranchSpec]:
        self._require_valid()
        raw = self._data.get('branches')
        if raw is None:
            return [BranchSpec('**')]
        if isinstance(raw, str):
            raw = [raw]
        if not isinstance(raw, list):
            raise ConfigurationError(f"Job {self._name}: 'branches' must be a list")
        return [BranchSpec(str(b)) for b in raw]

    def is_notify_commit_disabled(self) -> bool:
        self._require_valid()
        return bool(self._data.get('ignoreNotifyCommit', False))

    @property
    def poll_command(self) -> Optional[str]:
        return self._data.get('pollCommand')

    @property
    def workspace(self) -> Optional[str]:
        return self._data.get('workspace')

    def publish_policy(self) -> PublishPolicy:
        """Publisher configuration of this job."""
        self._require_valid()
        raw = self._data.get('publisher')
        if raw is not None and not isinstance(raw, dict):
            raise ConfigurationError(f"Job {self._name}: 'publisher' must be a mapping")
        try:
            return PublishPolicy.from_dict(raw)
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Job {self._name}: invalid publisher: {e}") from e

    def trigger_poll(self) -> None:
        """Launch the job's poll command without waiting for it."""
        command = self.poll_command
        if not command:
            logger.info(f"Poll requested for {self._name} (no pollCommand configured)")
            return
        logger.info(f"Triggering poll for {self._name}: {command}")
        subprocess.Popen(
            command,
            shell=True,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {'name': self._name}
        try:
            result['remotes'] = [r.to_dict() for r in self.remotes()]
            result['branches'] = [str(b) for b in self.branch_specs()]
            result['ignoreNotifyCommit'] = self.is_notify_commit_disabled()
        except ConfigurationError as e:
            result['error'] = str(e)
        return result


class ConfigJobRegistry:
    """
    Job registry view over a loaded configuration dict.

    Example:
        registry = ConfigJobRegistry(load_config())
        for job in registry.list_jobs():
            print(job.name)
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config

    def list_jobs(self) -> Iterator[ConfiguredJob]:
        jobs = self.config.get('jobs') or []
        if not isinstance(jobs, list):
            raise ConfigurationError("'jobs' must be a list of job definitions")
        for index, data in enumerate(jobs):
            yield ConfiguredJob(data, index)

    def get(self, name: str) -> ConfiguredJob:
        for job in self.list_jobs():
            if job.name == name:
                return job
        raise ConfigurationError(f"No job named {name!r} is configured")
