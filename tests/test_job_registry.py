"""
Tests for the configuration-backed job registry.
"""

from unittest.mock import patch

import pytest

from scmbridge.domain import BranchSpec, PushKind, RemoteConfig
from scmbridge.errors import ConfigurationError
from scmbridge.infra.job_registry import ConfigJobRegistry, ConfiguredJob


@pytest.fixture
def config():
    return {
        'jobs': [
            {
                'name': 'app',
                'remotes': [
                    {'name': 'origin', 'url': ' git@github.com:org/app.git '},
                    'https://backup.example.org/app.git',
                ],
                'branches': ['master', '*/release-*'],
                'pollCommand': 'true',
                'workspace': '/var/ci/app',
                'publisher': {
                    'pushOnlyIfBuildSucceeds': False,
                    'tagsToPush': [
                        {'remoteName': 'origin', 'tagName': 'build-${BUILD_NUMBER}',
                         'createNewTag': True},
                    ],
                },
            },
            {'name': 'quiet', 'remotes': ['a'], 'ignoreNotifyCommit': True},
            {'name': 'broken', 'remotes': 'not-a-list'},
        ]
    }


class TestConfiguredJob:
    """Tests for ConfiguredJob."""

    def test_remotes(self, config):
        job = ConfigJobRegistry(config).get('app')
        assert job.remotes() == [
            RemoteConfig('git@github.com:org/app.git', name='origin'),
            RemoteConfig('https://backup.example.org/app.git'),
        ]

    def test_branch_specs(self, config):
        job = ConfigJobRegistry(config).get('app')
        assert job.branch_specs() == [BranchSpec('master'), BranchSpec('*/release-*')]

    def test_branches_default_to_any(self, config):
        job = ConfigJobRegistry(config).get('quiet')
        assert job.branch_specs() == [BranchSpec('**')]

    def test_opt_out(self, config):
        registry = ConfigJobRegistry(config)
        assert registry.get('quiet').is_notify_commit_disabled()
        assert not registry.get('app').is_notify_commit_disabled()

    def test_publish_policy(self, config):
        policy = ConfigJobRegistry(config).get('app').publish_policy()
        assert not policy.push_only_if_build_succeeds
        tag = policy.actions(PushKind.TAG)[0]
        assert tag.tag_name == 'build-${BUILD_NUMBER}'
        assert tag.create_new_tag

    def test_broken_entry_raises_on_read(self, config):
        job = ConfigJobRegistry(config).get('broken')
        with pytest.raises(ConfigurationError):
            job.remotes()

    def test_non_mapping_entry(self):
        job = ConfiguredJob("just a string", index=4)
        assert job.name == "job-4"
        with pytest.raises(ConfigurationError):
            job.remotes()

    def test_remote_without_url(self):
        job = ConfiguredJob({'name': 'x', 'remotes': [{'name': 'origin'}]})
        with pytest.raises(ConfigurationError):
            job.remotes()

    def test_invalid_publisher(self):
        job = ConfiguredJob({'name': 'x', 'publisher': ['not', 'a', 'mapping']})
        with pytest.raises(ConfigurationError):
            job.publish_policy()

    def test_to_dict_reports_error(self, config):
        data = ConfigJobRegistry(config).get('broken').to_dict()
        assert data['name'] == 'broken'
        assert 'error' in data

    @patch('scmbridge.infra.job_registry.subprocess.Popen')
    def test_trigger_poll_runs_command(self, mock_popen, config):
        ConfigJobRegistry(config).get('app').trigger_poll()
        mock_popen.assert_called_once()
        assert mock_popen.call_args[0][0] == 'true'
        assert mock_popen.call_args[1]['shell'] is True

    @patch('scmbridge.infra.job_registry.subprocess.Popen')
    def test_trigger_poll_without_command(self, mock_popen, config):
        ConfigJobRegistry(config).get('quiet').trigger_poll()
        mock_popen.assert_not_called()


class TestConfigJobRegistry:
    """Tests for ConfigJobRegistry."""

    def test_list_jobs(self, config):
        names = [job.name for job in ConfigJobRegistry(config).list_jobs()]
        assert names == ['app', 'quiet', 'broken']

    def test_no_jobs(self):
        assert list(ConfigJobRegistry({}).list_jobs()) == []

    def test_unknown_job(self, config):
        with pytest.raises(ConfigurationError):
            ConfigJobRegistry(config).get('missing')

    def test_jobs_must_be_list(self):
        with pytest.raises(ConfigurationError):
            list(ConfigJobRegistry({'jobs': {'app': {}}}).list_jobs())
