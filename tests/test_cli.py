"""
Tests for the scmbridge command line.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from scmbridge.cli import cli
from scmbridge.commands.publish import build_git_client
from scmbridge.errors import PushRejectedError, TransportError


CONFIG = {
    'jobs': [
        {
            'name': 'app',
            'remotes': [{'name': 'origin', 'url': 'https://github.com/org/app.git'}],
            'branches': ['master'],
            'workspace': '/var/ci/app',
            'publisher': {
                'tagsToPush': [
                    {'remoteName': 'origin', 'tagName': 'build-${BUILD_NUMBER}',
                     'tagMessage': 'Built by ${JOB_NAME}', 'createNewTag': True},
                ],
                'branchesToPush': [{'remoteName': 'origin', 'branchName': 'master'}],
            },
        },
        {
            'name': 'quiet',
            'remotes': ['git@github.com:org/app.git'],
            'ignoreNotifyCommit': True,
        },
        {
            'name': 'other',
            'remotes': ['https://github.com/org/other.git'],
        },
    ]
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps(CONFIG))
    return str(path)


def last_json(result):
    return json.loads(result.stdout.strip().splitlines()[-1])


class TestNotifyCommand:
    """Tests for `scmbridge notify`."""

    def test_triggers_matching_job(self, runner, config_file):
        result = runner.invoke(cli, ['--config', config_file, 'notify',
                                     'git@github.com:org/app', '--branches', 'master'])
        assert result.exit_code == 0
        data = last_json(result)
        assert data['triggered'] == ['app']
        assert data['opted_out'] == ['quiet']
        assert data['branches'] == ['master']

    def test_no_match_is_not_an_error(self, runner, config_file):
        result = runner.invoke(cli, ['--config', config_file, 'notify',
                                     'https://github.com/org/app.git', '--branches', 'topic'])
        assert result.exit_code == 0
        assert last_json(result)['triggered'] == []

    def test_strict_exits_when_nothing_triggered(self, runner, config_file):
        result = runner.invoke(cli, ['--config', config_file, 'notify',
                                     'https://example.com/none.git', '--strict'])
        assert result.exit_code == 64

    def test_pretty(self, runner, config_file):
        result = runner.invoke(cli, ['--config', config_file, 'notify',
                                     'https://github.com/org/app.git', '--pretty'])
        assert result.exit_code == 0
        assert 'app' in result.stdout


class TestMatchCommand:
    """Tests for `scmbridge match`."""

    def test_match(self, runner):
        result = runner.invoke(cli, ['match', 'https://someone@github.com/org/app.git',
                                     'git@github.com:org/app'])
        assert result.exit_code == 0
        data = last_json(result)
        assert data['match'] is True
        assert data['a']['host'] == 'github.com'
        assert data['b']['path'] == 'org/app'

    def test_no_match(self, runner):
        result = runner.invoke(cli, ['match', 'https://github.com/org/app', 'https://github.com/org/b'])
        assert result.exit_code == 64
        assert last_json(result)['match'] is False

    def test_unparseable(self, runner):
        result = runner.invoke(cli, ['match', 'http://', 'http://'])
        assert result.exit_code == 64
        assert 'error' in last_json(result)['a']


class TestCheckUrlCommand:
    """Tests for `scmbridge check-url`."""

    @patch('scmbridge.commands.remote.build_git_client')
    def test_reachable(self, mock_build, runner, config_file):
        mock_build.return_value.head_revision.return_value = 'f' * 40
        result = runner.invoke(cli, ['--config', config_file, 'check-url',
                                     'https://github.com/org/app.git'])
        assert result.exit_code == 0
        assert last_json(result)['head'] == 'f' * 40

    @patch('scmbridge.commands.remote.build_git_client')
    def test_unreachable(self, mock_build, runner, config_file):
        mock_build.return_value.head_revision.side_effect = TransportError('git ls-remote failed')
        result = runner.invoke(cli, ['--config', config_file, 'check-url',
                                     'https://github.com/org/gone.git'])
        assert result.exit_code == 68
        assert last_json(result)['ok'] is False


class TestJobsCommand:
    """Tests for `scmbridge jobs`."""

    def test_list(self, runner, config_file):
        result = runner.invoke(cli, ['--config', config_file, 'jobs'])
        assert result.exit_code == 0
        names = [json.loads(line)['name'] for line in result.stdout.strip().splitlines()]
        assert names == ['app', 'quiet', 'other']

    def test_filter_by_url(self, runner, config_file):
        result = runner.invoke(cli, ['--config', config_file, 'jobs',
                                     '--url', 'ssh://git@github.com/org/app.git'])
        names = [json.loads(line)['name'] for line in result.stdout.strip().splitlines()]
        assert names == ['app', 'quiet']


class TestPublishCommand:
    """Tests for `scmbridge publish`."""

    @patch('scmbridge.commands.publish.build_git_client')
    def test_publish(self, mock_build, runner, config_file):
        git = MagicMock()
        mock_build.return_value = git
        result = runner.invoke(cli, ['--config', config_file, 'publish', 'app',
                                     '--commit', 'abc123', '--number', '42'])
        assert result.exit_code == 0, result.output
        data = last_json(result)
        assert data['status'] == 'success'
        assert data['succeeded'] == 2
        git.create_or_move_tag.assert_called_once_with(
            '/var/ci/app', 'build-42', 'Built by app', 'abc123', force=False
        )
        git.push_branch.assert_called_once_with(
            '/var/ci/app', 'https://github.com/org/app.git', 'abc123',
            'refs/heads/master', force=False
        )

    @patch('scmbridge.commands.publish.build_git_client')
    def test_failed_build_gated(self, mock_build, runner, config_file):
        git = MagicMock()
        mock_build.return_value = git
        result = runner.invoke(cli, ['--config', config_file, 'publish', 'app',
                                     '--commit', 'abc123', '--result', 'FAILURE'])
        assert result.exit_code == 0
        assert last_json(result)['status'] == 'skipped_policy_gate'
        git.push_branch.assert_not_called()

    @patch('scmbridge.commands.publish.build_git_client')
    def test_partial_failure_exit_code(self, mock_build, runner, config_file):
        git = MagicMock()
        git.push_branch.side_effect = PushRejectedError('git push failed: non-fast-forward')
        mock_build.return_value = git
        result = runner.invoke(cli, ['--config', config_file, 'publish', 'app',
                                     '--commit', 'abc123'])
        assert result.exit_code == 71
        records = [json.loads(line) for line in result.stdout.strip().splitlines()]
        publish = [r for r in records if r.get('type') == 'publish']
        assert publish[0]['failed'] == 1

    def test_unknown_job(self, runner, config_file):
        result = runner.invoke(cli, ['--config', config_file, 'publish', 'nope',
                                     '--commit', 'abc123'])
        assert result.exit_code == 66

    def test_matrix_flags_exclusive(self, runner, config_file):
        result = runner.invoke(cli, ['--config', config_file, 'publish', 'app', '--commit',
                                     'abc123', '--matrix-child', '--matrix-parent'])
        assert result.exit_code == 2

    @patch('scmbridge.commands.publish.build_git_client')
    def test_matrix_parent_publishes_like_plain_build(self, mock_build, runner, config_file):
        git = MagicMock()
        mock_build.return_value = git
        result = runner.invoke(cli, ['--config', config_file, 'publish', 'app',
                                     '--commit', 'abc123', '--number', '42', '--matrix-parent'])
        assert result.exit_code == 0, result.output
        assert last_json(result)['succeeded'] == 2
        git.create_or_move_tag.assert_called_once()
        git.push_branch.assert_called_once()

    @patch('scmbridge.commands.publish.build_git_client')
    def test_matrix_child_publishes_nothing(self, mock_build, runner, config_file):
        git = MagicMock()
        mock_build.return_value = git
        result = runner.invoke(cli, ['--config', config_file, 'publish', 'app',
                                     '--commit', 'abc123', '--matrix-child'])
        assert result.exit_code == 0
        assert last_json(result)['status'] == 'skipped_matrix_child'
        git.push_branch.assert_not_called()

    @patch('scmbridge.commands.publish.build_git_client')
    def test_git_timeout_capped_by_action_timeout(self, mock_build, runner, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps(dict(CONFIG, publish={'action_timeout_seconds': 30})))
        runner.invoke(cli, ['--config', str(path), 'publish', 'app', '--commit', 'abc123'])
        assert mock_build.call_args.kwargs['max_timeout'] == 30


class TestBuildGitClient:
    """Tests for build_git_client()."""

    def test_timeout_from_config(self):
        assert build_git_client({'git': {'timeout_seconds': 600}}).timeout == 600

    def test_timeout_capped(self):
        client = build_git_client({'git': {'timeout_seconds': 600}}, max_timeout=30)
        assert client.timeout == 30

    def test_shorter_git_timeout_kept(self):
        assert build_git_client({'git': {'timeout_seconds': 10}}, max_timeout=30).timeout == 10


class TestConfigCommand:
    """Tests for `scmbridge config`."""

    def test_show(self, runner, config_file):
        result = runner.invoke(cli, ['--config', config_file, 'config', 'show'])
        assert result.exit_code == 0
        config = json.loads(result.stdout)
        assert config['jobs'][0]['name'] == 'app'
        assert config['publish']['parallel'] == 1

    def test_show_path(self, runner, config_file):
        result = runner.invoke(cli, ['--config', config_file, 'config', 'show', '--path'])
        assert json.loads(result.stdout)['config_path'] == config_file

    def test_init(self, runner, tmp_path):
        path = tmp_path / 'new.yaml'
        result = runner.invoke(cli, ['--config', str(path), 'config', 'init'])
        assert result.exit_code == 0
        assert path.exists()

        again = runner.invoke(cli, ['--config', str(path), 'config', 'init'])
        assert again.exit_code == 1
