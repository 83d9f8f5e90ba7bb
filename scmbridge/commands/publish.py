"""
Post-build publish command for scmbridge.

Run by the CI host after a build finishes:

    scmbridge publish app --commit $GIT_COMMIT --number $BUILD_NUMBER \\
        --result SUCCESS --branch master --env RELEASE=1.2
"""

import os
from typing import Optional

import click

from ..cli_utils import get_config, pretty_option, standard_command
from ..domain.build import BuildResult, CompletedBuild, MergeTarget
from ..exit_codes import PartialSuccessError
from ..infra.git_client import GitClient
from ..infra.job_registry import ConfigJobRegistry
from ..output import emit
from ..services.publish_service import GitPublisher, PublishOptions


def build_git_client(config: dict, max_timeout: Optional[float] = None) -> GitClient:
    """
    GitClient configured from the git section of the configuration.

    With max_timeout, git commands are killed no later than that, so a push
    abandoned by the publisher's action timeout does not outlive its phase.
    """
    git_config = config.get('git', {})
    env = {}
    if git_config.get('user_name'):
        env['GIT_COMMITTER_NAME'] = git_config['user_name']
        env['GIT_AUTHOR_NAME'] = git_config['user_name']
    if git_config.get('user_email'):
        env['GIT_COMMITTER_EMAIL'] = git_config['user_email']
        env['GIT_AUTHOR_EMAIL'] = git_config['user_email']
    timeout = float(git_config.get('timeout_seconds', 120))
    if max_timeout is not None:
        timeout = min(timeout, max_timeout)
    return GitClient(timeout=timeout, env=env)


def _parse_env(pairs):
    env = {}
    for pair in pairs:
        if '=' not in pair:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint='--env')
        key, value = pair.split('=', 1)
        env[key.strip()] = value
    return env


def _parse_merge_target(value):
    if not value:
        return None
    if '/' not in value:
        raise click.BadParameter("expected REMOTE/BRANCH", param_hint='--merge-target')
    remote, branch = value.split('/', 1)
    return MergeTarget(remote_name=remote, branch=branch)


@click.command('publish')
@click.argument('job_name')
@click.option('--commit', required=True, help='SHA-1 of the revision that was built')
@click.option('--workspace', type=click.Path(file_okay=False),
              help="Working copy of the build (default: the job's workspace)")
@click.option('--result', 'build_result', default='SUCCESS', show_default=True,
              type=click.Choice([r.value for r in BuildResult], case_sensitive=False),
              help='Build result')
@click.option('--number', type=int, default=0, help='Build number')
@click.option('--branch', help='Branch that was built')
@click.option('--env', 'env_pairs', multiple=True, metavar='KEY=VALUE',
              help='Characteristic build variable (repeatable)')
@click.option('--merge-target', help='REMOTE/BRANCH a pre-build merge integrated into')
@click.option('--matrix-child', is_flag=True, help='This is a per-axis matrix sub-build')
@click.option('--matrix-parent', is_flag=True,
              help='This is the aggregating matrix build (publishes like a plain build)')
@pretty_option
@click.pass_context
@standard_command
def publish_cmd(ctx, job_name, commit, workspace, build_result, number, branch,
                env_pairs, merge_target, matrix_child, matrix_parent, pretty):
    """Push tags, branches and notes for a finished build of JOB_NAME.

    What is pushed comes from the job's publisher configuration. Each
    action is reported separately; the exit status is 71 when some
    actions failed.

    \b
    Examples:
        scmbridge publish app --commit 3f2a9c1 --branch master
        scmbridge publish app --commit 3f2a9c1 --result UNSTABLE --pretty
        scmbridge publish app --commit 3f2a9c1 --matrix-child
    """
    if matrix_child and matrix_parent:
        raise click.UsageError("--matrix-child and --matrix-parent are mutually exclusive")

    config = get_config(ctx)
    job = ConfigJobRegistry(config).get(job_name)

    workspace = workspace or job.workspace or os.getcwd()
    build = CompletedBuild(
        job_name=job.name,
        number=number,
        result=BuildResult.parse(build_result),
        commit=commit,
        workspace=os.path.expanduser(workspace),
        remotes=tuple(job.remotes()),
        branch=branch,
        characteristic_env=_parse_env(env_pairs),
        is_aggregation_root=matrix_parent,
        is_matrix_child=matrix_child,
        merge_target=_parse_merge_target(merge_target),
    )

    publish_config = config.get('publish', {})
    options = PublishOptions(
        action_timeout=float(publish_config.get('action_timeout_seconds', 300)),
        parallel=int(publish_config.get('parallel', 1)),
    )
    publisher = GitPublisher(
        git_client=build_git_client(config, max_timeout=options.action_timeout),
        options=options,
    )
    result = publisher.publish(build, job.publish_policy())

    if pretty:
        emit(result.outcomes, pretty=True,
             columns=['kind', 'ref', 'remote', 'status', 'message', 'error'],
             title=f"{build.display_name}: {result.status.value}")
    else:
        emit([result])

    if not result.success:
        raise PartialSuccessError(
            f"{len(result.failed)} of {len(result.outcomes)} push actions failed",
            succeeded=len(result.succeeded),
            failed=len(result.failed),
        )
