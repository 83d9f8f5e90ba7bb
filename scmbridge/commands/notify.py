"""
Commit notification command for scmbridge.

Hook scripts and repository webhooks call this when a repository changes:

    scmbridge notify git@github.com:org/app.git --branches master,release-1.2
"""

import click

from ..cli_utils import get_config, pretty_option, standard_command
from ..domain.notification import NotificationRequest
from ..exit_codes import NO_MATCH
from ..infra.job_registry import ConfigJobRegistry
from ..output import emit
from ..services.notify_service import CommitNotifier


@click.command('notify')
@click.argument('url')
@click.option('--sha', 'sha1', help='SHA-1 of the new commit')
@click.option('--branches', help='Comma-separated branches that changed (default: any)')
@click.option('--strict', is_flag=True, help='Exit with status 64 if no job was triggered')
@pretty_option
@click.pass_context
@standard_command
def notify_cmd(ctx, url, sha1, branches, strict, pretty):
    """Trigger polling of every job that builds URL.

    Jobs are matched by repository URL regardless of transport
    (https, ssh, git:// and scp-style forms are equivalent), then by
    branch when --branches is given. Each job is triggered at most once.

    \b
    Examples:
        scmbridge notify https://github.com/org/app.git
        scmbridge notify git@github.com:org/app.git --branches master
        scmbridge notify ssh://git@host/app --sha 3f2a9c1 --pretty
    """
    config = get_config(ctx)
    registry = ConfigJobRegistry(config)
    notifier = CommitNotifier(parallel=int(config.get('notify', {}).get('parallel', 1)))

    request = NotificationRequest(
        repository_identifier=url,
        commit_id=sha1,
        branches_csv=branches,
    )
    outcome = notifier.notify(request, registry.list_jobs())

    if pretty:
        rows = [{'name': name, 'status': 'triggered'} for name in outcome.triggered]
        rows += [{'name': name, 'status': 'ignores notifications'} for name in outcome.opted_out]
        rows += [{'name': name, 'status': 'skipped', 'error': error}
                 for name, error in outcome.skipped.items()]
        rows += [{'name': name, 'status': 'trigger failed', 'error': error}
                 for name, error in outcome.trigger_failures.items()]
        emit(rows, pretty=True, columns=['name', 'status', 'error'],
             title=f"Notification for {url}")
    else:
        emit([outcome])

    if strict and not outcome.triggered:
        ctx.exit(NO_MATCH)
