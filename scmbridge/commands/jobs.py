import click

from ..cli_utils import get_config, pretty_option, standard_command
from ..errors import ConfigurationError
from ..infra.job_registry import ConfigJobRegistry
from ..output import emit


def _has_remote(job, url):
    try:
        return any(remote.matches_url(url) for remote in job.remotes())
    except ConfigurationError:
        return False


@click.command('jobs')
@click.option('--url', help='Only jobs with a remote matching this URL')
@pretty_option
@click.pass_context
@standard_command
def jobs_cmd(ctx, url, pretty):
    """List configured jobs with their remotes and branches."""
    registry = ConfigJobRegistry(get_config(ctx))

    rows = []
    for job in registry.list_jobs():
        if url and not _has_remote(job, url):
            continue
        row = job.to_dict()
        if pretty:
            row['remotes'] = [r['url'] for r in row.get('remotes', [])]
        rows.append(row)

    columns = ['name', 'remotes', 'branches', 'ignoreNotifyCommit', 'error'] if pretty else None
    emit(rows, pretty=pretty, columns=columns)
