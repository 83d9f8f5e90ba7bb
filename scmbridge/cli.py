#!/usr/bin/env python3

import click

from scmbridge.commands.config import config_cmd
from scmbridge.commands.jobs import jobs_cmd
from scmbridge.commands.notify import notify_cmd
from scmbridge.commands.publish import publish_cmd
from scmbridge.commands.remote import check_url_cmd, match_cmd


@click.group()
@click.version_option(package_name='scmbridge')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False),
              envvar='SCMBRIDGE_CONFIG', help='Configuration file to use')
@click.option('-v', '--verbose', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, config_path, verbose):
    """scmbridge - Git change integration for CI jobs.

    Dispatches commit notifications to the jobs that build a repository,
    and pushes tags, branches and notes back to remotes after a build.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['verbose'] = verbose


# Inbound notifications
cli.add_command(notify_cmd, name='notify')

# Post-build
cli.add_command(publish_cmd, name='publish')

# Remotes and jobs
cli.add_command(match_cmd, name='match')
cli.add_command(check_url_cmd, name='check-url')
cli.add_command(jobs_cmd, name='jobs')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
