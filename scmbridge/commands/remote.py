"""
Remote URL commands for scmbridge.

    scmbridge match https://github.com/org/app.git git@github.com:org/app
    scmbridge check-url https://github.com/org/app.git
"""

import click

from ..cli_utils import get_config, standard_command
from ..domain.remote_url import matches, parse_remote_url
from ..errors import ParseError
from ..exit_codes import NETWORK_ERROR, NO_MATCH
from ..output import emit
from ..services.remote_check_service import RemoteCheckService
from .publish import build_git_client


def _describe(url):
    try:
        parsed = parse_remote_url(url)
    except ParseError as e:
        return {'url': url, 'error': e.reason}
    return {
        'url': url,
        'scheme': parsed.effective_scheme,
        'host': parsed.normalized_host(),
        'path': parsed.normalized_path(),
    }


@click.command('match')
@click.argument('url_a')
@click.argument('url_b')
@click.pass_context
@standard_command
def match_cmd(ctx, url_a, url_b):
    """Check whether two URLs name the same repository.

    Scheme, port, user name, a trailing ".git" and a trailing "/" are
    ignored. Exits with status 64 when the URLs differ.

    \b
    Examples:
        scmbridge match https://github.com/org/app.git git@github.com:org/app
    """
    same = matches(url_a, url_b)
    emit([{'match': same, 'a': _describe(url_a), 'b': _describe(url_b)}])
    if not same:
        ctx.exit(NO_MATCH)


@click.command('check-url')
@click.argument('url')
@click.pass_context
@standard_command
def check_url_cmd(ctx, url):
    """Check that URL is a reachable git repository.

    URLs containing "$" are set by variables and are accepted unchecked.
    """
    config = get_config(ctx)
    check = RemoteCheckService(build_git_client(config)).check_url(url)
    emit([check])
    if not check.ok:
        ctx.exit(NETWORK_ERROR)
