"""
Common CLI utilities and decorators for consistent command behavior.
"""

import sys
import click
from functools import wraps

from .config import load_config, configure_logging
from .errors import ConfigurationError
from .exit_codes import CONFIG_ERROR, INTERRUPTED, CommandError
from .output import emit_error


def get_config(ctx: click.Context) -> dict:
    """Load (once per invocation) the configuration selected on the command line."""
    obj = ctx.ensure_object(dict)
    if 'config' not in obj:
        config = load_config(obj.get('config_path'))
        configure_logging(config, obj.get('verbose', False))
        obj['config'] = config
    return obj['config']


def standard_command(func):
    """
    Decorator that provides standard CLI error handling:
    - CommandError exits with its own exit code
    - ConfigurationError exits with CONFIG_ERROR
    - Errors are reported on stderr as JSON
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            emit_error("Interrupted by user", type="interrupted")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            context = None
            if hasattr(e, 'succeeded'):
                context = {'succeeded': e.succeeded, 'failed': e.failed}
            emit_error(str(e), type=type(e).__name__, context=context)
            sys.exit(e.exit_code)
        except ConfigurationError as e:
            emit_error(str(e), type="config_error")
            sys.exit(CONFIG_ERROR)

    return wrapper


pretty_option = click.option(
    '--pretty', is_flag=True, help='Display as a table instead of JSONL'
)
