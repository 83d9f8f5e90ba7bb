import click
import json
from pathlib import Path

from ..cli_utils import get_config, standard_command
from ..config import get_config_path, get_example_config, save_config


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@click.pass_context
@standard_command
def show_config(ctx, pretty, path):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    """
    if path:
        config_path = ctx.ensure_object(dict).get('config_path') or get_config_path()
        print(json.dumps({"config_path": str(config_path)}))
        return

    config = get_config(ctx)

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("init")
@click.option("--format", "fmt", type=click.Choice(["yaml", "toml", "json"]), default="yaml",
              show_default=True, help="File format to write")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file")
@click.pass_context
def init_config(ctx, fmt, force):
    """Write an example configuration with one job definition."""
    explicit = ctx.ensure_object(dict).get('config_path')
    if explicit:
        config_path = Path(explicit)
    else:
        config_path = get_config_path().with_suffix(f".{fmt}")

    if config_path.exists() and not force:
        click.echo(f"Configuration already exists at {config_path} (use --force to overwrite)", err=True)
        ctx.exit(1)

    saved = save_config(get_example_config(), config_path)
    click.echo(json.dumps({"config_path": str(saved)}))
