#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("scmbridge")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. SCMBRIDGE_CONFIG environment variable
    2. ~/.scmbridge/ directory
    """
    # Check for environment variable override
    if 'SCMBRIDGE_CONFIG' in os.environ:
        path = Path(os.environ['SCMBRIDGE_CONFIG']).expanduser()
        if path.exists():
            return path

    config_dir = Path.home() / '.scmbridge'
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.yaml'


def read_config_file(config_path):
    """Read a JSON, TOML or YAML config file into a dict."""
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ('.yaml', '.yml'):
        import yaml
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config(config_path=None):
    """Load configuration from file.

    Args:
        config_path: Explicit file to read (default: get_config_path())

    Raises:
        ConfigurationError: if the file exists but cannot be parsed
    """
    from .errors import ConfigurationError

    config_path = Path(config_path) if config_path else get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path.exists():
        try:
            file_config = read_config_file(config_path)
        except Exception as e:
            raise ConfigurationError(f"Error loading config from {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

        # Merge file config with defaults
        config = merge_configs(config, file_config)
        logger.debug(f"Loaded configuration from {config_path}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def save_config(config, config_path=None):
    """Save configuration to file."""
    config_path = Path(config_path) if config_path else get_config_path()

    # Create directory if it doesn't exist
    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.suffix.lower() in ['.toml']:
        # tomllib is read-only
        import toml
        with open(config_path, 'w') as f:
            toml.dump(_without_none(config), f)
    elif config_path.suffix.lower() in ['.yaml', '.yml']:
        import yaml
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
    else:
        # Default to JSON format
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def _without_none(value):
    """TOML has no null; drop None values before writing."""
    if isinstance(value, dict):
        return {k: _without_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_without_none(v) for v in value if v is not None]
    return value


def get_default_config():
    """Get default configuration."""
    return {
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        },
        "git": {
            "timeout_seconds": 120,
            "user_name": "",
            "user_email": ""
        },
        "notify": {
            "parallel": 1
        },
        "publish": {
            "action_timeout_seconds": 300,
            "parallel": 1
        },
        "jobs": []
    }


def get_example_config():
    """Default configuration plus one example job."""
    config = get_default_config()
    config["jobs"] = [
        {
            "name": "example",
            "remotes": [
                {"name": "origin", "url": "git@github.com:example/project.git", "refspec": None}
            ],
            "branches": ["master", "*/release-*"],
            "ignoreNotifyCommit": False,
            "pollCommand": "",
            "workspace": "~/ci/workspace/example",
            "publisher": {
                "pushOnlyIfBuildSucceeds": True,
                "forcePush": False,
                "pushMerge": False,
                "tagsToPush": [
                    {
                        "remoteName": "origin",
                        "tagName": "build-${BUILD_NUMBER}",
                        "tagMessage": "Built by ${JOB_NAME}",
                        "createNewTag": True,
                        "forceOverwrite": False
                    }
                ],
                "branchesToPush": [],
                "notesToPush": []
            }
        }
    ]
    return config


def configure_logging(config, verbose=False):
    """Apply the logging section (or --verbose) to the scmbridge logger."""
    level_name = "DEBUG" if verbose else str(config.get("logging", {}).get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    logger.setLevel(level)
    fmt = config.get("logging", {}).get("format")
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: SCMBRIDGE_SECTION_KEY
    For example: SCMBRIDGE_PUBLISH_ACTION_TIMEOUT_SECONDS=60
    """
    env_prefix = "SCMBRIDGE_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key:
                # If we are at the end of the env var, we have found the key to set
                if i + best_match_len == len(key_parts):
                    current_level[matched_key] = typed_value
                    break

                # Otherwise, we descend into the dictionary
                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict, e.g., env var is longer but we found a non-dict value
                    break
            else:
                # No match found
                break

    return config
