"""
Unit tests for scmbridge.config module
"""
import unittest
import tempfile
import os
import shutil
import json
import logging
from pathlib import Path
from unittest.mock import patch

import yaml

from scmbridge.config import (
    load_config,
    save_config,
    get_config_path,
    get_default_config,
    get_example_config,
    configure_logging,
    merge_configs,
)
from scmbridge.errors import ConfigurationError


class TestConfigManagement(unittest.TestCase):
    """Test configuration management functionality"""

    def setUp(self):
        """Set up test environment"""
        self.temp_dir = tempfile.mkdtemp()
        self.original_home = os.environ.get('HOME')
        os.environ['HOME'] = self.temp_dir
        self.original_config = os.environ.pop('SCMBRIDGE_CONFIG', None)
        self.config_dir = Path(self.temp_dir) / '.scmbridge'

    def tearDown(self):
        """Clean up test environment"""
        if self.original_home:
            os.environ['HOME'] = self.original_home
        else:
            del os.environ['HOME']
        if self.original_config is not None:
            os.environ['SCMBRIDGE_CONFIG'] = self.original_config
        shutil.rmtree(self.temp_dir)

    def test_get_default_config(self):
        """Test default configuration structure"""
        config = get_default_config()

        for section in ('logging', 'git', 'notify', 'publish', 'jobs'):
            self.assertIn(section, config)

        self.assertEqual(config['publish']['action_timeout_seconds'], 300)
        self.assertEqual(config['notify']['parallel'], 1)
        self.assertEqual(config['jobs'], [])

    def test_load_config_no_file(self):
        """Test loading config when no file exists"""
        config = load_config()
        self.assertEqual(config['git']['timeout_seconds'],
                         get_default_config()['git']['timeout_seconds'])

    def test_default_path(self):
        """Test default save location when nothing exists yet"""
        self.assertEqual(get_config_path(), self.config_dir / 'config.yaml')

    def test_load_config_json_file(self):
        """Test loading config from JSON file"""
        self.config_dir.mkdir()
        config_path = self.config_dir / 'config.json'
        with open(config_path, 'w') as f:
            json.dump({'publish': {'parallel': 4}, 'logging': {'level': 'DEBUG'}}, f)

        config = load_config()

        self.assertEqual(config['publish']['parallel'], 4)
        # Untouched keys keep their defaults
        self.assertEqual(config['publish']['action_timeout_seconds'], 300)
        self.assertEqual(config['logging']['level'], 'DEBUG')

    def test_load_config_toml_file(self):
        """Test loading config from TOML file"""
        self.config_dir.mkdir()
        (self.config_dir / 'config.toml').write_text(
            '[git]\ntimeout_seconds = 15\n\n[[jobs]]\nname = "app"\nremotes = ["a"]\n'
        )

        config = load_config()

        self.assertEqual(config['git']['timeout_seconds'], 15)
        self.assertEqual(config['jobs'], [{'name': 'app', 'remotes': ['a']}])

    def test_load_config_yaml_file(self):
        """Test loading config from YAML file"""
        self.config_dir.mkdir()
        (self.config_dir / 'config.yaml').write_text(
            'notify:\n  parallel: 2\njobs:\n  - name: app\n    remotes: [a]\n'
        )

        config = load_config()

        self.assertEqual(config['notify']['parallel'], 2)
        self.assertEqual(config['jobs'][0]['name'], 'app')

    def test_explicit_path(self):
        """Test loading an explicit config file"""
        path = Path(self.temp_dir) / 'elsewhere.json'
        path.write_text(json.dumps({'git': {'user_name': 'ci'}}))

        config = load_config(path)

        self.assertEqual(config['git']['user_name'], 'ci')

    def test_config_env_var_path(self):
        """Test SCMBRIDGE_CONFIG points at the config file"""
        path = Path(self.temp_dir) / 'ci.yaml'
        path.write_text('git:\n  user_email: ci@example.com\n')

        with patch.dict(os.environ, {'SCMBRIDGE_CONFIG': str(path)}):
            self.assertEqual(get_config_path(), path)
            config = load_config()

        self.assertEqual(config['git']['user_email'], 'ci@example.com')

    def test_invalid_file_raises(self):
        """Test malformed config is reported"""
        self.config_dir.mkdir()
        (self.config_dir / 'config.json').write_text('{not json')

        with self.assertRaises(ConfigurationError):
            load_config()

    def test_non_mapping_file_raises(self):
        """Test config file must hold a mapping"""
        self.config_dir.mkdir()
        (self.config_dir / 'config.yaml').write_text('- just\n- a list\n')

        with self.assertRaises(ConfigurationError):
            load_config()

    @patch.dict(os.environ, {'SCMBRIDGE_PUBLISH_ACTION_TIMEOUT_SECONDS': '60'})
    def test_environment_override(self):
        """Test environment variable override"""
        config = load_config()
        self.assertEqual(config['publish']['action_timeout_seconds'], 60)

    @patch.dict(os.environ, {'SCMBRIDGE_GIT_USER_NAME': 'builder'})
    def test_environment_override_string(self):
        """Test string values pass through unchanged"""
        config = load_config()
        self.assertEqual(config['git']['user_name'], 'builder')

    def test_save_and_reload_json(self):
        """Test saving configuration to JSON"""
        config = get_example_config()
        path = save_config(config, self.config_dir / 'config.json')

        self.assertTrue(path.exists())
        self.assertEqual(load_config(path)['jobs'], config['jobs'])

    def test_save_yaml(self):
        """Test saving configuration to YAML"""
        config = get_example_config()
        path = save_config(config, self.config_dir / 'config.yaml')

        with open(path) as f:
            saved = yaml.safe_load(f)
        self.assertEqual(saved['jobs'][0]['name'], 'example')

    def test_save_toml_drops_none(self):
        """Test TOML output omits null values"""
        config = get_example_config()
        path = save_config(config, self.config_dir / 'config.toml')

        reloaded = load_config(path)
        self.assertNotIn('refspec', reloaded['jobs'][0]['remotes'][0])
        self.assertEqual(reloaded['jobs'][0]['remotes'][0]['name'], 'origin')


class TestConfigHelpers(unittest.TestCase):
    """Test merge and logging helpers"""

    def test_merge_configs_nested(self):
        base = {'a': {'x': 1, 'y': 2}, 'b': [1]}
        merged = merge_configs(base, {'a': {'y': 3}, 'b': [2]})
        self.assertEqual(merged, {'a': {'x': 1, 'y': 3}, 'b': [2]})

    def test_configure_logging_verbose(self):
        logger = logging.getLogger('scmbridge')
        previous = logger.level
        try:
            configure_logging(get_default_config(), verbose=True)
            self.assertEqual(logger.level, logging.DEBUG)
            configure_logging({'logging': {'level': 'warning'}})
            self.assertEqual(logger.level, logging.WARNING)
        finally:
            logger.setLevel(previous)


if __name__ == '__main__':
    unittest.main()
