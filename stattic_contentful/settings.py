#!/usr/bin/env python3
"""
Settings loader for the Contentful pipeline.
Supports configuration from contentful.yml, contentful.yaml, or contentful.json files.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional

from .errors import ConfigurationError


class ContentfulSettings:
    """Load and manage build configuration settings."""

    # Options consumed by the pipeline itself rather than the plugin
    PIPELINE_SETTINGS = {
        'source': 'src',
        'destination': 'build',
        'templates': 'templates',
        'default_layout': None,
        'clean': False,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['contentful.yml', 'contentful.yaml', 'contentful.json']

    # Environment variables filling in missing credentials
    ENV_VARS = {
        'space_id': 'STATTIC_CONTENTFUL_SPACE_ID',
        'access_token': 'STATTIC_CONTENTFUL_ACCESS_TOKEN',
    }

    def __init__(self, config_dir: str = None, environ: Optional[Dict[str, str]] = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
            environ: Environment mapping, defaults to os.environ
        """
        self.config_dir = config_dir or os.getcwd()
        self.environ = os.environ if environ is None else environ
        self.settings = self.PIPELINE_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from the configuration file if it exists.

        Returns:
            Dictionary of configuration settings

        Raises:
            ConfigurationError: If the file exists but cannot be parsed
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            if not isinstance(loaded_settings, dict):
                raise ConfigurationError(f"Configuration file {config_file} must contain a mapping")
            for alias, key in (('src', 'source'), ('dest', 'destination')):
                if alias in loaded_settings:
                    loaded_settings[key] = loaded_settings.pop(alias)
            self.settings.update(loaded_settings)
            print(f"Loaded configuration from: {os.path.relpath(config_file)}")

        for key, variable in self.ENV_VARS.items():
            if not self.settings.get(key) and self.environ.get(variable):
                self.settings[key] = self.environ[variable]

        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f) or {}
                else:
                    raise ConfigurationError(f"Unsupported config file format: {file_ext}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration file {config_path}: {e}")
        except (IOError, OSError) as e:
            raise ConfigurationError(f"Error reading configuration file {config_path}: {e}")

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        sample_config = {
            'source': 'src',
            'destination': 'build',
            'templates': 'templates',
            'space_id': 'your-space-id',
            'access_token': 'your-delivery-api-token',
            'entries': [
                {'content_type': 'post', 'parent_dir': 'blog', 'template': 'post.html'},
            ],
            'listings': [
                {'path': 'blog/index.html', 'content_type': 'post', 'order': '-sys.createdAt',
                 'limit': 10, 'layout': 'posts.html'},
            ],
        }

        if file_format not in ['yml', 'yaml', 'json']:
            raise ConfigurationError(f"Unsupported config file format: {file_format}")

        filename = f'contentful.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Contentful build configuration\n")
                    f.write("# Credentials can also come from STATTIC_CONTENTFUL_SPACE_ID and\n")
                    f.write("# STATTIC_CONTENTFUL_ACCESS_TOKEN.\n\n")
                    yaml.safe_dump(sample_config, f, sort_keys=False)
                elif file_format == 'json':
                    json.dump(sample_config, f, indent=2)
        except (IOError, OSError) as e:
            raise ConfigurationError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = self.settings.copy()

        for key, value in args_dict.items():
            if value is None:
                continue
            if key == 'content_type':
                # --content-type becomes the remote query filter
                contentful = dict(merged.get('contentful') or {})
                contentful['content_type'] = value
                merged['contentful'] = contentful
            else:
                merged[key] = value

        return merged

    @classmethod
    def split(cls, settings: Dict[str, Any]):
        """Separate pipeline options from plugin options."""
        pipeline = {key: settings.get(key, default) for key, default in cls.PIPELINE_SETTINGS.items()}
        plugin = {key: value for key, value in settings.items() if key not in cls.PIPELINE_SETTINGS}
        return pipeline, plugin
