#!/usr/bin/env python3
"""
Settings loader for Inkwell.
Supports configuration from inkwell.yml, inkwell.yaml or inkwell.json files.
"""

import os
import json
import yaml
from dataclasses import dataclass, fields
from typing import Dict, Any, Optional


@dataclass(frozen=True)
class SiteConfig:
    """Explicit build configuration handed to the repository, renderer and builder."""
    content_dir: str = 'content'
    output_dir: str = 'output'
    templates_dir: Optional[str] = None
    blog_slug: str = 'blog'
    words_per_minute: int = 350
    excerpt_length: int = 256
    highlight_style: str = 'default'
    site_url: Optional[str] = None
    site_title: Optional[str] = None
    site_description: Optional[str] = None
    workers: int = 0
    minify: bool = False

    def __post_init__(self):
        if self.words_per_minute <= 0:
            raise ValueError(f"words_per_minute must be positive, got {self.words_per_minute}")
        if self.excerpt_length < 0:
            raise ValueError(f"excerpt_length must not be negative, got {self.excerpt_length}")
        if not self.blog_slug.strip('/'):
            raise ValueError("blog_slug must not be empty")
        # Normalise so URL joins never double up slashes
        object.__setattr__(self, 'blog_slug', self.blog_slug.strip('/'))
        if self.site_url:
            object.__setattr__(self, 'site_url', self.site_url.rstrip('/'))

    def post_path(self, content_id: str) -> str:
        """Site-absolute path of a post, e.g. /blog/my-post."""
        return f"/{self.blog_slug}/{content_id}"

    def absolute_url(self, path: str) -> str:
        if not self.site_url:
            raise ValueError("site_url is not configured")
        return f"{self.site_url}/{path.lstrip('/')}"


class InkwellSettings:
    """Load and manage Inkwell configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'content': 'content',
        'output': 'output',
        'templates': None,
        'blog_slug': 'blog',
        'words_per_minute': 350,
        'excerpt_length': 256,
        'highlight_style': 'default',
        'site_url': None,
        'site_title': None,
        'site_description': None,
        'workers': 0,
        'minify': False,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['inkwell.yml', 'inkwell.yaml', 'inkwell.json']

    # Settings keys mapped to SiteConfig fields
    CONFIG_FIELDS = {
        'content': 'content_dir',
        'output': 'output_dir',
        'templates': 'templates_dir',
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
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings

        Raises:
            ValueError: The configuration file is not valid YAML/JSON or not a mapping
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            if not isinstance(loaded_settings, dict):
                raise ValueError(f"Configuration file {config_file} must contain a mapping")
            unknown = set(loaded_settings) - set(self.DEFAULT_SETTINGS)
            if unknown:
                raise ValueError(f"Unknown settings in {config_file}: {', '.join(sorted(unknown))}")
            self.settings.update(loaded_settings)

        # SITE_URL from the environment fills in when nothing else sets it
        if not self.settings.get('site_url') and self.environ.get('SITE_URL'):
            self.settings['site_url'] = self.environ['SITE_URL']

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
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        if file_format not in ['yml', 'yaml', 'json']:
            raise ValueError(f"Unsupported config file format: {file_format}")

        filename = f'inkwell.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        with open(config_path, 'w', encoding='utf-8') as f:
            if file_format in ['yml', 'yaml']:
                f.write("# Inkwell Configuration File\n\n")
                f.write("# Site information\n")
                f.write("site_url: https://example.com\n")
                f.write("site_title: My Blog\n")
                f.write("site_description: Notes on software\n\n")
                f.write("# Build settings\n")
                f.write("content: content\n")
                f.write("output: output\n")
                f.write("blog_slug: blog\n")
                f.write("workers: 0  # 0 picks automatically\n")
                f.write("minify: false  # also write syntax.min.css\n\n")
                f.write("# Content settings\n")
                f.write("words_per_minute: 350\n")
                f.write("excerpt_length: 256\n")
                f.write("highlight_style: default  # any Pygments style\n")
            elif file_format == 'json':
                sample_config = self.DEFAULT_SETTINGS.copy()
                sample_config.update({
                    'site_url': 'https://example.com',
                    'site_title': 'My Blog',
                    'site_description': 'Notes on software',
                })
                del sample_config['templates']
                json.dump(sample_config, f, indent=2)

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
            if value is not None and key in self.DEFAULT_SETTINGS:
                merged[key] = value

        return merged

    def to_config(self, settings: Optional[Dict[str, Any]] = None) -> SiteConfig:
        """Build a SiteConfig from a settings dictionary (defaults to the loaded settings)."""
        settings = self.settings if settings is None else settings
        field_names = {f.name for f in fields(SiteConfig)}
        values = {}
        for key, value in settings.items():
            name = self.CONFIG_FIELDS.get(key, key)
            if name in field_names and value is not None:
                values[name] = os.path.expanduser(value) if name.endswith('_dir') else value
        return SiteConfig(**values)
