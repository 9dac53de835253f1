"""
Configuration management for dataroom.

This module provides functionality for managing configuration,
including loading from environment variables, files and default values.
"""

import os
import json
import logging
import threading
from typing import Dict, Optional, Any
from copy import deepcopy
import yaml

# Set up logging
logger = logging.getLogger(__name__)


def to_int(value: Any) -> Optional[int]:
    """
    Convert a value to an integer.

    Args:
        value: Value to convert

    Returns:
        Integer value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def to_float(value: Any) -> Optional[float]:
    """
    Convert a value to a float.

    Args:
        value: Value to convert

    Returns:
        Float value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def _env(name: str, current: Any, convert=None) -> Any:
    """Environment value for ``name`` converted, or ``current`` if unset/invalid."""
    raw = os.environ.get(name)
    if raw is None:
        return current
    if convert is None:
        return raw
    value = convert(raw)
    if value is None:
        logger.warning(f"Ignoring invalid value for {name}: {raw!r}")
        return current
    return value


def load_config_file(filepath: str) -> Dict[str, Any]:
    """
    Load configuration from a JSON or YAML file.

    Args:
        filepath: Path to configuration file

    Returns:
        Configuration dictionary
    """
    if filepath.endswith('.json'):
        with open(filepath, 'r') as f:
            return json.load(f) or {}
    elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
        with open(filepath, 'r') as f:
            return yaml.safe_load(f) or {}
    else:
        raise ValueError(f"Unsupported configuration file format: {filepath}")


class Config:
    """
    Configuration manager for dataroom.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            overrides: Optional configuration overrides
        """
        self._lock = threading.RLock()
        self._config = {}
        self._initialized = False

        self.load_config(overrides)

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Load configuration from all sources.

        Precedence: defaults, then environment variables, then overrides.

        Args:
            overrides: Optional configuration overrides
        """
        with self._lock:
            config = self._get_defaults()
            config = self._apply_env_vars(config)

            if overrides:
                config = self._apply_overrides(config, overrides)

            config = self._apply_inferred_values(config)

            self._config = config
            self._initialized = True

            logger.info("Configuration loaded")

    def _get_defaults(self) -> Dict[str, Any]:
        """
        Get default configuration values.

        Returns:
            Default configuration
        """
        return {
            # Environment
            'env': 'dev',

            # Server
            'server': {
                'port': 8080,
                'host': 'localhost'
            },

            # Completion endpoint
            'llm': {
                'endpoint': 'http://localhost:8007/v1/completions',
                'model': 'local',
                'timeout': 120.0    # seconds
            },

            # Numeric analysis
            'analysis': {
                'k': 3,
                'seed': 42,
                'max-iters': 100,
                'empty-cluster': 'keep'   # or 'reinit'
            },

            # Dataset generation
            'generate': {
                'default-rows': 1000,
                'min-rows': 50,
                'max-rows': 5000,
                'fallback-seed': 1337
            },

            # Blank grid shape (rows include the header)
            'dataset': {
                'rows': 8,
                'cols': 4
            },

            # Logging
            'logging': {
                'level': 'info'
            }
        }

    def _apply_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variables to configuration.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        config['env'] = _env('DATAROOM_ENV', config['env'])

        # Server
        config['server']['port'] = _env('PORT', config['server']['port'], to_int)
        config['server']['host'] = _env('HOST', config['server']['host'])

        # Completion endpoint
        config['llm']['endpoint'] = _env('LLM_ENDPOINT', config['llm']['endpoint'])
        config['llm']['model'] = _env('LLM_MODEL', config['llm']['model'])
        config['llm']['timeout'] = _env('LLM_TIMEOUT', config['llm']['timeout'], to_float)

        # Numeric analysis
        config['analysis']['k'] = _env('ANALYSIS_K', config['analysis']['k'], to_int)
        config['analysis']['seed'] = _env('ANALYSIS_SEED', config['analysis']['seed'], to_int)
        config['analysis']['max-iters'] = _env('ANALYSIS_MAX_ITERS', config['analysis']['max-iters'], to_int)
        config['analysis']['empty-cluster'] = _env('ANALYSIS_EMPTY_CLUSTER', config['analysis']['empty-cluster'])

        # Dataset generation
        config['generate']['default-rows'] = _env('GENERATE_DEFAULT_ROWS', config['generate']['default-rows'], to_int)
        config['generate']['min-rows'] = _env('GENERATE_MIN_ROWS', config['generate']['min-rows'], to_int)
        config['generate']['max-rows'] = _env('GENERATE_MAX_ROWS', config['generate']['max-rows'], to_int)
        config['generate']['fallback-seed'] = _env('GENERATE_FALLBACK_SEED', config['generate']['fallback-seed'], to_int)

        # Logging
        config['logging']['level'] = _env('LOG_LEVEL', config['logging']['level']).lower()

        return config

    def _apply_overrides(self, config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply configuration overrides.

        Args:
            config: Current configuration
            overrides: Configuration overrides

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        def deep_update(d, u):
            for k, v in u.items():
                if isinstance(v, dict) and k in d and isinstance(d[k], dict):
                    d[k] = deep_update(d[k], v)
                else:
                    d[k] = v
            return d

        return deep_update(config, overrides)

    def _apply_inferred_values(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply inferred configuration values.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        config['server-url'] = f"http://{config['server']['host']}:{config['server']['port']}"

        return config

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            path: Configuration path (dot-separated)
            default: Default value if not found

        Returns:
            Configuration value, or default if not found
        """
        if not self._initialized:
            self.load_config()

        value = self._config
        for component in path.split('.'):
            if isinstance(value, dict) and component in value:
                value = value[component]
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            path: Configuration path (dot-separated)
            value: Configuration value
        """
        with self._lock:
            if not self._initialized:
                self.load_config()

            components = path.split('.')
            config = self._config
            for component in components[:-1]:
                if component not in config:
                    config[component] = {}
                config = config[component]

            config[components[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to a dictionary.

        Returns:
            Configuration dictionary
        """
        if not self._initialized:
            self.load_config()

        return deepcopy(self._config)

    def save_to_file(self, filepath: str) -> None:
        """
        Save configuration to a file.

        Args:
            filepath: Path to save configuration
        """
        if not self._initialized:
            self.load_config()

        if filepath.endswith('.json'):
            with open(filepath, 'w') as f:
                json.dump(self._config, f, indent=2)
        elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
            with open(filepath, 'w') as f:
                yaml.dump(self._config, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported file format: {filepath}")

    def load_from_file(self, filepath: str) -> None:
        """
        Load configuration from a file.

        Args:
            filepath: Path to load configuration from
        """
        self.load_config(load_config_file(filepath))


class ConfigManager:
    """
    Singleton manager for configuration.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_config(cls, overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Get the configuration instance.

        Args:
            overrides: Optional configuration overrides

        Returns:
            Config instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = Config(overrides)
            elif overrides:
                cls._instance.load_config(overrides)

            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared instance."""
        with cls._lock:
            cls._instance = None
