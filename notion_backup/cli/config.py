"""YAML configuration loading and validation.

Configuration lives in ``notion-backup.yaml`` in the working directory. The
file is optional: a missing file yields the defaults.

Example file::

    output_dir: ./backups
    concurrency: 3
    batch_delay_ms: 350
    exporter: my_exporters.notion:MarkdownExporter
"""

import logging
import os
from typing import Any, Dict

import yaml

from .errors import ConfigError
from .models import BackupConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "notion-backup.yaml"


class ConfigLoader:
    """Loads notion-backup.yaml into a validated BackupConfig."""

    DEFAULTS: Dict[str, Any] = {
        'output_dir': '.',
        'archive_prefix': 'notion-backup',
        'concurrency': 3,
        'batch_delay_ms': 350,
        'max_attempts': 3,
        'base_delay_ms': 1000,
        'image_timeout': 30,
        'image_cache_ttl': 3600,
        'proxy_url': None,
        'exporter': None,
    }

    # Fields that must be >= 1
    POSITIVE_INT_FIELDS = ('concurrency', 'max_attempts')
    NON_NEGATIVE_INT_FIELDS = ('batch_delay_ms', 'base_delay_ms')
    POSITIVE_FLOAT_FIELDS = ('image_timeout', 'image_cache_ttl')

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH) -> BackupConfig:
        """Load configuration, falling back to defaults when the file is absent.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Validated BackupConfig

        Raises:
            ConfigError: If the file cannot be read or holds invalid values
        """
        if not os.path.exists(config_path):
            logger.debug(f"No config file at {config_path}, using defaults")
            return cls._parse_config({})

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            raise ConfigError(f"Cannot read {config_path}: {e}")

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {e}")

        if config_dict is None:
            config_dict = {}

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        logger.info(f"Loaded configuration from {config_path}")
        return cls._parse_config(config_dict)

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> BackupConfig:
        """Validate a raw configuration dictionary.

        Raises:
            ConfigError: On unknown keys, wrong types or out-of-range values
        """
        unknown = set(config_dict) - set(cls.DEFAULTS)
        if unknown:
            raise ConfigError(f"Unknown fields: {', '.join(sorted(unknown))}")

        values = dict(cls.DEFAULTS)
        values.update({key: value for key, value in config_dict.items() if value is not None})

        for field_name in cls.POSITIVE_INT_FIELDS + cls.NON_NEGATIVE_INT_FIELDS:
            values[field_name] = cls._as_int(values[field_name], field_name)
            minimum = 1 if field_name in cls.POSITIVE_INT_FIELDS else 0
            if values[field_name] < minimum:
                raise ConfigError(
                    f"must be at least {minimum}, got {values[field_name]}", field_name
                )

        for field_name in cls.POSITIVE_FLOAT_FIELDS:
            try:
                values[field_name] = float(values[field_name])
            except (TypeError, ValueError):
                raise ConfigError(f"must be a number, got {values[field_name]!r}", field_name)
            if values[field_name] <= 0:
                raise ConfigError(f"must be positive, got {values[field_name]}", field_name)

        for field_name in ('output_dir', 'archive_prefix'):
            values[field_name] = str(values[field_name])
            if not values[field_name].strip():
                raise ConfigError("cannot be empty", field_name)

        exporter = values['exporter']
        if exporter is not None and ':' not in str(exporter):
            raise ConfigError("must look like 'module:attribute'", 'exporter')

        return BackupConfig(
            output_dir=values['output_dir'],
            archive_prefix=values['archive_prefix'],
            concurrency=values['concurrency'],
            batch_delay_ms=values['batch_delay_ms'],
            max_attempts=values['max_attempts'],
            base_delay_ms=values['base_delay_ms'],
            image_timeout=values['image_timeout'],
            image_cache_ttl=values['image_cache_ttl'],
            proxy_url=str(values['proxy_url']) if values['proxy_url'] else None,
            exporter=str(exporter) if exporter else None,
        )

    @staticmethod
    def _as_int(value: Any, field_name: str) -> int:
        # bool is an int subclass; "true" is not a count
        if isinstance(value, bool):
            raise ConfigError(f"must be an integer, got {value!r}", field_name)
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"must be an integer, got {value!r}", field_name)
