"""
Configuration access.

Settings live in INI files read with :mod:`configparser`.  The packaged
``conf/tidal_harmonics.ini`` supplies defaults; a file named by the
``TIDAL_HARMONICS_CONFIG`` environment variable (or passed explicitly)
overrides them key by key.
"""
from __future__ import annotations

import configparser
import logging
import os
from pathlib import Path

CONFIG_ENV_VAR = 'TIDAL_HARMONICS_CONFIG'
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / 'conf' / 'tidal_harmonics.ini'


class Utils:
    """Read sections of the tidal_harmonics configuration."""

    def __init__(self, config_file: str | os.PathLike | None = None):
        self.config_file = config_file or os.environ.get(CONFIG_ENV_VAR)

    def read_config(self, logger: logging.Logger | None = None):
        _log = logger or logging.getLogger(__name__)
        config = configparser.ConfigParser(interpolation=None)
        files = [DEFAULT_CONFIG_PATH]
        if self.config_file:
            override = Path(self.config_file)
            if not override.is_file():
                raise FileNotFoundError(
                    f"Configuration file {override} does not exist."
                )
            files.append(override)
        read = config.read(files)
        _log.debug('Read configuration from %s', ', '.join(read))
        return config

    def read_config_section(
        self, section: str, logger: logging.Logger | None = None
    ) -> dict[str, str]:
        """
        Return one configuration section as a dict of strings.

        Raises
        ------
        KeyError
            If the section exists in neither the defaults nor the override.
        """
        config = self.read_config(logger)
        if not config.has_section(section):
            raise KeyError(f"Configuration section [{section}] not found.")
        return dict(config.items(section))


def prediction_settings(logger: logging.Logger | None = None) -> dict:
    """Typed values of the ``[prediction]`` section."""
    section = Utils().read_config_section('prediction', logger)
    return {
        'interval_minutes': float(section['interval_minutes']),
        'max_workers': int(section['max_workers']),
        'nodal_corrections': section['nodal_corrections'].strip().lower()
        in ('1', 'true', 'yes', 'on'),
        'chunk_size': int(section['chunk_size']),
    }


def export_settings(logger: logging.Logger | None = None) -> dict:
    """Typed values of the ``[export]`` section."""
    section = Utils().read_config_section('export', logger)
    return {
        'decimals': int(section['decimals']),
        'datetime_format': section['datetime_format'],
    }


def configure_logging(logger: logging.Logger | None = None) -> None:
    """Configure the root logger from the ``[logging]`` section."""
    section = Utils().read_config_section('logging', logger)
    logging.basicConfig(
        level=getattr(logging, section['level'].strip().upper(), logging.INFO),
        format=section['format'],
    )
