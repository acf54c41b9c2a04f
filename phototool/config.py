"""
Configuration management for phototool.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

import yaml

from .constants import PROGRAM


class Config:
    """Manages the configuration file holding user defaults."""

    def __init__(self, config_path: Optional[Path] = None):
        # Default config location: ~/.<PROGRAM>/config.yml
        if config_path:
            self.config_path = Path(config_path)
        else:
            self.config_path = Path.home() / f".{PROGRAM}" / "config.yml"
        self.program_root = self.config_path.parent
        self.data = self._load_config()

    def _load_config(self) -> Dict:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except Exception as e:
            logger = logging.getLogger(PROGRAM)
            logger.warning(f"Could not load config: {e}")
            return {}

        if not isinstance(data, dict):
            logging.getLogger(PROGRAM).warning(f"Ignoring malformed config: {self.config_path}")
            return {}
        return data

    def save_config(self) -> None:
        """Save current configuration to file."""
        self.program_root.mkdir(parents=True, exist_ok=True)
        try:
            with open(self.config_path, 'w') as f:
                yaml.safe_dump(self.data, f, default_flow_style=False)
        except Exception as e:
            logger = logging.getLogger(PROGRAM)
            logger.error(f"Could not save config: {e}")

    def get_timezone(self) -> Optional[str]:
        """Get the saved timezone setting."""
        return self.data.get('timezone')

    def get_group_expression(self) -> Optional[str]:
        """Get the saved classification expression."""
        return self.data.get('group_expression')

    def get_convert_source_pattern(self) -> Optional[str]:
        return self.data.get('convert_source_pattern')

    def get_convert_dest_pattern(self) -> Optional[str]:
        return self.data.get('convert_dest_pattern')

    def get_convert_command(self) -> Optional[str]:
        return self.data.get('convert_command')

    def get_convert_concurrency(self) -> Optional[int]:
        """Get the saved worker count for conversions."""
        value = self.data.get('convert_concurrency')
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            logging.getLogger(PROGRAM).warning(f"Ignoring invalid convert_concurrency: {value!r}")
            return None

    def update_timezone(self, timezone: str) -> None:
        """Update and save the timezone setting."""
        self.data['timezone'] = timezone
        self.save_config()
