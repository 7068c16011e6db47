#!/usr/bin/env python3
"""
Configuration Manager for AI Chat Export
Handles loading and managing configuration files.
"""

import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

class ConfigManager:
    """Manages configuration files and settings"""

    DEFAULT_CONFIG_DIR = Path.home() / ".config" / "ai_chat_export"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

    def __init__(self, config_path: Optional[str] = None):
        """Initialize config manager with optional custom config path"""
        self.config_path = Path(config_path).expanduser() if config_path else self.DEFAULT_CONFIG_FILE
        self.config_dir = self.config_path.parent

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file, creating default if needed"""
        try:
            if not self.config_path.exists():
                logger.info(f"Config file not found at {self.config_path}, creating default")
                self._create_default_config()

            with open(self.config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)

            if config is not None and not isinstance(config, dict):
                raise ValueError("top level of the config file must be a mapping")

            logger.debug(f"Loaded config from {self.config_path}")
            return self._merge(self._get_default_config(), config or {})

        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning(f"Failed to load config from {self.config_path}: {e}")
            logger.info("Using default configuration")
            return self._get_default_config()

    def save_config(self, config: Dict[str, Any]) -> None:
        """Save configuration to file"""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)

            with open(self.config_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(config, f, default_flow_style=False, allow_unicode=True)

            logger.info(f"Saved config to {self.config_path}")

        except OSError as e:
            logger.error(f"Failed to save config to {self.config_path}: {e}")
            raise

    def _create_default_config(self) -> None:
        """Create default configuration file"""
        default_config = self._get_default_config()
        self.save_config(default_config)

    @staticmethod
    def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively overlay user values on top of the defaults"""
        merged = copy.deepcopy(base)
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = ConfigManager._merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration dictionary"""
        return {
            'default_output': './ai-chats',
            'default_format': 'markdown',
            'delay_ms': 3000,
            'bridge': {
                'backend': 'applescript',
                'timeout': 30,
                'max_output_mb': 50,
                'cdp_host': 'localhost',
                'cdp_port': 9222,
            },
            'navigation': {
                'initial_wait': 3.0,
                'ready_poll_interval': 1.0,
                'ready_poll_attempts': 10,
                'settle': 2.0,
            },
            'discovery': {
                'sidebar_settle': 2.0,
                'max_rounds': 100,
                'stable_rounds': 5,
                'poll_interval': 1.5,
            },
            'extraction': {
                'initial_settle': 2.0,
                'scroll_interval': 0.5,
                'max_scroll_rounds': 60,
                'settle_after_scroll': 1.0,
            },
            'output': {
                'max_filename_length': 200,
                'role_labels': {
                    'user': 'User',
                    'unknown': 'Unknown',
                },
            },
        }

    def get_nested_value(self, config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
        """Get nested configuration value using dot notation (e.g., 'discovery.max_rounds')"""
        keys = key_path.split('.')
        value = config

        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def update_config(self, updates: Dict[str, Any]) -> None:
        """Update configuration with new values"""
        config = self.load_config()
        config.update(updates)
        self.save_config(config)
