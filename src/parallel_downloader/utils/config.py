"""Configuration management."""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("parallel-downloader.json")


class Config:
    """Application configuration manager."""

    def __init__(self, config_file: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_file: Path to configuration file
        """
        self.config_file = Path(config_file) if config_file else DEFAULT_CONFIG_FILE
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file, layered over the defaults."""
        self._config = self._get_default_config()
        if not self.config_file.exists():
            return

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config file {self.config_file}: {e}")
            return

        if not isinstance(loaded, dict):
            logger.warning(f"Ignoring config file {self.config_file}: expected a JSON object")
            return
        self._config.update(loaded)

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "output_dir": "downloads",
            "max_workers": 4,
            "timeout": 60,
            "retry_attempts": 2,
            "chunk_size": 65536,
            "poll_interval": 0.1,
            "proxy": None,
            "log_level": "INFO",
            "log_output": "file",
            "log_file": "parallel-downloader.log"
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value.

        Args:
            key: Configuration key
            value: Configuration value
        """
        self._config[key] = value

    def save(self) -> None:
        """Save configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2)
