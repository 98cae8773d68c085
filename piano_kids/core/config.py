"""Configuration management for Piano Kids components."""

from typing import Dict, Any, Optional
import copy
import json
import os
from pathlib import Path

from ..logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIGS: Dict[str, Dict[str, Any]] = {
    "pitch_detector": {
        "method": "autocorrelation",
        "sample_rate": 22050,
        "block_size": 8192,
        "analysis_size": 2048,
        "rms_threshold": 600.0,
        "correlation_threshold": 50000.0,
        "min_frequency": 200.0,
        "max_frequency": 600.0,
        "tolerance": 0.06,
        "confirmation_count": 2,
        "retrigger_ms": 150.0,
        "settle_ms": 500.0,
        "stop_timeout": 1.0,
    },
    "audio_input": {
        "sample_rate": 22050,
        "channels": 1,
        "device_id": None,
    },
    "scoring": {
        "max_wrong_attempts": 3,
        "star_thresholds": [90, 70, 40],
        "wrong_message": "Wrong note! Try again!",
    },
}


class ConfigManager:
    """Configuration manager for Piano Kids components."""

    def __init__(self, config_dir: Optional[str] = None, persist: bool = True):
        """Initialize the configuration manager.

        Args:
            config_dir: Directory to store configuration files, or None to use default
            persist: If False, never touch the filesystem and serve defaults only
        """
        if config_dir is None:
            # Use ~/.config/piano_kids by default
            home = os.path.expanduser("~")
            config_dir = os.path.join(home, ".config", "piano_kids")

        self.config_dir = Path(config_dir)
        self.persist = persist
        if self.persist:
            self.config_dir.mkdir(parents=True, exist_ok=True)

        self.default_configs = copy.deepcopy(DEFAULT_CONFIGS)

        # Load existing configurations or create default ones
        self.configs: Dict[str, Dict[str, Any]] = {}
        for config_name, default_config in self.default_configs.items():
            self.configs[config_name] = self.load_config(config_name, default_config)

    def load_config(self, name: str, default_config: Dict[str, Any]) -> Dict[str, Any]:
        """Load configuration from file or create default.

        Args:
            name: Configuration name
            default_config: Default configuration to use if file doesn't exist

        Returns:
            Configuration dictionary
        """
        if not self.persist:
            return copy.deepcopy(default_config)

        config_file = self.config_dir / f"{name}.json"

        if config_file.exists():
            try:
                with open(config_file, "r") as f:
                    config = json.load(f)
                logger.info(f"Loaded configuration from {config_file}")
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Error loading configuration from {config_file}: {e}")
                return copy.deepcopy(default_config)

            if not isinstance(config, dict):
                logger.error(f"Ignoring malformed configuration in {config_file}")
                return copy.deepcopy(default_config)

            # Ensure all default keys are present
            for key, value in default_config.items():
                config.setdefault(key, value)
            return config

        # Create default configuration
        config = copy.deepcopy(default_config)
        self.save_config(name, config)
        return config

    def save_config(self, name: str, config: Dict[str, Any]) -> bool:
        """Save configuration to file.

        Args:
            name: Configuration name
            config: Configuration dictionary

        Returns:
            True if saved successfully, False otherwise
        """
        if not self.persist:
            return True

        config_file = self.config_dir / f"{name}.json"

        try:
            with open(config_file, "w") as f:
                json.dump(config, f, indent=2)
            logger.info(f"Saved configuration to {config_file}")
            return True
        except OSError as e:
            logger.error(f"Error saving configuration to {config_file}: {e}")
            return False

    def get_config(self, name: str) -> Dict[str, Any]:
        """Get a copy of a configuration by name."""
        return dict(self.configs.get(name, {}))

    def update_config(self, name: str, updates: Dict[str, Any]) -> bool:
        """Update configuration and save to file.

        Args:
            name: Configuration name
            updates: Dictionary of updates to apply

        Returns:
            True if updated and saved successfully, False otherwise
        """
        if name not in self.configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        unknown = set(updates) - set(self.default_configs[name])
        if unknown:
            logger.error(f"Unknown keys for {name}: {sorted(unknown)}")
            return False

        self.configs[name].update(updates)
        return self.save_config(name, self.configs[name])

    def reset_config(self, name: str) -> bool:
        """Reset configuration to default.

        Args:
            name: Configuration name

        Returns:
            True if reset successfully, False otherwise
        """
        if name not in self.default_configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        self.configs[name] = copy.deepcopy(self.default_configs[name])
        return self.save_config(name, self.configs[name])
