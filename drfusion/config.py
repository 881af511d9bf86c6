"""
Configuration manager for the dead reckoning fusion core.
"""

import copy
import json
import logging
import os
from typing import Any, Dict, Optional

from .errors import ConfigError
from .math.constants import DEFAULT_MOTION_UPDATE_INTERVAL_S, LONGITUDE_SCALING_MODES
from .math.units import ACCELERATION, Unit, unit_from_symbol

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

class Config:
    """Configuration manager for the fusion core."""

    DEFAULT_CONFIG = {
        # Device motion
        "motion_update_interval_s": DEFAULT_MOTION_UPDATE_INTERVAL_S,
        "acceleration_unit": "m/s^2",

        # Dead reckoning
        "longitude_scaling": "latitude",
        "max_samples": None,

        # Location services
        "enable_location_tracking": True,

        # Logging
        "log_level": "INFO",
        "log_file": None,
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to a JSON configuration file; defaults are
                used when it is None or does not exist
        """
        self.config_file = config_file
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file is not None:
            if os.path.exists(config_file):
                self.load_config()
            else:
                logger.info("Config file %s not found, using defaults", config_file)

        self.validate()

    def load_config(self) -> bool:
        """
        Load configuration from file.

        Returns:
            True if loaded successfully
        """
        try:
            with open(self.config_file, 'r') as f:
                file_config = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Failed to load config %s: %s", self.config_file, e)
            return False

        if not isinstance(file_config, dict):
            logger.error("Config %s must contain a JSON object", self.config_file)
            return False

        # Merge with defaults (file config overrides defaults)
        self._merge_config(self.config, file_config)

        logger.info("Configuration loaded from %s", self.config_file)
        return True

    def save_config(self, config_file: Optional[str] = None) -> bool:
        """
        Save current configuration to file.

        Returns:
            True if saved successfully
        """
        path = config_file or self.config_file
        if path is None:
            raise ConfigError("No config file path given")

        try:
            with open(path, 'w') as f:
                json.dump(self.config, f, indent=2)
        except OSError as e:
            logger.error("Failed to save config %s: %s", path, e)
            return False

        logger.info("Configuration saved to %s", path)
        return True

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]):
        """Recursively merge configuration dictionaries."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def validate(self) -> None:
        """
        Check configuration values.

        Raises:
            ConfigError: If a value is out of range or unknown
        """
        interval = self.config["motion_update_interval_s"]
        if not isinstance(interval, (int, float)) or interval <= 0:
            raise ConfigError(f"motion_update_interval_s must be positive, got {interval!r}")

        if self.config["longitude_scaling"] not in LONGITUDE_SCALING_MODES:
            raise ConfigError(
                f"longitude_scaling must be one of {LONGITUDE_SCALING_MODES}, "
                f"got {self.config['longitude_scaling']!r}"
            )

        try:
            unit = unit_from_symbol(self.config["acceleration_unit"])
        except KeyError as e:
            raise ConfigError(str(e)) from None
        if unit.dimension != ACCELERATION:
            raise ConfigError(f"acceleration_unit {unit} is not an acceleration unit")

        max_samples = self.config["max_samples"]
        if max_samples is not None and (not isinstance(max_samples, int) or max_samples <= 0):
            raise ConfigError(f"max_samples must be a positive integer or null, got {max_samples!r}")

        # getLevelName returns "Level X" for unknown names
        if not isinstance(logging.getLevelName(str(self.config["log_level"]).upper()), int):
            raise ConfigError(f"Unknown log_level {self.config['log_level']!r}")

    def get(self, key: str, default=None):
        """Get configuration value with optional default."""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """Set configuration value. Invalid values are rolled back."""
        previous = copy.deepcopy(self.config)
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        try:
            self.validate()
        except ConfigError:
            self.config = previous
            raise

    # Property accessors for common configuration values
    @property
    def motion_update_interval_s(self) -> float:
        return float(self.config["motion_update_interval_s"])

    @property
    def acceleration_unit(self) -> Unit:
        return unit_from_symbol(self.config["acceleration_unit"])

    @property
    def longitude_scaling(self) -> str:
        return self.config["longitude_scaling"]

    @property
    def max_samples(self) -> Optional[int]:
        return self.config["max_samples"]

    @property
    def enable_location_tracking(self) -> bool:
        return bool(self.config["enable_location_tracking"])

    @property
    def log_level(self) -> int:
        return logging.getLevelName(str(self.config["log_level"]).upper())

    @property
    def log_file(self) -> Optional[str]:
        return self.config["log_file"]

    def dumps(self) -> str:
        """Current configuration as indented JSON."""
        return json.dumps(self.config, indent=2)

def configure_logging(config: Optional[Config] = None) -> logging.Logger:
    """
    Configure the `drfusion` logger from the configuration.

    Logs to the configured file, or to stderr when no file is set.
    Calling it again replaces the handler installed by the previous call.

    Returns:
        The package logger
    """
    config = config or Config()
    package_logger = logging.getLogger("drfusion")
    package_logger.setLevel(config.log_level)

    for handler in list(package_logger.handlers):
        if getattr(handler, "_drfusion_handler", False):
            package_logger.removeHandler(handler)
            handler.close()

    if config.log_file:
        handler = logging.FileHandler(config.log_file)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._drfusion_handler = True
    package_logger.addHandler(handler)

    return package_logger
