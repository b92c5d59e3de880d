"""
config.py - Configuration for the pivot grid engine
"""
import os
from typing import Optional
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class GridConfig:
    """Configuration for the pivot grid engine"""

    # Display configuration
    row_height: int = 28  # pixels, handed to the external virtualization layer
    blank_label: str = "(blank)"
    total_label: str = "Total"
    grand_total_label: str = "Grand Total"

    # Caching configuration
    enable_aggregate_cache: bool = True
    cache_ttl: int = 300
    cache_max_size: int = 10000

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    def from_env(self) -> 'GridConfig':
        """Load configuration from environment variables"""
        config = GridConfig()

        config.row_height = int(os.getenv('PIVOT_GRID_ROW_HEIGHT', str(config.row_height)))
        config.blank_label = os.getenv('PIVOT_GRID_BLANK_LABEL', config.blank_label)
        config.total_label = os.getenv('PIVOT_GRID_TOTAL_LABEL', config.total_label)
        config.grand_total_label = os.getenv('PIVOT_GRID_GRAND_TOTAL_LABEL', config.grand_total_label)

        # Cache settings
        config.enable_aggregate_cache = _env_bool('PIVOT_GRID_CACHE', config.enable_aggregate_cache)
        config.cache_ttl = int(os.getenv('PIVOT_GRID_CACHE_TTL', str(config.cache_ttl)))
        config.cache_max_size = int(os.getenv('PIVOT_GRID_CACHE_MAX_SIZE', str(config.cache_max_size)))

        # Server settings
        config.host = os.getenv('PIVOT_GRID_HOST', config.host)
        config.port = int(os.getenv('PIVOT_GRID_PORT', str(config.port)))
        config.log_level = os.getenv('PIVOT_GRID_LOG_LEVEL', config.log_level).upper()

        return config

    def validate(self) -> None:
        """Validate configuration settings"""
        errors = []

        if self.row_height <= 0:
            errors.append("row_height must be positive")

        if self.cache_ttl <= 0:
            errors.append("cache_ttl must be positive")

        if self.cache_max_size <= 0:
            errors.append("cache_max_size must be positive")

        if not 0 < self.port < 65536:
            errors.append("port must be between 1 and 65535")

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"unknown log_level {self.log_level!r}")

        for name in ("blank_label", "total_label", "grand_total_label"):
            if not getattr(self, name):
                errors.append(f"{name} must not be empty")

        if errors:
            raise ValueError(f"Configuration validation errors: {'; '.join(errors)}")


class ConfigManager:
    """Manager for configuration loading and validation"""

    def __init__(self):
        self.config: Optional[GridConfig] = None

    def load_config(self, config_source: Optional[str] = None) -> GridConfig:
        """Load configuration from various sources"""
        if config_source == 'env':
            self.config = GridConfig().from_env()
        else:
            self.config = GridConfig()

        self.config.validate()
        return self.config

    def get_config(self) -> GridConfig:
        """Get the loaded configuration"""
        if self.config is None:
            self.config = self.load_config()
        return self.config


# Global configuration manager
config_manager = ConfigManager()


def get_config() -> GridConfig:
    """Get the global configuration"""
    return config_manager.get_config()
