"""
Configuration utilities for the Order Pricing engine.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv


class Config:
    """Configuration manager for the Order Pricing project."""

    def __init__(self, env_file: Optional[str] = None) -> None:
        """Initialize configuration.

        If an env_file path is provided, load environment variables from it.
        Otherwise, do not auto-load a .env file to keep pricing defaults predictable.
        """
        self.env_file = env_file
        self._load_environment()
        self._config = self._load_config()

    def _load_environment(self) -> None:
        """Load environment variables from explicit .env file if provided."""
        if not self.env_file:
            return
        env_path = Path(self.env_file)
        if env_path.exists():
            load_dotenv(env_path)

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        return {
            # Core settings
            "log_level": self._get_str("LOG_LEVEL", default="INFO"),
            # MongoDB catalog and order storage
            "mongo_url": self._get_str("DB_CONNECTION_URL", default=""),
            "mongo_db": self._get_str("DB_NAME", default="ORDERING_PLATFORM"),
            "restaurants_collection": self._get_str("RESTAURANTS_COLLECTION", default="restaurants"),
            "menu_items_collection": self._get_str("MENU_ITEMS_COLLECTION", default="menu_items"),
            "menu_rules_collection": self._get_str("MENU_RULES_COLLECTION", default="menu_rules"),
            "options_collection": self._get_str("OPTIONS_COLLECTION", default="options"),
            "orders_collection": self._get_str("ORDERS_COLLECTION", default="orders"),
            # Delivery pricing
            "distance_unit": self._get_str("DISTANCE_UNIT", default="miles"),
            "delivery_search_radius": self._get_float("DELIVERY_SEARCH_RADIUS", default=100.0),
        }

    def _get_str(self, key: str, default: str = "") -> str:
        """Get string configuration value."""
        if self.env_file is None:
            return default
        return os.getenv(key, default)

    def _get_float(self, key: str, default: float = 0.0) -> float:
        """Get float configuration value."""
        if self.env_file is None:
            return default
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def __getitem__(self, key: str) -> Any:
        """Get configuration value using bracket notation."""
        return self._config[key]

    def __contains__(self, key: str) -> bool:
        """Check if configuration key exists."""
        return key in self._config
