"""Configuration package for Grocerly."""
from .settings import (
    AppConfig,
    GrocerlySettings,
    ImageHostSettings,
    StoreSettings,
    load_config,
    get_settings,
)

__all__ = [
    'AppConfig',
    'GrocerlySettings',
    'ImageHostSettings',
    'StoreSettings',
    'load_config',
    'get_settings',
]
