"""Configuration: settings, provider/profile catalog and logging setup."""

from .log_setup import configure_logging
from .profiles import ProfileCatalog, load_catalog
from .settings import Settings, get_settings, settings

__all__ = [
    "ProfileCatalog",
    "Settings",
    "configure_logging",
    "get_settings",
    "load_catalog",
    "settings",
]
