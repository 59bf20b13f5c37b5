"""Re-export the pieces most callers need."""

from folderise.app import FolderiseApp, ServeResult
from folderise.cache import CacheMiss, CacheStore
from folderise.config import ConfigError, Settings, load_settings_file, parse_options
from folderise.plugins import load_plugins, resolve_plugin_tokens

__all__ = [
    "CacheMiss",
    "CacheStore",
    "ConfigError",
    "FolderiseApp",
    "ServeResult",
    "Settings",
    "load_plugins",
    "load_settings_file",
    "parse_options",
    "resolve_plugin_tokens",
]
