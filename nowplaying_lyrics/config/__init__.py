"""
Configuration management package for nowplaying-lyrics

Settings are loaded from YAML files, overridden by environment variables and
exposed through a lazily created singleton:

    from nowplaying_lyrics.config import get_settings

    settings = get_settings()
    interval = settings.player.poll_interval

Configuration Sources (highest precedence first):
1. Environment variables (NOWPLAYING_LYRICS_*)
2. YAML configuration files
3. Default values
"""

from .settings import get_settings, reload_settings, Settings

__all__ = [
    'get_settings',      # Factory function for singleton settings access
    'reload_settings',   # Function to reload settings from files
    'Settings',          # Settings class for direct instantiation
]
