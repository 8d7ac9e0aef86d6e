"""
Configuration management for nowplaying-lyrics

Settings are grouped in dataclass sections that mirror the YAML file:

    player:        now-playing backend, polling cadence, query timeout
    lyrics:        source priority, cache lifetime, transcript cleaning
    network:       request timeout, per-source rate limit, endpoints
    notifications: cooldown between repeated player error notifications
    display:       texts shown for each tracker state
    logging:       level, log file and rotation, console output

``NOWPLAYING_LYRICS_*`` environment variables (also read from a ``.env`` file)
override file values for a single run.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import asdict, dataclass, field, fields
from dotenv import load_dotenv

load_dotenv()


VALID_BACKENDS = ["auto", "applescript", "playerctl"]
VALID_SOURCES = ["lrclib", "netease", "qqmusic"]


def _split_names(value: str) -> List[str]:
    """Comma separated list, blanks dropped"""
    return [name.strip() for name in value.split(',') if name.strip()]


def _coerce(value: Any, default: Any) -> Any:
    """
    Convert a YAML value to the type of a field's current value

    Raises:
        ValueError: If the value cannot be converted
    """
    if isinstance(default, bool):
        if isinstance(value, str):
            if value.strip().lower() not in ("true", "false", "yes", "no", "1", "0"):
                raise ValueError(f"not a boolean: {value!r}")
            return value.strip().lower() in ("true", "yes", "1")
        return bool(value)
    if isinstance(default, list):
        return _split_names(value) if isinstance(value, str) else list(value or [])
    if isinstance(default, float):
        return float(value)
    if isinstance(default, int):
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"expected a whole number, got {value!r}")
        return int(value)
    return "" if value is None else str(value)


@dataclass
class PlayerConfig:
    """
    Now-playing backend configuration

    Controls which media player bridge is queried and how often. The query
    timeout bounds a single bridge invocation so that a hung player never
    accumulates outstanding queries across polling ticks.
    """
    backend: str = "auto"          # auto, applescript, playerctl
    poll_interval: float = 1.0     # seconds between reconciliation ticks
    query_timeout: float = 3.0     # seconds before a player query counts as failed
    playerctl_player: str = ""     # restrict playerctl to one player name


@dataclass
class LyricsConfig:
    """
    Lyrics retrieval configuration

    Manages provider priority, the lifetime of cached lyric sets and the
    post-processing applied to full transcripts.
    """
    sources: list = field(default_factory=lambda: ["lrclib", "netease", "qqmusic"])
    cache_ttl_hours: float = 24.0
    clean_transcript: bool = True
    credit_markers: list = field(default_factory=lambda: [
        "作词", "作曲", "编曲",
        "lyricist", "composer", "producer", "arranger",
    ])


@dataclass
class NetworkConfig:
    """
    Network and HTTP configuration settings

    Controls timeouts, per-provider request throttling, the user agent and the
    provider endpoints. Endpoints are configurable because the Netease API is a
    community-hosted proxy that moves from time to time.
    """
    user_agent: str = "nowplaying-lyrics/1.0"
    request_timeout: float = 10.0
    rate_limit: int = 2            # requests per second per provider
    lrclib_url: str = "https://lrclib.net/api"
    netease_url: str = "https://netease-cloud-music-api-psi-silk.vercel.app"
    qqmusic_url: str = "https://c.y.qq.com"


@dataclass
class NotificationConfig:
    """
    User notification settings

    The cooldown gates how often the same class of player error produces a
    new user-facing notification.
    """
    error_cooldown: float = 30.0


@dataclass
class DisplayConfig:
    """Texts shown by the presentation layer for each tracker state"""
    idle_text: str = "Waiting for music..."
    idle_tooltip: str = "No music playing"
    paused_text: str = "Paused"
    fetching_text: str = "Fetching lyrics..."
    not_found_text: str = "No lyrics found"
    permission_text: str = "Permission needed"
    placeholder_text: str = "..."
    max_line_length: int = 80


@dataclass
class LoggingConfig:
    """
    Logging configuration and output settings

    Controls application logging behavior including log levels, file output,
    rotation, and console formatting.
    """
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


@dataclass
class SecurityConfig:
    """
    Storage configuration

    Location of the configuration directory, also used as the base for a
    relative log file path.
    """
    config_directory: str = "~/.nowplaying-lyrics/"


class Settings:
    """
    Application configuration

    Built once per process (see ``get_settings``) from, in increasing order of
    precedence: dataclass defaults, the first YAML file found, and
    ``NOWPLAYING_LYRICS_*`` environment variables. Each YAML section maps onto
    one of the dataclasses above; unknown sections and keys are ignored and
    values are coerced to the type of the field default. Values that cannot be
    converted are reported and skipped.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Args:
            config_path: Explicit YAML file; when None the standard locations
                         are searched
        """
        self.config_path = config_path
        self.config_dir = Path.home() / ".nowplaying-lyrics"
        self.loaded_from: Optional[Path] = None

        self.player = PlayerConfig()
        self.lyrics = LyricsConfig()
        self.network = NetworkConfig()
        self.notifications = NotificationConfig()
        self.display = DisplayConfig()
        self.logging = LoggingConfig()
        self.security = SecurityConfig()

        self._apply_config(self._read_config_file())
        self._load_environment_variables()
        self._create_directories()

    def _sections(self) -> Dict[str, Any]:
        """Map YAML section names to their dataclass instances"""
        return {
            'player': self.player,
            'lyrics': self.lyrics,
            'network': self.network,
            'notifications': self.notifications,
            'display': self.display,
            'logging': self.logging,
            'security': self.security,
        }

    def _candidate_paths(self) -> List[Path]:
        """Config file locations, most specific first"""
        candidates = [Path(self.config_path)] if self.config_path else []
        candidates += [self.config_dir / "config.yaml", Path("config") / "config.yaml", Path("config.yaml")]
        return candidates

    def _read_config_file(self) -> Dict[str, Any]:
        """
        Read the first existing config file

        A file that cannot be read or parsed is reported and skipped so that
        the next location (or the defaults) still apply.
        """
        for path in self._candidate_paths():
            if not path.is_file():
                continue
            try:
                data = yaml.safe_load(path.read_text(encoding='utf-8'))
            except (OSError, yaml.YAMLError) as e:
                print(f"Warning: Failed to load config from {path}: {e}")
                continue
            if isinstance(data, dict):
                self.loaded_from = path
                return data
            return {}
        return {}

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """Copy known keys of known sections onto the dataclasses"""
        sections = self._sections()

        for section_name, values in config_data.items():
            section = sections.get(section_name)
            if section is None or not isinstance(values, dict):
                continue
            for field_info in fields(section):
                if field_info.name not in values:
                    continue
                current = getattr(section, field_info.name)
                try:
                    setattr(section, field_info.name, _coerce(values[field_info.name], current))
                except (TypeError, ValueError) as e:
                    print(f"Warning: Ignoring {section_name}.{field_info.name}: {e}")

    def _load_environment_variables(self) -> None:
        """Apply ``NOWPLAYING_LYRICS_*`` overrides; invalid values are ignored with a warning"""
        overrides = {
            'NOWPLAYING_LYRICS_BACKEND': (self.player, 'backend', str),
            'NOWPLAYING_LYRICS_POLL_INTERVAL': (self.player, 'poll_interval', float),
            'NOWPLAYING_LYRICS_LOG_LEVEL': (self.logging, 'level', str),
            'NOWPLAYING_LYRICS_SOURCES': (self.lyrics, 'sources', _split_names),
        }

        for env_var, (section, attribute, convert) in overrides.items():
            raw = os.getenv(env_var)
            if not raw:
                continue
            try:
                setattr(section, attribute, convert(raw))
            except ValueError as e:
                print(f"Warning: Ignoring invalid {env_var}={raw!r}: {e}")

    def _create_directories(self) -> None:
        """Create the config directory, warning instead of failing when not permitted"""
        directory = self.get_config_directory()
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            print(f"Warning: Failed to create directory {directory}: {e}")

    def get_config_directory(self) -> Path:
        """Config directory with ``~`` expanded"""
        return Path(self.security.config_directory).expanduser()

    @property
    def cache_ttl_ms(self) -> int:
        """Cache lifetime converted to milliseconds"""
        return int(float(self.lyrics.cache_ttl_hours) * 60 * 60 * 1000)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Plain nested dict of every section, suitable for YAML output"""
        return {
            name: {key: list(value) if isinstance(value, (list, tuple)) else value
                   for key, value in asdict(section).items()}
            for name, section in self._sections().items()
        }

    def save_config(self, path: Optional[str] = None) -> Path:
        """
        Write the current configuration as YAML

        Args:
            path: Target file, defaults to ``config.yaml`` in the config directory

        Returns:
            Path the configuration was written to

        Raises:
            ConfigError: If the file cannot be written
        """
        from ..exceptions import ConfigError

        target = Path(path) if path else self.get_config_directory() / "config.yaml"

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, 'w', encoding='utf-8') as f:
                yaml.safe_dump(self.to_dict(), f, default_flow_style=False, indent=2, allow_unicode=True)
        except OSError as e:
            raise ConfigError(f"Failed to save config to {target}: {e}", details={'path': str(target)})

        return target

    def get_validation_errors(self) -> List[str]:
        """
        Collect configuration problems

        Returns:
            List of human-readable error strings, empty when valid
        """
        errors = []

        if self.player.backend not in VALID_BACKENDS:
            errors.append(f"Invalid player backend: {self.player.backend}")

        if not 0.25 <= float(self.player.poll_interval) <= 5.0:
            errors.append(f"Poll interval must be between 0.25 and 5 seconds: {self.player.poll_interval}")

        if float(self.player.query_timeout) <= 0:
            errors.append(f"Query timeout must be positive: {self.player.query_timeout}")

        if not self.lyrics.sources:
            errors.append("At least one lyrics source is required")
        for source in self.lyrics.sources:
            if source not in VALID_SOURCES:
                errors.append(f"Invalid lyrics source: {source}")

        if float(self.lyrics.cache_ttl_hours) <= 0:
            errors.append(f"Cache TTL must be positive: {self.lyrics.cache_ttl_hours}")

        if int(self.network.rate_limit) < 1:
            errors.append(f"Rate limit must be at least 1 request per second: {self.network.rate_limit}")

        return errors

    def validate(self) -> bool:
        """Print validation problems, if any; True when the configuration is usable"""
        errors = self.get_validation_errors()
        if not errors:
            return True

        print("Configuration validation errors:")
        for error in errors:
            print(f"  - {error}")
        return False

    def __str__(self) -> str:
        return (
            f"Settings(backend={self.player.backend}, "
            f"interval={self.player.poll_interval}s, "
            f"sources={','.join(self.lyrics.sources)})"
        )


# Process-wide instance, created on first access
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the shared Settings instance, loading it on first use"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Replace the shared instance with one loaded from ``config_path``

    Used by the CLI ``--config`` option.
    """
    global _settings
    _settings = Settings(config_path)
    return _settings
