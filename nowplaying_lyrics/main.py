"""
Main CLI interface for nowplaying-lyrics

Command-line front end around the lyrics pipeline. It provides:
- watch: follow the media player and print the active lyric line
- fetch: resolve lyrics for one track and print them
- now: print what the media player is currently playing
- sources: list lyric sources in priority order
- config show / config set: inspect and persist configuration
- doctor: check the local setup
"""

import asyncio
import functools
import shutil
import sys

import click

from . import __version__
from .config.settings import Settings, get_settings, reload_settings, VALID_BACKENDS, VALID_SOURCES
from .exceptions import ConfigError
from .lyrics.lrc import format_lrc
from .lyrics.resolver import LyricResolver, SOURCE_REGISTRY
from .player import get_now_playing_provider
from .player.models import PlaybackSnapshot
from .sync.display import DisplayState, DisplayStatus, Notification
from .sync.tracker import PlaybackTracker
from .utils.helpers import format_duration
from .utils.logger import configure_from_settings, get_logger, get_current_log_file


# Initialize logging system from configuration settings
configure_from_settings()
logger = get_logger(__name__)


# Colors used by the console presenter per display status
STATUS_STYLES = {
    DisplayStatus.IDLE: {'fg': 'bright_black'},
    DisplayStatus.PAUSED: {'fg': 'yellow'},
    DisplayStatus.FETCHING: {'fg': 'cyan'},
    DisplayStatus.LINE: {'fg': 'green', 'bold': True},
    DisplayStatus.PLACEHOLDER: {'fg': 'bright_black'},
    DisplayStatus.NOT_FOUND: {'fg': 'red'},
    DisplayStatus.PERMISSION_NEEDED: {'fg': 'red', 'bold': True},
}

BACKEND_EXECUTABLES = {
    'applescript': 'osascript',
    'playerctl': 'playerctl',
}


def handle_error(func):
    """
    Decorator to handle common CLI errors gracefully

    Wraps CLI command functions to provide consistent error handling across
    all commands: user cancellation exits with 130, any other failure is
    logged and reported with exit code 1.

    Args:
        func: The CLI command function to wrap

    Returns:
        Wrapped function with error handling
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo(click.style("\n\nOperation cancelled by user", fg='yellow'))
            sys.exit(130)
        except Exception as e:
            logger.error(f"Command failed: {e}")
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
    return wrapper


def print_display_state(state: DisplayState) -> None:
    """Console presenter: one line per published display state"""
    style = STATUS_STYLES.get(state.status, {})
    click.echo(click.style(state.text, **style))


def print_notification(notification: Notification) -> None:
    click.echo(click.style(notification.message, fg='yellow'), err=True)


def require_valid_settings(settings: Settings) -> None:
    """Raise ConfigError listing every validation problem of the configuration"""
    errors = settings.get_validation_errors()
    if errors:
        raise ConfigError(
            "Invalid configuration: " + "; ".join(errors),
            details={'errors': errors}
        )


# Main CLI group - root command that all subcommands attach to
@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--config', type=click.Path(), help='Path to config file')
@click.pass_context
def cli(ctx, version, verbose, config):
    """
    nowplaying-lyrics - Synchronized lyrics for the music you are playing

    Follows Spotify / Apple Music (macOS) or any MPRIS player (Linux) and
    shows the lyric line that is being sung right now.
    """
    ctx.ensure_object(dict)

    if version:
        click.echo(f"nowplaying-lyrics v{__version__}")
        return

    if config:
        reload_settings(config)
        configure_from_settings()
        click.echo(f"Loaded config: {config}")

    if verbose:
        ctx.obj['verbose'] = True
        logger.info("Verbose mode enabled")

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option('--backend', type=click.Choice(VALID_BACKENDS), help='Now-playing backend')
@click.option('--interval', type=click.FloatRange(0.25, 5.0), help='Polling interval in seconds')
@handle_error
def watch(backend, interval):
    """
    Follow the media player and print the active lyric line

    Prints a new line every time the display changes. Press Ctrl+C to stop.
    """
    settings = get_settings()
    if interval:
        settings.player.poll_interval = interval

    require_valid_settings(settings)

    provider = get_now_playing_provider(backend, settings)
    logger.console_info(f"Watching {provider.name} (every {settings.player.poll_interval:g}s), Ctrl+C to stop")

    async def _watch():
        tracker = PlaybackTracker(provider, LyricResolver.from_settings(settings), settings=settings)
        tracker.subscribe(print_display_state)
        tracker.subscribe_notifications(print_notification)
        print_display_state(tracker.display)
        await tracker.run()

    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        click.echo(click.style("\nStopped", fg='yellow'))


@cli.command()
@click.argument('artist')
@click.argument('title')
@click.option('--source', type=click.Choice(VALID_SOURCES), help='Query only this lyrics source')
@click.option('--synced', is_flag=True, help='Print time-tagged LRC lines instead of the transcript')
@handle_error
def fetch(artist, title, source, synced):
    """
    Resolve lyrics for ARTIST and TITLE and print them
    """
    settings = get_settings()
    require_valid_settings(settings)

    async def _fetch():
        resolver = LyricResolver.from_settings(settings, names=[source] if source else None)
        try:
            return await resolver.resolve(artist, title)
        finally:
            await resolver.close()

    lyric_set = asyncio.run(_fetch())

    click.echo(click.style(
        f"{artist} - {title} ({len(lyric_set.lines)} lines via {lyric_set.source})",
        fg='green', bold=True
    ))
    if synced:
        click.echo(format_lrc(lyric_set.lines))
    elif settings.lyrics.clean_transcript:
        click.echo(lyric_set.without_credits(settings.lyrics.credit_markers).plain_text)
    else:
        click.echo(lyric_set.plain_text)


@cli.command()
@click.option('--backend', type=click.Choice(VALID_BACKENDS), help='Now-playing backend')
@handle_error
def now(backend):
    """
    Show what the media player is playing
    """
    settings = get_settings()
    require_valid_settings(settings)
    provider = get_now_playing_provider(backend, settings)

    async def _query():
        return await asyncio.wait_for(provider.current(), timeout=float(settings.player.query_timeout))

    now_playing = asyncio.run(_query())
    if now_playing is None:
        click.echo(settings.display.idle_tooltip)
        return

    snapshot = PlaybackSnapshot.from_now_playing(now_playing)
    state = "Playing" if snapshot.is_playing else "Paused"
    duration = format_duration(snapshot.duration_ms / 1000) if snapshot.duration_ms else "?"

    click.echo(f"{state} in {snapshot.app}:")
    click.echo(f"   Artist: {snapshot.identity.artist}")
    click.echo(f"   Title: {snapshot.identity.title}")
    click.echo(f"   Position: {format_duration(snapshot.position_ms / 1000)} / {duration}")


@cli.command()
@handle_error
def sources():
    """
    List lyrics sources in priority order
    """
    settings = get_settings()

    click.echo("Lyrics sources (in priority order):")
    for position, name in enumerate(settings.lyrics.sources, 1):
        status = "[OK]" if name in SOURCE_REGISTRY else "[UNKNOWN]"
        click.echo(f"   {position}. {status} {name}")


# Configuration commands group
@cli.group()
def config():
    """
    Configuration management
    """
    pass


@config.command()
@handle_error
def show():
    """
    Show current configuration
    """
    settings = get_settings()

    click.echo("Current Configuration:\n")

    click.echo("Player:")
    click.echo(f"   Backend: {settings.player.backend}")
    click.echo(f"   Poll interval: {settings.player.poll_interval}s")
    click.echo(f"   Query timeout: {settings.player.query_timeout}s")
    if settings.player.playerctl_player:
        click.echo(f"   playerctl player: {settings.player.playerctl_player}")

    click.echo("\nLyrics:")
    click.echo(f"   Sources: {', '.join(settings.lyrics.sources)}")
    click.echo(f"   Cache TTL: {settings.lyrics.cache_ttl_hours}h")
    click.echo(f"   Clean transcript: {settings.lyrics.clean_transcript}")

    click.echo("\nNetwork:")
    click.echo(f"   Request timeout: {settings.network.request_timeout}s")
    click.echo(f"   Rate limit: {settings.network.rate_limit} req/s per source")

    click.echo("\nNotifications:")
    click.echo(f"   Error cooldown: {settings.notifications.error_cooldown}s")


@config.command()
@click.option('--backend', type=click.Choice(VALID_BACKENDS), help='Set now-playing backend')
@click.option('--interval', type=click.FloatRange(0.25, 5.0), help='Set polling interval in seconds')
@click.option('--sources', 'source_list', help='Set lyrics sources, comma separated, in priority order')
@handle_error
def set(backend, interval, source_list):
    """
    Update configuration settings

    Changes are written to the user configuration file and persist across runs.
    """
    settings = get_settings()
    changes = []

    if backend:
        settings.player.backend = backend
        changes.append(f"Backend: {backend}")

    if interval:
        settings.player.poll_interval = interval
        changes.append(f"Poll interval: {interval}s")

    if source_list:
        names = [name.strip() for name in source_list.split(',') if name.strip()]
        unknown = [name for name in names if name not in VALID_SOURCES]
        if unknown or not names:
            raise ConfigError(f"Invalid lyrics sources: {', '.join(unknown) or source_list}")
        settings.lyrics.sources = names
        changes.append(f"Sources: {', '.join(names)}")

    if changes:
        path = settings.save_config()
        click.echo(f"Configuration updated ({path}):")
        for change in changes:
            click.echo(f"   • {change}")
    else:
        click.echo("No changes specified")


# System diagnostic commands
@cli.command()
@handle_error
def doctor():
    """
    Run system diagnostics

    Checks configuration validity, the now-playing backend executable and
    the logging setup.
    """
    click.echo("Running diagnostics...\n")

    issues = []
    settings = get_settings()

    errors = settings.get_validation_errors()
    if errors:
        click.echo("Configuration: Invalid")
        issues.extend(errors)
    else:
        click.echo("Configuration: OK")

    try:
        provider = get_now_playing_provider(settings=settings)
        executable = BACKEND_EXECUTABLES.get(provider.name)
        if executable and shutil.which(executable):
            click.echo(f"Now-playing backend: {provider.name} ({executable})")
        else:
            click.echo(f"Now-playing backend: {provider.name} (executable not found)")
            issues.append(f"Install {executable} to use the {provider.name} backend")
    except ConfigError as e:
        click.echo(f"Now-playing backend: Error - {e}")
        issues.append(str(e))

    click.echo(f"Lyrics sources: {', '.join(settings.lyrics.sources)}")

    current_log = get_current_log_file()
    if current_log:
        click.echo(f"Logging: {current_log}")
    else:
        click.echo("Logging: Console only")

    if issues:
        click.echo(f"\nFound {len(issues)} issues:")
        for issue in issues:
            click.echo(f"   • {issue}")
    else:
        click.echo("\nAll systems operational!")


# Entry point for module execution
if __name__ == '__main__':
    cli()
