"""
Playback tracker: the reconciliation loop between the media player and lyrics

On every tick the tracker queries the now-playing backend, detects track
changes, drives lyric resolution and publishes the display state for the
current playback position.

Tick sequence:

1. Query the backend, bounded by ``player.query_timeout``. A failed query is
   handled like "nothing playing" (active lyrics are cleared). Permission and
   timeout failures additionally switch the display to a persistent
   "Permission needed" indicator that stays until a query succeeds.
2. A paused player keeps whatever lyrics are loaded and never starts a fetch.
3. A new identity key empties the loaded lyrics, becomes the active key
   immediately and either adopts a fresh cache hit or marks lyrics pending.
4. Pending lyrics are fetched by a background task. Only one fetch is in
   flight at a time; a track that became active while another track's fetch
   was running is fetched on the first tick after that fetch completes.
5. The active line for the playback position is located and published.

Race Prevention:

A fetch re-checks the active key after the resolver returns. If the user
moved to another track in the meantime the result is dropped, neither cached
nor shown, so lyrics of a previous track can never be displayed for the
current one.
"""

import asyncio
import contextlib
import time
from enum import Enum
from typing import Callable, Dict, List, Optional

from .display import DisplayState, DisplayStatus, Notification, NotificationKind
from ..config.settings import Settings, get_settings
from ..exceptions import LyricsError, NowPlayingError
from ..lyrics.cache import LyricCache
from ..lyrics.locator import locate_index
from ..lyrics.models import SyncedLyricSet, TrackIdentity
from ..lyrics.resolver import LyricResolver
from ..player import NowPlayingProvider
from ..player.models import NowPlaying, PlaybackSnapshot
from ..utils.helpers import truncate_string
from ..utils.logger import get_logger


PERMISSION_HELP = (
    "Allow this terminal to control your music app: System Settings > "
    "Privacy & Security > Automation, then restart the terminal."
)

DisplayListener = Callable[[DisplayState], None]
NotificationListener = Callable[[Notification], None]


class LyricsState(Enum):
    """Lyrics sub-state of the active track slot"""
    NONE = "none"                  # no active track
    PENDING = "pending"            # waiting for (or running) a fetch
    READY = "ready"
    UNAVAILABLE = "unavailable"    # resolver found nothing


class PlaybackTracker:
    """
    Owns the active track, its lyrics and the lyric cache

    All state is mutated from the event loop only: by ``tick()`` and by the
    synchronous tail of the fetch task, which runs after the resolver call
    has returned.
    """

    def __init__(
        self,
        provider: NowPlayingProvider,
        resolver: LyricResolver,
        cache: Optional[LyricCache] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        """
        Initialize the tracker

        Args:
            provider: Now-playing backend
            resolver: Lyric resolver, closed by ``stop()``
            cache: Lyric cache, defaults to one with the configured TTL
            settings: Settings instance, defaults to the global one
            clock: Seconds clock used for notification cooldowns
        """
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)

        self.provider = provider
        self.resolver = resolver
        self.cache = cache if cache is not None else LyricCache(ttl_ms=self.settings.cache_ttl_ms)
        self.poll_interval = float(self.settings.player.poll_interval)
        self.query_timeout = float(self.settings.player.query_timeout)
        self.error_cooldown = float(self.settings.notifications.error_cooldown)
        self._clock = clock or time.monotonic

        # Active track slot
        self._active_key: Optional[str] = None
        self._active_identity: Optional[TrackIdentity] = None
        self._lyrics: Optional[SyncedLyricSet] = None
        self._lyrics_state = LyricsState.NONE
        self._fetch_error: Optional[str] = None
        self._last_snapshot: Optional[PlaybackSnapshot] = None

        # Fetch and loop control
        self._fetch_task: Optional[asyncio.Task] = None
        self._in_flight_key: Optional[str] = None
        self._updating = False
        self._stop_event: Optional[asyncio.Event] = None
        self._closed = False

        # Error reporting
        self._permission_needed = False
        self._last_reported: Dict[NotificationKind, float] = {}

        self._display = self._idle_display()
        self._listeners: List[DisplayListener] = []
        self._notification_listeners: List[NotificationListener] = []

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    @property
    def display(self) -> DisplayState:
        return self._display

    @property
    def active_lyrics(self) -> Optional[SyncedLyricSet]:
        return self._lyrics

    @property
    def lyrics_state(self) -> LyricsState:
        return self._lyrics_state

    @property
    def active_key(self) -> Optional[str]:
        return self._active_key

    @property
    def in_flight_key(self) -> Optional[str]:
        return self._in_flight_key

    def subscribe(self, listener: DisplayListener) -> None:
        """Register a callback receiving every changed DisplayState"""
        self._listeners.append(listener)

    def subscribe_notifications(self, listener: NotificationListener) -> None:
        """Register a callback receiving user notifications"""
        self._notification_listeners.append(listener)

    async def tick(self) -> None:
        """
        Run one reconciliation cycle

        Skipped when the previous cycle is still running. Never raises:
        unexpected errors are logged so that polling continues.
        """
        if self._updating:
            self.logger.debug("Previous update still running, skipping tick")
            return

        self._updating = True
        try:
            await self._update()
        except Exception as e:
            self.logger.error(f"Unexpected error during playback update: {e}", exc_info=True)
        finally:
            self._updating = False

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Poll at the configured interval until stopped

        Args:
            stop_event: Event that ends the loop when set
        """
        self._stop_event = stop_event or asyncio.Event()
        self.logger.debug(f"Playback tracker started (interval {self.poll_interval}s)")

        try:
            while not self._stop_event.is_set():
                await self.tick()
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Stop polling, cancel an in-flight fetch and release the HTTP session"""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._closed:
            return
        self._closed = True

        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._fetch_task

        await self.resolver.close()
        self.logger.debug("Playback tracker stopped")

    async def wait_for_fetch(self) -> None:
        """Wait until the in-flight fetch, if any, has completed"""
        if self._fetch_task is not None and not self._fetch_task.done():
            await self._fetch_task

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def _query(self) -> Optional[NowPlaying]:
        try:
            return await asyncio.wait_for(self.provider.current(), timeout=self.query_timeout)
        except asyncio.TimeoutError:
            raise NowPlayingError(
                f"Now-playing query timed out after {self.query_timeout:g}s",
                details={'backend': getattr(self.provider, 'name', None)}
            )

    async def _update(self) -> None:
        try:
            now_playing = await self._query()
        except NowPlayingError as e:
            self._handle_player_error(e)
            return

        self._permission_needed = False

        snapshot = PlaybackSnapshot.from_now_playing(now_playing) if now_playing else None
        if snapshot is None or snapshot.identity.is_empty:
            self._clear_track()
            self._publish(self._idle_display())
            return

        self._last_snapshot = snapshot

        if not snapshot.is_playing:
            self._publish(self._paused_display(snapshot))
            return

        if snapshot.key != self._active_key:
            self._activate(snapshot.identity)

        self._start_fetch_if_needed()
        self._publish(self._render(snapshot))

    def _activate(self, identity: TrackIdentity) -> None:
        """Make a new track active, adopting cached lyrics when available"""
        self.logger.console_info(f"Now playing: {identity}")
        self._active_key = identity.key
        self._active_identity = identity
        self._lyrics = None
        self._fetch_error = None

        cached = self.cache.get(identity.key)
        if cached is not None:
            self.logger.debug(f"Using cached lyrics for {identity}")
            self._adopt(cached)
        else:
            self._lyrics_state = LyricsState.PENDING

    def _start_fetch_if_needed(self) -> None:
        if self._lyrics_state is not LyricsState.PENDING or self._active_identity is None:
            return
        if self._fetch_task is not None and not self._fetch_task.done():
            if self._in_flight_key != self._active_key:
                self.logger.debug("Fetch for a previous track still running, waiting")
            return

        identity = self._active_identity
        self._in_flight_key = identity.key
        self._fetch_task = asyncio.create_task(self._fetch(identity))

    async def _fetch(self, identity: TrackIdentity) -> None:
        """Resolve lyrics for one identity and apply the result if still relevant"""
        key = identity.key
        lyric_set: Optional[SyncedLyricSet] = None
        error: Optional[str] = None

        try:
            lyric_set = await self.resolver.resolve(identity.artist, identity.title)
        except LyricsError as e:
            error = str(e)
        except Exception as e:
            self.logger.error(f"Lyrics fetch for {identity} crashed: {e}", exc_info=True)
            error = str(e)
        finally:
            self._in_flight_key = None

        if key != self._active_key:
            self.logger.debug(f"Discarding stale lyrics result for {identity}")
            return

        if lyric_set is not None:
            self.cache.put(key, lyric_set)
            self._adopt(lyric_set)
        else:
            self.logger.console_info(f"No lyrics found for {identity}")
            self.logger.debug(f"Last lyrics error for {identity}: {error}")
            self._lyrics = None
            self._lyrics_state = LyricsState.UNAVAILABLE
            self._fetch_error = error

        snapshot = self._last_snapshot
        if snapshot is not None and snapshot.key == key and snapshot.is_playing:
            self._publish(self._render(snapshot))

    def _adopt(self, lyric_set: SyncedLyricSet) -> None:
        if self.settings.lyrics.clean_transcript:
            lyric_set = lyric_set.without_credits(self.settings.lyrics.credit_markers)
        self._lyrics = lyric_set
        self._lyrics_state = LyricsState.READY

    def _clear_track(self) -> None:
        if self._active_key is not None:
            self.logger.debug(f"Track {self._active_identity} no longer playing, clearing lyrics")
        self._active_key = None
        self._active_identity = None
        self._lyrics = None
        self._lyrics_state = LyricsState.NONE
        self._fetch_error = None
        self._last_snapshot = None

    # ------------------------------------------------------------------
    # Errors and notifications
    # ------------------------------------------------------------------

    def _handle_player_error(self, error: NowPlayingError) -> None:
        if error.is_permission_error:
            self._permission_needed = True
            if self._cooldown_elapsed(NotificationKind.PERMISSION):
                self.logger.warning(f"Cannot read the media player: {error}")
                self._notify(Notification(
                    kind=NotificationKind.PERMISSION,
                    message=PERMISSION_HELP,
                    detail=str(error)
                ))
            else:
                self.logger.debug(f"Media player query failed: {error}")
        elif self._cooldown_elapsed(NotificationKind.ERROR):
            self.logger.warning(f"Media player query failed: {error}")
        else:
            self.logger.debug(f"Media player query failed: {error}")

        self._clear_track()
        self._publish(self._permission_display() if self._permission_needed else self._idle_display())

    def _cooldown_elapsed(self, kind: NotificationKind) -> bool:
        now = self._clock()
        last = self._last_reported.get(kind)
        if last is not None and now - last < self.error_cooldown:
            return False
        self._last_reported[kind] = now
        return True

    def _notify(self, notification: Notification) -> None:
        for listener in list(self._notification_listeners):
            try:
                listener(notification)
            except Exception as e:
                self.logger.error(f"Notification listener failed: {e}", exc_info=True)

    def _publish(self, state: DisplayState) -> None:
        if state == self._display:
            return
        self._display = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                self.logger.error(f"Display listener failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Display states
    # ------------------------------------------------------------------

    def _idle_display(self) -> DisplayState:
        texts = self.settings.display
        return DisplayState(status=DisplayStatus.IDLE, text=texts.idle_text, tooltip=texts.idle_tooltip)

    def _permission_display(self) -> DisplayState:
        return DisplayState(
            status=DisplayStatus.PERMISSION_NEEDED,
            text=self.settings.display.permission_text,
            tooltip=PERMISSION_HELP
        )

    def _paused_display(self, snapshot: PlaybackSnapshot) -> DisplayState:
        identity = snapshot.identity
        transcript = ""
        if self._lyrics is not None and snapshot.key == self._active_key:
            transcript = self._lyrics.plain_text
        return DisplayState(
            status=DisplayStatus.PAUSED,
            text=self.settings.display.paused_text,
            tooltip=self._now_playing_tooltip(identity),
            transcript=transcript,
            title=identity.title,
            artist=identity.artist
        )

    def _render(self, snapshot: PlaybackSnapshot) -> DisplayState:
        """Display state for the active track at the snapshot position"""
        texts = self.settings.display
        identity = snapshot.identity
        common = {
            'title': identity.title,
            'artist': identity.artist,
            'tooltip': self._now_playing_tooltip(identity),
        }

        if self._lyrics_state is LyricsState.PENDING:
            return DisplayState(status=DisplayStatus.FETCHING, text=texts.fetching_text, **common)

        if self._lyrics_state is LyricsState.UNAVAILABLE or self._lyrics is None:
            if self._fetch_error:
                common['tooltip'] = f"Error: {self._fetch_error}"
            return DisplayState(status=DisplayStatus.NOT_FOUND, text=texts.not_found_text, **common)

        lines = self._lyrics.lines
        index = locate_index(lines, snapshot.position_ms)
        if index < 0:
            return DisplayState(
                status=DisplayStatus.PLACEHOLDER,
                text=texts.placeholder_text,
                transcript=self._lyrics.plain_text,
                **common
            )

        return DisplayState(
            status=DisplayStatus.LINE,
            text=truncate_string(lines[index].text, int(texts.max_line_length)),
            transcript=self._lyrics.plain_text,
            line_index=index,
            **common
        )

    @staticmethod
    def _now_playing_tooltip(identity: TrackIdentity) -> str:
        return f"Now Playing: {identity.title} - {identity.artist}"
