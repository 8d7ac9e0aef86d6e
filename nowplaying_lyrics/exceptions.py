"""
Exception classes for nowplaying-lyrics.

This module defines all custom exceptions used throughout the application.
Each exception is designed to provide clear, actionable error messages
and to distinguish between different failure modes.

Exception Hierarchy:
    NowPlayingLyricsError (base)
        ConfigError - Configuration file issues
        NowPlayingError - Media player query failures
        LyricsError - Lyrics acquisition failures
            NotFoundError - A provider has no match or no lyric data
            UpstreamError - A provider failed at transport or parsing level
            NoLyricsFoundError - Every configured provider was exhausted
"""

from typing import Optional


# Substrings the media player bridge uses when access is refused or hangs.
# Matched case-insensitively against the error message.
PERMISSION_ERROR_MARKERS = ("not allowed", "permission", "authorized", "timed out")


class NowPlayingLyricsError(Exception):
    """
    Base exception for all nowplaying-lyrics errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all application errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., artist, title, URL).

    Example:
        try:
            # some operation
        except NowPlayingLyricsError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that may be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'source': Lyrics provider name
                     - 'url': URL that caused the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(NowPlayingLyricsError):
    """
    Raised when there's an issue with the configuration.

    Common causes:
        - config.yaml has invalid YAML syntax
        - Unknown now-playing backend or lyrics source name
        - Invalid field values (e.g., negative poll interval)
    """
    pass


class NowPlayingError(NowPlayingLyricsError):
    """
    Raised when the local media player cannot be queried.

    This is a NON-CRITICAL error: the playback tracker treats it as
    "no track playing" and keeps polling. Some failures are actionable by
    the user (automation permission denied, bridge timed out) and are
    surfaced as a persistent "permission needed" indicator instead.

    Example:
        raise NowPlayingError(
            "osascript failed: Not authorized to send Apple events to Music.",
            details={'backend': 'applescript', 'returncode': 1}
        )
    """

    @property
    def is_permission_error(self) -> bool:
        """True if the message matches one of the permission/timeout markers."""
        return is_permission_message(self.message)


class LyricsError(NowPlayingLyricsError):
    """
    Base class for lyrics acquisition failures.

    Attributes:
        source: Name of the provider that raised the error, if any.
    """

    def __init__(self, message: str, details: Optional[dict] = None, source: Optional[str] = None) -> None:
        super().__init__(message, details)
        self.source = source


class NotFoundError(LyricsError):
    """
    Raised by a provider adapter when the upstream has no matching song
    or the matched song carries no usable lyric data.

    The resolver logs it and continues with the next provider.
    """
    pass


class UpstreamError(LyricsError):
    """
    Raised by a provider adapter for transport or parsing failures.

    Common causes:
        - HTTP error status or connection failure
        - Request timeout
        - Response body is not the expected JSON shape

    The resolver logs it and continues with the next provider.
    """
    pass


class NoLyricsFoundError(LyricsError):
    """
    Raised by the resolver when every configured provider failed or
    returned an empty line set.

    Attributes:
        last_error: The last error recorded while iterating providers,
                    or None if no provider raised.
    """

    def __init__(self, message: str, last_error: Optional[LyricsError] = None, details: Optional[dict] = None) -> None:
        super().__init__(message, details)
        self.last_error = last_error


def is_permission_message(message: str) -> bool:
    """
    Check whether an error message indicates a permission or timeout condition

    Args:
        message: Error message reported by the now-playing backend

    Returns:
        True if any permission marker occurs in the message
    """
    lowered = (message or "").lower()
    return any(marker in lowered for marker in PERMISSION_ERROR_MARKERS)
