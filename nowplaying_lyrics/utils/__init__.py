# nowplaying_lyrics/utils/__init__.py
"""
Utilities package
Common helpers, logging, and utility functions
"""

from .logger import (
    get_logger,
    configure_from_settings,
    setup_logging,
    log_performance,
    get_current_log_file
)
from .helpers import (
    normalize_track_field,
    strip_credit_lines,
    format_duration,
    format_timestamp_ms,
    truncate_string,
    retry_on_failure
)

__all__ = [
    # Logger exports
    'get_logger',
    'configure_from_settings',
    'setup_logging',
    'log_performance',
    'get_current_log_file',

    # Helper exports
    'normalize_track_field',
    'strip_credit_lines',
    'format_duration',
    'format_timestamp_ms',
    'truncate_string',
    'retry_on_failure'
]
