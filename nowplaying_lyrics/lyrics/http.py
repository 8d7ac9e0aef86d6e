"""
Shared HTTP client for lyric provider adapters

Wraps one ``aiohttp.ClientSession`` used by every adapter. The session is
created lazily inside the running event loop and closed by the owner of the
client (the playback tracker or the CLI command). All transport and decoding
failures are converted to ``UpstreamError`` so adapters only ever deal with
the project's own exception types.
"""

import asyncio
import json
import re
from typing import Any, Dict, Optional, Tuple

import aiohttp

from ..config.settings import get_settings
from ..exceptions import UpstreamError
from ..utils.helpers import retry_on_failure
from ..utils.logger import get_logger


# callback({...}) wrappers some endpoints add around their JSON
_JSONP_PATTERN = re.compile(r'^\s*[\w$.]+\s*\((.*)\)\s*;?\s*$', re.DOTALL)

_TRANSIENT_ERRORS = (aiohttp.ClientConnectionError, asyncio.TimeoutError)


def dig(data: Any, *keys: Any) -> Any:
    """
    Walk nested dicts/lists without raising on unexpected shapes

    Args:
        data: Decoded JSON document
        keys: Dict keys or list indexes to follow in order

    Returns:
        The nested value, or None if any step is missing
    """
    current = data
    for key in keys:
        if isinstance(key, int):
            if not isinstance(current, list) or not -len(current) <= key < len(current):
                return None
        elif not isinstance(current, dict):
            return None
        current = current[key] if isinstance(key, int) else current.get(key)
        if current is None:
            return None
    return current


def decode_json(text: str) -> Any:
    """
    Decode a JSON (or JSONP-wrapped JSON) response body

    Args:
        text: Response body

    Returns:
        Decoded document

    Raises:
        ValueError: If the body is not JSON
    """
    match = _JSONP_PATTERN.match(text)
    payload = match.group(1) if match and not text.lstrip().startswith(('{', '[')) else text
    return json.loads(payload)


class LyricsHttpClient:
    """
    Async HTTP client shared by the provider adapters

    Provides a single session with the configured user agent and a total
    request timeout, and a ``get_json`` helper that retries transient
    connection failures once before giving up.
    """

    def __init__(self, user_agent: Optional[str] = None, timeout: Optional[float] = None):
        """
        Initialize the client without opening any connection

        Args:
            user_agent: User-Agent header, defaults to the configured one
            timeout: Total request timeout in seconds, defaults to the configured one
        """
        settings = get_settings()
        self.logger = get_logger(__name__)
        self.user_agent = user_agent or settings.network.user_agent
        self.timeout = float(timeout or settings.network.request_timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        """Create the session on first use (must run inside the event loop)"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={'User-Agent': self.user_agent},
            )
        return self._session

    @retry_on_failure(max_attempts=2, delay=0.5, exceptions=_TRANSIENT_ERRORS)
    async def _get_body(
        self,
        url: str,
        params: Optional[Dict[str, Any]],
        headers: Optional[Dict[str, str]]
    ) -> Tuple[bytes, str]:
        """Raw body and its declared charset (utf-8 when none is declared)"""
        session = self._get_session()
        async with session.get(url, params=params, headers=headers) as response:
            if response.status >= 400:
                raise UpstreamError(
                    f"HTTP {response.status} from {url}",
                    details={'url': url, 'status': response.status}
                )
            return await response.read(), response.charset or 'utf-8'

    async def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        GET a URL and decode its JSON body

        Args:
            url: Absolute URL
            params: Query parameters
            headers: Extra request headers

        Returns:
            Decoded JSON document

        Raises:
            UpstreamError: On HTTP errors, connection failures, timeouts or invalid JSON
        """
        self.logger.debug(f"GET {url} params={params}")
        try:
            body, charset = await self._get_body(url, params, headers)
        except UpstreamError:
            raise
        except asyncio.TimeoutError as e:
            raise UpstreamError(f"Request to {url} timed out", details={'url': url, 'original_error': e})
        except aiohttp.ClientError as e:
            raise UpstreamError(f"Request to {url} failed: {e}", details={'url': url, 'original_error': e})

        # UnicodeDecodeError is a ValueError; an unknown charset name is a LookupError
        try:
            return decode_json(body.decode(charset))
        except (ValueError, LookupError) as e:
            raise UpstreamError(f"Invalid JSON from {url}: {e}", details={'url': url, 'original_error': e})

    async def close(self) -> None:
        """Close the underlying session if it was opened"""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
