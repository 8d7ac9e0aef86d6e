"""
Subprocess helper shared by the command-line player backends
"""

import asyncio
import contextlib
from typing import Sequence, Tuple

from ..exceptions import NowPlayingError


async def run_command(args: Sequence[str], backend: str) -> Tuple[int, str, str]:
    """
    Run a command and capture its output

    The child is killed if the awaiting task is cancelled (for example by the
    tracker's query timeout), so a hung player bridge never piles up processes.

    Args:
        args: Command and arguments
        backend: Backend name for error details

    Returns:
        Tuple of (return code, stdout, stderr) with text decoded as UTF-8

    Raises:
        NowPlayingError: If the executable cannot be started
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise NowPlayingError(
            f"Cannot run {args[0]}: {e}",
            details={'backend': backend, 'original_error': e}
        )

    try:
        stdout, stderr = await process.communicate()
    except asyncio.CancelledError:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        raise

    return (
        process.returncode,
        stdout.decode('utf-8', errors='replace'),
        stderr.decode('utf-8', errors='replace'),
    )


def parse_number(value: str) -> float:
    """Parse a number that may use a locale decimal comma, 0.0 when blank or invalid"""
    value = (value or "").strip().replace(',', '.')
    try:
        return float(value)
    except ValueError:
        return 0.0
