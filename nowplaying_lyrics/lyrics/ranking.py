"""
Deterministic ordering of search candidates

Providers that return several hits for one query are tried in this order:
1. candidates flagged as having synchronized lyrics,
2. then exact (case-insensitive) artist matches,
3. then exact (case-insensitive) title matches.

Ties keep the upstream order because the sort is stable.
"""

from typing import Iterable, List

from .models import LyricsCandidate


def rank_candidates(candidates: Iterable[LyricsCandidate], artist: str, title: str) -> List[LyricsCandidate]:
    """
    Order candidates by preference

    Args:
        candidates: Candidates in upstream order
        artist: Requested artist
        title: Requested title

    Returns:
        New list, best candidate first
    """
    wanted_artist = (artist or "").strip().casefold()
    wanted_title = (title or "").strip().casefold()

    def sort_key(candidate: LyricsCandidate):
        return (
            not candidate.synced,
            (candidate.artist or "").strip().casefold() != wanted_artist,
            (candidate.title or "").strip().casefold() != wanted_title,
        )

    return sorted(candidates, key=sort_key)
