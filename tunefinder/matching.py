"""Matching a recorded sample's fingerprints against a song database."""

from __future__ import annotations

import sys
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from datetime import timedelta
from itertools import combinations
from typing import Mapping, Sequence

from tunefinder import spectrogram as spectro
from tunefinder.fingerprint import TARGET_ZONE_SIZE, Couple, fingerprint


@dataclass
class Match:
    """A candidate song for a sample, with its score."""

    song_id: int
    song_title: str
    song_artist: str
    youtube_id: str
    timestamp: int
    score: float


@dataclass
class Song:
    """A song as stored in the database."""

    id: int
    title: str
    artist: str
    youtube_id: str


class MatchError(Exception):
    """Base error for matching failures."""


class SpectrogramError(MatchError):
    """The sample's spectrogram could not be computed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Spectrogram error: {message}")


class DatabaseError(MatchError):
    """The database failed to answer a query."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Database error: {message}")


class SongNotFoundError(MatchError):
    """A song id has no song behind it."""

    def __init__(self, song_id: int) -> None:
        self.song_id = song_id
        super().__init__(f"Song not found: {song_id}")


class DatabaseClient(ABC):
    """Storage that the matcher reads fingerprints and songs from."""

    @abstractmethod
    def get_couples(self, addresses: Sequence[int]) -> Mapping[int, Sequence[Couple]]:
        """Return the stored couples for each of the given addresses."""

    @abstractmethod
    def get_song_by_id(self, song_id: int) -> Song | None:
        """Return the song with this id, or None if there is none."""


def find_matches(
    audio_sample: Sequence[float],
    audio_duration: float,
    sample_rate: int,
    db_client: DatabaseClient,
) -> tuple[list[Match], timedelta]:
    """Fingerprint an audio sample and look it up in the database."""
    started = time.perf_counter()
    try:
        spectrum = spectro.spectrogram(audio_sample, sample_rate)
    except spectro.ShazamError as exc:
        raise SpectrogramError(str(exc)) from exc

    peaks = spectro.extract_peaks(spectrum, audio_duration)
    sample_fingerprint = {
        address: couple.anchor_time_ms
        for address, couple in fingerprint(peaks, generate_unique_id()).items()
    }
    matches, _ = find_matches_fgp(sample_fingerprint, db_client)
    return matches, timedelta(seconds=time.perf_counter() - started)


def find_matches_fgp(
    sample_fingerprint: Mapping[int, int], db_client: DatabaseClient
) -> tuple[list[Match], timedelta]:
    """Score songs by how well their stored fingerprints line up with the sample's."""
    started = time.perf_counter()
    couples_map = db_client.get_couples(list(sample_fingerprint))

    matches: dict[int, list[tuple[int, int]]] = defaultdict(list)
    timestamps: dict[int, int] = {}

    for address, couples in couples_map.items():
        sample_time = sample_fingerprint[address]
        for couple in couples:
            matches[couple.song_id].append((sample_time, couple.anchor_time_ms))
            earliest = timestamps.get(couple.song_id)
            if earliest is None or couple.anchor_time_ms < earliest:
                timestamps[couple.song_id] = couple.anchor_time_ms

    match_list: list[Match] = []
    for song_id, score in analyze_relative_timing(matches).items():
        song = db_client.get_song_by_id(song_id)
        if song is None:
            print(f"Song with ID {song_id} doesn't exist", file=sys.stderr)
            continue
        match_list.append(
            Match(
                song_id=song_id,
                song_title=song.title,
                song_artist=song.artist,
                youtube_id=song.youtube_id,
                timestamp=timestamps.get(song_id, 0),
                score=score,
            )
        )

    match_list.sort(key=lambda m: m.score, reverse=True)
    return match_list, timedelta(seconds=time.perf_counter() - started)


def filter_matches(
    threshold: int,
    matches: Mapping[int, list[tuple[int, int]]],
    target_zones: Mapping[int, Mapping[int, int]],
) -> dict[int, list[tuple[int, int]]]:
    """Keep songs having at least ``threshold`` full target zones.

    A zone counts only when at least ``TARGET_ZONE_SIZE`` couples share its anchor time.
    """
    zone_counts = {
        song_id: sum(1 for count in zones.values() if count >= TARGET_ZONE_SIZE)
        for song_id, zones in target_zones.items()
    }
    return {
        song_id: pairs
        for song_id, pairs in matches.items()
        if zone_counts.get(song_id, 0) > 0 and zone_counts[song_id] >= threshold
    }


def analyze_relative_timing(
    matches: Mapping[int, Sequence[tuple[int, int]]],
) -> dict[int, float]:
    """Count, per song, pairs whose sample and stored time gaps agree within 100 ms."""
    scores: dict[int, float] = {}
    for song_id, times in matches.items():
        count = 0
        for first, second in combinations(times, 2):
            sample_diff = abs(first[0] - second[0])
            db_diff = abs(first[1] - second[1])
            if abs(sample_diff - db_diff) < 100:
                count += 1
        scores[song_id] = float(count)
    return scores


def generate_unique_id() -> int:
    """Return the current time in milliseconds, truncated to 32 bits."""
    return time.time_ns() // 1_000_000 & 0xFFFFFFFF