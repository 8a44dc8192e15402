"""Turning spectral peaks into hashed fingerprint addresses."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from tunefinder.spectrogram import Peak

MAX_FREQ_BITS = 9
MAX_DELTA_BITS = 14
TARGET_ZONE_SIZE = 5

_U32_MASK = 0xFFFFFFFF
_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


@dataclass(frozen=True)
class Couple:
    """Where a fingerprint comes from: its anchor time and its song."""

    anchor_time_ms: int
    song_id: int


def _saturating_u32(value: float) -> int:
    if math.isnan(value) or value <= 0:
        return 0
    if value >= _U32_MASK:
        return _U32_MASK
    return int(value)


def _saturating_i32(value: float) -> int:
    if math.isnan(value):
        return 0
    if value <= _I32_MIN:
        return _I32_MIN
    if value >= _I32_MAX:
        return _I32_MAX
    return int(value)


def fingerprint(peaks: Sequence[Peak], song_id: int) -> dict[int, Couple]:
    """Pair each peak with the next peaks in its target zone and hash each pair."""
    fingerprints: dict[int, Couple] = {}
    for index, anchor in enumerate(peaks):
        anchor_time_ms = _saturating_u32(anchor.time * 1000.0)
        for target in peaks[index + 1 : index + 1 + TARGET_ZONE_SIZE]:
            fingerprints[create_address(anchor, target)] = Couple(anchor_time_ms, song_id)
    return fingerprints


def create_address(anchor: Peak, target: Peak) -> int:
    """Pack anchor frequency, target frequency and time delta into 32 bits."""
    anchor_freq = _saturating_i32(complex(anchor.freq).real) & _U32_MASK
    target_freq = _saturating_i32(complex(target.freq).real) & _U32_MASK
    delta_ms = _saturating_u32((target.time - anchor.time) * 1000.0)
    return ((anchor_freq << 23) | (target_freq << 14) | delta_ms) & _U32_MASK