"""Spectrogram computation and peak extraction for audio fingerprinting."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

DSP_RATIO = 4
FREQ_BIN_SIZE = 1024
MAX_FREQ = 5000.0
HOP_SIZE = FREQ_BIN_SIZE // 32

BANDS: tuple[tuple[int, int], ...] = (
    (0, 10),
    (10, 20),
    (20, 40),
    (40, 80),
    (80, 160),
    (160, 512),
)


class ShazamError(Exception):
    """Base error raised while building a spectrogram."""

    prefix = "Spectrogram error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"{self.prefix}: {message}")


class DownsampleError(ShazamError):
    """Raised when the signal cannot be downsampled."""

    prefix = "Downsample error"


class InvalidSampleRateError(ShazamError):
    """Raised for sample rates that are zero, negative or inconsistent."""

    prefix = "Invalid sample rate"


class FftError(ShazamError):
    """Raised when the Fourier transform of a window fails."""

    prefix = "FFT error"


@dataclass(frozen=True)
class Peak:
    """A spectral peak: when it occurs (seconds) and its complex amplitude."""

    time: float
    freq: complex


def spectrogram(sample: Iterable[float], sample_rate: int) -> np.ndarray:
    """Return the short-time Fourier transform of a mono signal.

    The signal is low-pass filtered, downsampled by ``DSP_RATIO`` and cut into
    Hamming-windowed frames; each row of the result is one frame's spectrum.
    """
    if sample_rate <= 0:
        raise InvalidSampleRateError("Sample rates must be positive")

    filtered = low_pass_filter(MAX_FREQ, float(sample_rate), sample)
    downsampled = downsample(filtered, sample_rate, sample_rate // DSP_RATIO)

    num_windows = len(downsampled) // (FREQ_BIN_SIZE - HOP_SIZE)
    result = np.empty((num_windows, FREQ_BIN_SIZE // 2 + 1), dtype=complex)
    window = np.hamming(FREQ_BIN_SIZE)

    for index in range(num_windows):
        start = index * HOP_SIZE
        chunk = downsampled[start : start + FREQ_BIN_SIZE]
        frame = np.zeros(FREQ_BIN_SIZE)
        frame[: len(chunk)] = chunk
        try:
            result[index] = np.fft.rfft(frame * window)
        except (ValueError, TypeError) as exc:
            raise FftError(f"FFT processing failed: {exc}") from exc

    return result


def low_pass_filter(
    cutoff_frequency: float, sample_rate: float, samples: Iterable[float]
) -> np.ndarray:
    """Attenuate frequencies above the cutoff with a first-order RC filter."""
    rc = 1.0 / (2.0 * math.pi * cutoff_frequency)
    dt = 1.0 / sample_rate
    alpha = dt / (rc + dt)

    values = np.asarray(list(samples) if not isinstance(samples, np.ndarray) else samples, dtype=float)
    filtered = np.empty(len(values))
    previous = 0.0
    for index, value in enumerate(values.tolist()):
        previous = alpha * value + (1.0 - alpha) * previous
        filtered[index] = previous
    return filtered


def downsample(
    samples: Sequence[float], original_sample_rate: int, target_sample_rate: int
) -> np.ndarray:
    """Reduce the sample rate by averaging consecutive groups of samples."""
    if target_sample_rate <= 0 or original_sample_rate <= 0:
        raise InvalidSampleRateError("Sample rates must be positive")
    if target_sample_rate > original_sample_rate:
        raise InvalidSampleRateError(
            "Target sample rate must be less than or equal to original sample rate"
        )

    ratio = original_sample_rate // target_sample_rate
    data = np.asarray(samples, dtype=float)
    full = len(data) // ratio * ratio
    averaged = data[:full].reshape(-1, ratio).mean(axis=1)
    if full < len(data):
        averaged = np.append(averaged, data[full:].mean())
    return averaged


def extract_peaks(spectrogram: Sequence[Sequence[complex]], audio_duration: float) -> list[Peak]:
    """Pick, per frame, the band maxima that exceed the frame's mean band maximum."""
    rows = list(spectrogram)
    if not rows:
        return []

    bin_duration = audio_duration / len(rows)
    peaks: list[Peak] = []

    for bin_index, row in enumerate(rows):
        frame = np.asarray(row, dtype=complex)
        maxima: list[tuple[float, complex, int]] = []
        for low, high in BANDS:
            band = frame[low:high]
            magnitudes = np.abs(band)
            if len(band):
                best = int(np.argmax(magnitudes))
                if magnitudes[best] > 0.0:
                    maxima.append((float(magnitudes[best]), complex(band[best]), low + best))
                    continue
            maxima.append((0.0, 0j, low))

        average = sum(magnitude for magnitude, _, _ in maxima) / len(maxima)
        for magnitude, freq, freq_index in maxima:
            if magnitude > average:
                offset = freq_index * bin_duration / len(frame)
                peaks.append(Peak(time=bin_index * bin_duration + offset, freq=freq))

    return peaks