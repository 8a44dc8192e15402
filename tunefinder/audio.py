"""Loading audio files as mono float samples."""

from __future__ import annotations

import os
import struct
from enum import Enum
from typing import Sequence

import numpy as np

_WAVE_FORMAT_PCM = 0x0001
_WAVE_FORMAT_IEEE_FLOAT = 0x0003
_WAVE_FORMAT_EXTENSIBLE = 0xFFFE

_S24_MAX = 8388607.0
_U24_MAX = 16777215.0


class SampleFormat(Enum):
    """How the raw samples of a decoded buffer are stored."""

    F32 = "f32"
    F64 = "f64"
    S32 = "s32"
    S24 = "s24"
    S16 = "s16"
    S8 = "s8"
    U32 = "u32"
    U24 = "u24"
    U16 = "u16"
    U8 = "u8"


# Full-scale value of each integer format and whether it is unsigned.
_INTEGER_SCALES: dict[SampleFormat, tuple[float, bool]] = {
    SampleFormat.S32: (float(2**31 - 1), False),
    SampleFormat.S24: (_S24_MAX, False),
    SampleFormat.S16: (float(2**15 - 1), False),
    SampleFormat.S8: (float(2**7 - 1), False),
    SampleFormat.U32: (float(2**32 - 1), True),
    SampleFormat.U24: (_U24_MAX, True),
    SampleFormat.U16: (float(2**16 - 1), True),
    SampleFormat.U8: (float(2**8 - 1), True),
}


def _scaled(samples: Sequence[float] | np.ndarray, sample_format: SampleFormat) -> np.ndarray:
    data = np.asarray(samples)
    if sample_format is SampleFormat.F64:
        return data.astype(np.float64)
    if sample_format is SampleFormat.F32:
        return data.astype(np.float32)
    scale, unsigned = _INTEGER_SCALES[sample_format]
    values = data.astype(np.float32) / np.float32(scale)
    if unsigned:
        values = values * np.float32(2.0) - np.float32(1.0)
    return values.astype(np.float32)


def normalize(
    samples: Sequence[float] | np.ndarray, sample_format: SampleFormat | str
) -> np.ndarray:
    """Scale raw samples of the given format to floats around zero."""
    return _scaled(samples, SampleFormat(sample_format)).astype(np.float32)


def convert_to_mono(
    planes: Sequence[Sequence[float] | np.ndarray], sample_format: SampleFormat | str
) -> np.ndarray:
    """Normalize per-channel planes and average them into one channel."""
    fmt = SampleFormat(sample_format)
    channels = list(planes)
    if not channels:
        return np.empty(0, dtype=np.float32)
    if len(channels) == 1:
        return normalize(channels[0], fmt)
    stacked = np.stack([_scaled(plane, fmt) for plane in channels])
    total = stacked.sum(axis=0, dtype=stacked.dtype)
    return (total / stacked.dtype.type(len(channels))).astype(np.float32)


def _decode_s24(data: bytes) -> np.ndarray:
    triples = np.frombuffer(data, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
    values = triples[:, 0] | (triples[:, 1] << 8) | (triples[:, 2] << 16)
    return np.where(values & 0x800000, values - 0x1000000, values).astype(np.int32)


def _sample_layout(tag: int, bits: int) -> tuple[SampleFormat, str | None]:
    layouts = {
        (_WAVE_FORMAT_PCM, 8): (SampleFormat.U8, "u1"),
        (_WAVE_FORMAT_PCM, 16): (SampleFormat.S16, "<i2"),
        (_WAVE_FORMAT_PCM, 24): (SampleFormat.S24, None),
        (_WAVE_FORMAT_PCM, 32): (SampleFormat.S32, "<i4"),
        (_WAVE_FORMAT_IEEE_FLOAT, 32): (SampleFormat.F32, "<f4"),
        (_WAVE_FORMAT_IEEE_FLOAT, 64): (SampleFormat.F64, "<f8"),
    }
    try:
        return layouts[(tag, bits)]
    except KeyError:
        raise ValueError(f"Unsupported sample format: tag {tag}, {bits} bits") from None


def _read_wav(raw: bytes) -> tuple[list[np.ndarray], SampleFormat, int]:
    if len(raw) < 12 or raw[:4] != b"RIFF" or raw[8:12] != b"WAVE":
        raise ValueError("No supported audio tracks found")

    fmt_chunk: bytes | None = None
    data_chunk: bytes | None = None
    offset = 12
    while offset + 8 <= len(raw):
        chunk_id = raw[offset : offset + 4]
        (size,) = struct.unpack_from("<I", raw, offset + 4)
        body = raw[offset + 8 : offset + 8 + size]
        if chunk_id == b"fmt ":
            fmt_chunk = body
        elif chunk_id == b"data":
            data_chunk = body
        offset += 8 + size + (size & 1)

    if fmt_chunk is None or data_chunk is None or len(fmt_chunk) < 16:
        raise ValueError("No supported audio tracks found")

    tag, channels, sample_rate, _, _, bits = struct.unpack_from("<HHIIHH", fmt_chunk)
    if tag == _WAVE_FORMAT_EXTENSIBLE and len(fmt_chunk) >= 26:
        (tag,) = struct.unpack_from("<H", fmt_chunk, 24)
    if channels == 0:
        raise ValueError("No supported audio tracks found")
    if sample_rate == 0:
        raise ValueError("Sample rate not found")

    sample_format, dtype = _sample_layout(tag, bits)
    frame_width = channels * bits // 8
    usable = len(data_chunk) // frame_width * frame_width
    payload = data_chunk[:usable]
    values = _decode_s24(payload) if dtype is None else np.frombuffer(payload, dtype=dtype)
    interleaved = values.reshape(-1, channels)
    return [interleaved[:, channel] for channel in range(channels)], sample_format, sample_rate


def fetch_audio_data(path: str | os.PathLike[str]) -> tuple[np.ndarray, int]:
    """Decode a WAV file into mono float32 samples and its sample rate."""
    with open(path, "rb") as handle:
        raw = handle.read()
    planes, sample_format, sample_rate = _read_wav(raw)
    return convert_to_mono(planes, sample_format), sample_rate