import numpy as np
import pytest

from tunefinder import spectrogram as sp
from tunefinder.spectrogram import (
    DownsampleError,
    FftError,
    InvalidSampleRateError,
    Peak,
    ShazamError,
    downsample,
    extract_peaks,
    low_pass_filter,
    spectrogram,
)


def test_low_pass_filter_keeps_length_and_zeros():
    out = low_pass_filter(5000.0, 44100.0, [0.0] * 10)
    assert len(out) == 10
    assert np.all(out == 0.0)


def test_low_pass_filter_empty():
    assert len(low_pass_filter(5000.0, 44100.0, [])) == 0


def test_low_pass_filter_is_linear():
    signal = [0.3, -1.0, 2.5, 0.7, -0.2]
    single = low_pass_filter(1000.0, 8000.0, signal)
    double = low_pass_filter(1000.0, 8000.0, [2 * x for x in signal])
    assert np.allclose(double, 2 * single)


def test_low_pass_filter_step_rises_towards_input():
    out = low_pass_filter(1000.0, 8000.0, [1.0] * 200)
    assert np.all(np.diff(out) > 0)
    assert out[-1] < 1.0
    assert out[-1] == pytest.approx(1.0, abs=1e-6)


def test_low_pass_filter_higher_cutoff_passes_more():
    low = low_pass_filter(100.0, 8000.0, [1.0])
    high = low_pass_filter(3000.0, 8000.0, [1.0])
    assert high[0] > low[0]


def test_downsample_ratio_one_is_identity():
    data = [1.0, -2.0, 3.5]
    assert list(downsample(data, 100, 100)) == data


def test_downsample_averages_tail():
    assert list(downsample([2.0, 4.0, 6.0], 2, 1)) == [3.0, 6.0]


def test_downsample_constant_signal_stays_constant():
    out = downsample([0.25] * 17, 44100, 11025)
    assert len(out) == 5
    assert np.allclose(out, 0.25)


@pytest.mark.parametrize(
    "original,target",
    [(0, 1), (10, 0), (0, 0), (10, 20)],
)
def test_downsample_rejects_bad_rates(original, target):
    with pytest.raises(InvalidSampleRateError):
        downsample([1.0, 2.0], original, target)


def test_error_hierarchy_and_messages():
    for cls in (DownsampleError, InvalidSampleRateError, FftError):
        assert issubclass(cls, ShazamError)
    err = InvalidSampleRateError("Sample rates must be positive")
    assert str(err) == "Invalid sample rate: Sample rates must be positive"
    assert err.message == "Sample rates must be positive"


def test_spectrogram_too_short_is_empty():
    result = spectrogram([0.1] * 100, 44100)
    assert len(result) == 0


def test_spectrogram_shape():
    step = sp.FREQ_BIN_SIZE - sp.HOP_SIZE
    count = sp.DSP_RATIO * step * 3
    rng = np.random.default_rng(1)
    result = spectrogram(rng.standard_normal(count), 44100)
    assert result.shape == (3, sp.FREQ_BIN_SIZE // 2 + 1)


@pytest.mark.parametrize("rate", [0, 3, -8])
def test_spectrogram_rejects_bad_rate(rate):
    with pytest.raises(InvalidSampleRateError):
        spectrogram([0.0] * 10, rate)


def test_extract_peaks_empty():
    assert extract_peaks([], 10.0) == []


def test_extract_peaks_silence_has_no_peaks():
    rows = np.zeros((4, 513), dtype=complex)
    assert extract_peaks(rows, 4.0) == []


def test_extract_peaks_single_spike():
    row = np.zeros(513, dtype=complex)
    row[100] = 3 + 4j
    peaks = extract_peaks([row], 513.0)
    assert peaks == [Peak(time=100.0, freq=3 + 4j)]


def test_extract_peaks_times_increase_over_frames():
    rows = np.zeros((3, 513), dtype=complex)
    rows[:, 50] = 10.0
    peaks = extract_peaks(rows, 3.0)
    assert len(peaks) == 3
    times = [p.time for p in peaks]
    assert times == sorted(times)
    assert all(p.freq == 10.0 for p in peaks)


def test_spectrogram_of_tone_yields_peaks():
    rate = 8000
    t = np.arange(rate * 2) / rate
    tone = np.sin(2 * np.pi * 440 * t)
    result = spectrogram(tone, rate)
    peaks = extract_peaks(result, 2.0)
    assert peaks
    assert all(0.0 <= p.time <= 2.0 for p in peaks)