# tunefinder

Recognise songs from short audio samples.

tunefinder turns audio into a spectrogram, picks out its strongest peaks,
hashes pairs of peaks into fingerprints and looks those fingerprints up in
a database of known songs. Songs are scored by how many pairs of matching
fingerprints have time gaps in the sample and in the stored song that agree
to within 100 ms.

## Installing

```
pip install .
```

## Modules

- `tunefinder.spectrogram` — `spectrogram(sample, sample_rate)` low-pass
  filters the signal at 5 kHz, downsamples it by 4 and returns the
  Hamming-windowed short-time Fourier transform (1024-sample frames) as a
  NumPy array. `extract_peaks(spectrogram, audio_duration)` returns a list of
  `Peak(time, freq)`. Also exposes `low_pass_filter` and `downsample`.
  Errors are raised as `ShazamError` and its subclasses
  `InvalidSampleRateError`, `DownsampleError` and `FftError`.
- `tunefinder.fingerprint` — `fingerprint(peaks, song_id)` pairs each peak
  with the next five and returns a dict mapping 32-bit addresses (built by
  `create_address`) to `Couple(anchor_time_ms, song_id)`.
- `tunefinder.matching` — `find_matches(audio_sample, audio_duration,
  sample_rate, db_client)` and `find_matches_fgp(sample_fingerprint,
  db_client)` return a list of `Match` objects sorted by score, highest
  first, together with the time taken as a `timedelta`. Any storage can be
  used by subclassing `DatabaseClient` and implementing `get_couples` and
  `get_song_by_id`. Also provides `analyze_relative_timing`,
  `filter_matches` and `generate_unique_id`. Errors derive from
  `MatchError` (`SpectrogramError`, `DatabaseError`, `SongNotFoundError`).
- `tunefinder.models` — `Database(path)`, an SQLite-backed `DatabaseClient`.
  `migrate()` creates the song and fingerprint tables, `add_song(youtube_url)`
  returns a `SongRecord`, `add_fingerprints(song_id, fingerprints)` stores
  the output of `fingerprint`. It can be used as a context manager.
- `tunefinder.audio` — `fetch_audio_data(path)` reads a WAV file (PCM 8, 16,
  24 or 32 bit, or IEEE float 32 or 64 bit) and returns its samples mixed to
  mono float32, together with the sample rate. `normalize` and
  `convert_to_mono` scale raw samples of any `SampleFormat`.
- `tunefinder.randomness` — `random_string(length)` returns a random
  alphanumeric string.

## Example

```python
from tunefinder.audio import fetch_audio_data
from tunefinder.spectrogram import spectrogram, extract_peaks
from tunefinder.fingerprint import fingerprint
from tunefinder.matching import find_matches
from tunefinder.models import Database

with Database("songs.sqlite3") as db:
    db.migrate()

    samples, rate = fetch_audio_data("song.wav")
    duration = len(samples) / rate
    song = db.add_song("https://video.example.com/watch?v=abc")
    peaks = extract_peaks(spectrogram(samples, rate), duration)
    db.add_fingerprints(song.id, fingerprint(peaks, song.id))

    clip, clip_rate = fetch_audio_data("clip.wav")
    matches, elapsed = find_matches(clip, len(clip) / clip_rate, clip_rate, db)
    for match in matches:
        print(match.song_id, match.score, match.timestamp)
```

Songs returned by `Database.get_song_by_id` carry the stored URL as
`youtube_id`; their title and artist are empty.

## What it does not do

tunefinder is a library only. It has no command-line program and no web
application, and it does not fetch audio from video links: audio must be
provided as WAV files or as sample sequences.

## Running the tests

```
pip install ".[test]"
pytest
```