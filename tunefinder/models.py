"""SQLite storage for songs and their fingerprints."""

from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from typing import Iterator, Mapping, Sequence

from tunefinder.fingerprint import Couple
from tunefinder.matching import DatabaseClient, DatabaseError, Song

APP_NAME = "main_app"
SONG_TABLE = "main_app__song"
FINGERPRINT_TABLE = "main_app__finger_print"

MIGRATIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "m_0001_initial",
        (
            f"CREATE TABLE {SONG_TABLE} ("
            "id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL, "
            "youtube_url TEXT NOT NULL)",
            f"CREATE TABLE {FINGERPRINT_TABLE} ("
            "id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL, "
            "address INTEGER NOT NULL, "
            "anchor_time_ms INTEGER NOT NULL, "
            "song_id INTEGER NOT NULL)",
        ),
    ),
)

_QUERY_CHUNK = 500


@dataclass
class SongRecord:
    """A stored song, identified by the video it was downloaded from."""

    id: int | None
    youtube_url: str

    def to_dict(self) -> dict[str, str]:
        """Return the serializable view of the song."""
        return {"youtube_url": self.youtube_url}


@dataclass
class FingerPrint:
    """One stored fingerprint: an address hash pointing into a song."""

    id: int | None
    address: int
    anchor_time_ms: int
    song_id: int


class Database(DatabaseClient):
    """Song and fingerprint storage backed by an SQLite file."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = path
        self._connection = sqlite3.connect(path)

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _execute(self, sql: str, params: Sequence[object] = ()) -> sqlite3.Cursor:
        try:
            return self._connection.execute(sql, params)
        except sqlite3.Error as exc:
            raise DatabaseError(str(exc)) from exc

    def migrate(self) -> list[str]:
        """Apply the migrations not applied yet and return their names."""
        self._execute(
            "CREATE TABLE IF NOT EXISTS applied_migrations ("
            "app TEXT NOT NULL, name TEXT NOT NULL, PRIMARY KEY (app, name))"
        )
        done = {
            name
            for (name,) in self._execute(
                "SELECT name FROM applied_migrations WHERE app = ?", (APP_NAME,)
            )
        }
        applied: list[str] = []
        try:
            with self._connection:
                for name, statements in MIGRATIONS:
                    if name in done:
                        continue
                    for statement in statements:
                        self._connection.execute(statement)
                    self._connection.execute(
                        "INSERT INTO applied_migrations (app, name) VALUES (?, ?)",
                        (APP_NAME, name),
                    )
                    applied.append(name)
        except sqlite3.Error as exc:
            raise DatabaseError(str(exc)) from exc
        return applied

    def add_song(self, youtube_url: str) -> SongRecord:
        """Store a song and return it with its new id."""
        with self._connection:
            cursor = self._execute(
                f"INSERT INTO {SONG_TABLE} (youtube_url) VALUES (?)", (youtube_url,)
            )
        return SongRecord(id=cursor.lastrowid, youtube_url=youtube_url)

    def add_fingerprints(self, song_id: int, fingerprints: Mapping[int, Couple]) -> list[FingerPrint]:
        """Store a song's fingerprints, keyed by address, and return the stored rows."""
        stored: list[FingerPrint] = []
        try:
            with self._connection:
                for address, couple in fingerprints.items():
                    cursor = self._connection.execute(
                        f"INSERT INTO {FINGERPRINT_TABLE} (address, anchor_time_ms, song_id) "
                        "VALUES (?, ?, ?)",
                        (address, couple.anchor_time_ms, song_id),
                    )
                    stored.append(
                        FingerPrint(cursor.lastrowid, address, couple.anchor_time_ms, song_id)
                    )
        except sqlite3.Error as exc:
            raise DatabaseError(str(exc)) from exc
        return stored

    def _chunks(self, addresses: Sequence[int]) -> Iterator[list[int]]:
        unique = list(dict.fromkeys(addresses))
        for start in range(0, len(unique), _QUERY_CHUNK):
            yield unique[start : start + _QUERY_CHUNK]

    def get_couples(self, addresses: Sequence[int]) -> dict[int, list[Couple]]:
        """Return the stored couples of every address that has any."""
        couples: dict[int, list[Couple]] = {}
        for chunk in self._chunks(addresses):
            placeholders = ", ".join("?" for _ in chunk)
            rows = self._execute(
                f"SELECT address, anchor_time_ms, song_id FROM {FINGERPRINT_TABLE} "
                f"WHERE address IN ({placeholders}) ORDER BY id",
                chunk,
            )
            for address, anchor_time_ms, song_id in rows:
                couples.setdefault(address, []).append(Couple(anchor_time_ms, song_id))
        return couples

    def get_song_by_id(self, song_id: int) -> Song | None:
        """Return the song with this id, or None."""
        row = self._execute(
            f"SELECT id, youtube_url FROM {SONG_TABLE} WHERE id = ?", (song_id,)
        ).fetchone()
        if row is None:
            return None
        return Song(id=row[0], title="", artist="", youtube_id=row[1])

    def close(self) -> None:
        """Close the underlying connection."""
        self._connection.close()