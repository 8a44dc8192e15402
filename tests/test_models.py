import pytest

from tunefinder.fingerprint import Couple
from tunefinder.matching import DatabaseError, find_matches_fgp
from tunefinder.models import Database, FingerPrint, SongRecord

URL = "https://www.youtube.com/watch?v=TH6OzKUB9Sg"


@pytest.fixture
def db():
    database = Database(":memory:")
    database.migrate()
    yield database
    database.close()


def test_song_record_to_dict():
    assert SongRecord(id=7, youtube_url=URL).to_dict() == {"youtube_url": URL}


def test_migrate_is_idempotent():
    database = Database(":memory:")
    assert database.migrate() == ["m_0001_initial"]
    assert database.migrate() == []
    database.close()


def test_migrations_persist_in_file(tmp_path):
    path = tmp_path / "songs.sqlite3"
    with Database(path) as first:
        assert first.migrate() == ["m_0001_initial"]
        first.add_song(URL)
    with Database(path) as second:
        assert second.migrate() == []
        assert second.get_song_by_id(1).youtube_id == URL


def test_add_and_get_song(db):
    record = db.add_song(URL)
    assert record.youtube_url == URL
    song = db.get_song_by_id(record.id)
    assert song.id == record.id
    assert song.youtube_id == URL


def test_song_ids_increase(db):
    first = db.add_song(URL)
    second = db.add_song(URL)
    assert second.id > first.id


def test_missing_song_is_none(db):
    assert db.get_song_by_id(42) is None


def test_fingerprints_round_trip(db):
    song = db.add_song(URL)
    stored = db.add_fingerprints(song.id, {11: Couple(100, 99), 22: Couple(200, 99)})
    assert [(row.address, row.anchor_time_ms, row.song_id) for row in stored] == [
        (11, 100, song.id),
        (22, 200, song.id),
    ]
    assert all(isinstance(row, FingerPrint) and row.id is not None for row in stored)
    couples = db.get_couples([11, 22, 33])
    assert couples == {11: [Couple(100, song.id)], 22: [Couple(200, song.id)]}


def test_get_couples_groups_songs(db):
    first = db.add_song(URL)
    second = db.add_song(URL)
    db.add_fingerprints(first.id, {5: Couple(10, first.id)})
    db.add_fingerprints(second.id, {5: Couple(20, second.id)})
    assert db.get_couples([5]) == {5: [Couple(10, first.id), Couple(20, second.id)]}


def test_get_couples_many_addresses(db):
    song = db.add_song(URL)
    fingerprints = {address: Couple(address, song.id) for address in range(1200)}
    db.add_fingerprints(song.id, fingerprints)
    couples = db.get_couples(list(range(1200)))
    assert len(couples) == 1200
    assert couples[1199] == [Couple(1199, song.id)]


def test_unmigrated_database_raises():
    database = Database(":memory:")
    with pytest.raises(DatabaseError):
        database.add_song(URL)
    database.close()


def test_closed_database_raises(db):
    db.close()
    with pytest.raises(DatabaseError):
        db.get_song_by_id(1)


def test_works_as_match_client(db):
    song = db.add_song(URL)
    db.add_fingerprints(
        song.id, {100: Couple(0, song.id), 200: Couple(1000, song.id), 300: Couple(2000, song.id)}
    )
    matches, _ = find_matches_fgp({100: 5000, 200: 6000, 300: 7000}, db)
    assert len(matches) == 1
    assert matches[0].song_id == song.id
    assert matches[0].youtube_id == URL
    assert matches[0].timestamp == 0
    assert matches[0].score == 3.0