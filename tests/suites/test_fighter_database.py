import asyncio
import json

import pytest

from fightgraph.core.exceptions import DatabaseSaveError, ScraperErrorType
from fightgraph.services.fighter_database import (
    STARTER_DATABASE_PATH,
    FighterDatabase,
    normalize_name,
)


class TestNormalizeName:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Jon Jones", "jon jones"),
            ("  Jon   'Bones'  Jones!! ", "jon bones jones"),
            ("St-Pierre, Georges", "stpierre georges"),
            ("José Aldo", "josé aldo"),
            ("", ""),
        ],
    )
    def test_normalization(self, raw, expected):
        assert normalize_name(raw) == expected


class TestFighterIndex:
    def test_add_and_lookup_by_id(self, database):
        key = database.add("Jon Jones", "Jon-Jones-27944", "Bones")

        assert key == "jon jones"
        assert database.has_by_id("Jon-Jones-27944")
        assert not database.has_by_id("Daniel-Cormier-52311")
        match = database.find_by_id("Jon-Jones-27944")
        assert match.name == "jon jones"
        assert match.nickname == "Bones"

    def test_names_differing_only_in_formatting_share_an_entry(self, database):
        database.add("Jon Jones", "old-id")
        database.add("  jon JONES. ", "new-id")

        assert len(database) == 1
        assert database.get("Jon Jones").id == "new-id"
        assert "JON jones" in database

    def test_repeated_add_is_idempotent(self, database):
        database.add("Jon Jones", "Jon-Jones-27944", "Bones")
        database.add("Jon Jones", "Jon-Jones-27944", "Bones")

        assert len(database) == 1
        entry = database.get("jon jones")
        assert entry.id == "Jon-Jones-27944"
        assert entry.nickname == "Bones"

    def test_exact_match_comes_first(self, database):
        database.add("Jon Jones Jr", "Jon-Jones-Jr-1")
        database.add("Jon Jones", "Jon-Jones-27944")

        results = database.search("jon jones")

        assert [r.id for r in results] == ["Jon-Jones-27944", "Jon-Jones-Jr-1"]

    def test_search_matches_nickname(self, database):
        database.add("Jon Jones", "Jon-Jones-27944", "Bones")
        database.add("Daniel Cormier", "Daniel-Cormier-52311", "DC")

        results = database.search("BONES")

        assert [r.id for r in results] == ["Jon-Jones-27944"]

    def test_search_respects_limit(self, database):
        for i in range(30):
            database.add(f"Fighter {i}", f"Fighter-{i}")

        assert len(database.search("fighter")) == 20
        assert len(database.search("fighter", limit=5)) == 5

    def test_search_without_matches_is_empty(self, database):
        database.add("Jon Jones", "Jon-Jones-27944")

        assert database.search("khabib") == []

    def test_stats(self, database):
        assert database.get_stats() == {"total_fighters": 0, "last_updated": None}

        database.add("Jon Jones", "Jon-Jones-27944")
        database.add("Daniel Cormier", "Daniel-Cormier-52311")

        stats = database.get_stats()
        assert stats["total_fighters"] == 2
        assert stats["last_updated"] == database.get("daniel cormier").last_updated


class TestPersistence:
    def test_saved_document_shape(self, database):
        database.add("Jon Jones", "Jon-Jones-27944", "Bones")
        database.add("Daniel Cormier", "Daniel-Cormier-52311")

        asyncio.run(database.save())

        document = json.loads(database.database_path.read_text(encoding="utf-8"))
        assert set(document) == {"jon jones", "daniel cormier"}
        assert document["jon jones"]["id"] == "Jon-Jones-27944"
        assert document["jon jones"]["nickname"] == "Bones"
        assert "T" in document["jon jones"]["lastUpdated"]
        assert "nickname" not in document["daniel cormier"]

    def test_save_then_load_round_trip(self, database, tmp_path):
        database.add("Jon Jones", "Jon-Jones-27944", "Bones")
        asyncio.run(database.save())

        reloaded = FighterDatabase(database.database_path, starter_path=None)
        asyncio.run(reloaded.load())

        assert reloaded.get("jon jones").nickname == "Bones"
        assert reloaded.get("jon jones").last_updated == database.get("jon jones").last_updated

    def test_save_creates_missing_directories(self, tmp_path):
        path = tmp_path / "nested" / "data" / "fighters.json"
        database = FighterDatabase(path, starter_path=None)
        database.add("Jon Jones", "Jon-Jones-27944")

        asyncio.run(database.save())

        assert path.exists()

    def test_save_failure_raises_database_save_error(self, tmp_path):
        database = FighterDatabase(tmp_path, starter_path=None)
        database.add("Jon Jones", "Jon-Jones-27944")

        with pytest.raises(DatabaseSaveError) as exc_info:
            asyncio.run(database.save())

        assert exc_info.value.error_type == ScraperErrorType.DATABASE_SAVE_ERROR
        assert exc_info.value.path == str(tmp_path)

    @pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", '{"jon jones": {"nickname": "x"}}'])
    def test_unreadable_file_loads_as_empty(self, tmp_path, content):
        path = tmp_path / "fighters.json"
        path.write_text(content, encoding="utf-8")
        database = FighterDatabase(path, starter_path=None)

        asyncio.run(database.load())

        assert len(database) == 0

    def test_missing_file_loads_as_empty(self, tmp_path):
        database = FighterDatabase(tmp_path / "absent.json", starter_path=None)

        asyncio.run(database.load())

        assert len(database) == 0


class TestInitialize:
    def test_empty_database_is_seeded_and_persisted(self, tmp_path):
        path = tmp_path / "fighters.json"
        database = FighterDatabase(path)

        asyncio.run(database.initialize())

        assert len(database) == 10
        assert database.search("jon jones")[0].id == "Jon-Jones-27944"
        assert path.exists()
        assert len(json.loads(path.read_text(encoding="utf-8"))) == 10

    def test_existing_entries_skip_the_starter_set(self, tmp_path):
        path = tmp_path / "fighters.json"
        seeded = FighterDatabase(path, starter_path=None)
        seeded.add("Daniel Cormier", "Daniel-Cormier-52311")
        asyncio.run(seeded.save())

        database = FighterDatabase(path)
        asyncio.run(database.initialize())

        assert len(database) == 1

    def test_missing_starter_leaves_database_empty(self, tmp_path):
        path = tmp_path / "fighters.json"
        database = FighterDatabase(path, starter_path=tmp_path / "nope.json")

        asyncio.run(database.initialize())

        assert len(database) == 0
        assert not path.exists()

    def test_starter_file_is_keyed_by_normalized_names(self):
        document = json.loads(STARTER_DATABASE_PATH.read_text(encoding="utf-8"))

        assert all(name == normalize_name(name) for name in document)
