"""Tests for the catalog store and JSON persistence."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from steam_catalog.catalog.schemas import GameRecord
from steam_catalog.catalog.storage import PersistenceError, read_json, write_json_atomic
from steam_catalog.catalog.store import CatalogStore, UpsertOutcome, quality_score


def fixed_clock(value: int = 1_700_000_000_000) -> Callable[[], int]:
    return lambda: value


def rich_record(app_id: int = 10, **overrides: object) -> GameRecord:
    """A record scoring 4: cover, valid price, tags."""
    fields: dict[str, object] = {
        "id": app_id,
        "title": "Rich",
        "cover": "https://cdn/header.jpg",
        "base_price": 59.99,
        "tags": ["RPG"],
    }
    fields.update(overrides)
    return GameRecord(**fields)


class TestQualityScore:
    """Tests for the completeness heuristic."""

    def test_empty_record(self) -> None:
        assert quality_score(GameRecord(id=1)) == 0

    def test_full_record(self) -> None:
        assert quality_score(rich_record(rating=8.5)) == 5

    def test_free_game_price_counts(self) -> None:
        assert quality_score(GameRecord(id=1, base_price=0)) == 2

    def test_adding_a_field_never_lowers_the_score(self) -> None:
        base = GameRecord(id=1, title="Base")
        for update in ({"cover": "x"}, {"base_price": 10}, {"tags": ["RPG"]}, {"rating": 7}):
            richer = GameRecord(**{**base.model_dump(), **update})
            assert quality_score(richer) >= quality_score(base)


class TestUpsert:
    """Tests for CatalogStore.upsert."""

    def test_insert(self, tmp_path: Path) -> None:
        store = CatalogStore(tmp_path / "games.json", clock=fixed_clock(1000))

        outcome = store.upsert(rich_record())

        assert outcome == UpsertOutcome.INSERTED
        assert len(store) == 1
        assert 10 in store
        assert store.get(10).updated_at == 1000

    def test_poorer_refresh_keeps_existing(self, tmp_path: Path) -> None:
        """A score-1 refresh does not replace a score-3 record."""
        store = CatalogStore(tmp_path / "games.json", clock=fixed_clock(1000))
        original = GameRecord(id=10, title="Original", base_price=19.99, cover="https://cdn/a.jpg")
        store.upsert(original)
        before = store.get(10)

        outcome = store.upsert(GameRecord(id=10, title="Refreshed", cover="https://cdn/b.jpg"))

        assert quality_score(original) == 3
        assert outcome == UpsertOutcome.KEPT
        assert store.get(10) == before

    def test_equal_score_replaces(self, tmp_path: Path) -> None:
        store = CatalogStore(tmp_path / "games.json", clock=fixed_clock(1000))
        store.upsert(rich_record(title="Old"))

        outcome = store.upsert(rich_record(title="New"))

        assert outcome == UpsertOutcome.REPLACED
        assert store.get(10).title == "New"

    def test_updated_at_strictly_increases(self, tmp_path: Path) -> None:
        """Same clock reading still moves updated_at forward."""
        store = CatalogStore(tmp_path / "games.json", clock=fixed_clock(1000))
        store.upsert(rich_record())
        store.upsert(rich_record(title="Again"))
        store.upsert(rich_record(title="Once more"))

        assert store.get(10).updated_at == 1002

    def test_no_duplicate_ids(self, tmp_path: Path) -> None:
        store = CatalogStore(tmp_path / "games.json")
        for _ in range(3):
            store.upsert(rich_record())

        assert store.ids() == {10}


class TestPersistence:
    """Tests for load and save."""

    def test_save_and_load(self, tmp_path: Path) -> None:
        path = tmp_path / "games.json"
        store = CatalogStore(path, clock=fixed_clock())
        store.upsert(rich_record(10, rating=7.0))
        store.upsert(rich_record(20, rating=9.0))
        store.save()

        reloaded = CatalogStore(path)
        count = reloaded.load()

        assert count == 2
        assert reloaded.get(10) == store.get(10)
        assert [r.id for r in reloaded.records()] == [20, 10]
        assert [r.id for r in reloaded.records(order="id")] == [10, 20]

    def test_saved_file_is_sorted_camel_case_array(self, tmp_path: Path) -> None:
        path = tmp_path / "games.json"
        store = CatalogStore(path)
        store.upsert(rich_record(10, rating=5.0))
        store.upsert(rich_record(20, rating=9.5))
        store.save()

        document = json.loads(path.read_text(encoding="utf-8"))

        assert [item["id"] for item in document] == [20, 10]
        assert "basePrice" in document[0]
        assert "updatedAt" in document[0]

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        store = CatalogStore(tmp_path / "missing.json")

        assert store.load() == 0
        assert len(store) == 0

    def test_corrupt_file_is_quarantined(self, tmp_path: Path) -> None:
        path = tmp_path / "games.json"
        path.write_text("[{not json", encoding="utf-8")

        store = CatalogStore(path)

        assert store.load() == 0
        assert not path.exists()
        assert (tmp_path / "games.json.corrupt").read_text(encoding="utf-8") == "[{not json"

    def test_non_array_is_quarantined(self, tmp_path: Path) -> None:
        path = tmp_path / "games.json"
        path.write_text('{"id": 10}', encoding="utf-8")

        assert CatalogStore(path).load() == 0
        assert (tmp_path / "games.json.corrupt").exists()

    def test_invalid_items_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "games.json"
        path.write_text(json.dumps([{"id": 10, "title": "Ok"}, {"id": -1}, "junk"]), encoding="utf-8")

        store = CatalogStore(path)

        assert store.load() == 1
        assert store.ids() == {10}

    def test_duplicate_ids_in_file_reconciled(self, tmp_path: Path) -> None:
        path = tmp_path / "games.json"
        path.write_text(
            json.dumps(
                [
                    {"id": 10, "title": "Rich", "cover": "x", "basePrice": 9.99},
                    {"id": 10, "title": "Poor"},
                ]
            ),
            encoding="utf-8",
        )

        store = CatalogStore(path)
        store.load()

        assert len(store) == 1
        assert store.get(10).title == "Rich"


class TestStorage:
    """Tests for the atomic JSON helpers."""

    def test_write_replaces_atomically(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "doc.json"

        write_json_atomic(path, [1, 2])
        write_json_atomic(path, [3])

        assert read_json(path) == [3]
        assert [p.name for p in path.parent.iterdir()] == ["doc.json"]

    def test_unserializable_document(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.json"
        write_json_atomic(path, {"ok": True})

        with pytest.raises(PersistenceError):
            write_json_atomic(path, {"bad": object()})

        assert read_json(path) == {"ok": True}
        assert [p.name for p in tmp_path.iterdir()] == ["doc.json"]
