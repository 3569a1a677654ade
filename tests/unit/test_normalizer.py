"""Tests for the record normalizer."""

import json
from pathlib import Path
from typing import Any

import pytest

from steam_catalog.catalog.normalizer import RecordNormalizer, infer_tags, normalize

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def store_entry() -> dict[str, Any]:
    """The /appdetails entry of the store fixture."""
    with (FIXTURES_DIR / "steam_store_response.json").open(encoding="utf-8") as f:
        return json.load(f)["1091500"]


def make_entry(**data: Any) -> dict[str, Any]:
    return {"success": True, "data": {"steam_appid": 10, "type": "game", "name": "Test", **data}}


class TestNormalize:
    """Tests for RecordNormalizer.normalize."""

    def test_full_entry(self, store_entry: dict[str, Any]) -> None:
        record = normalize(store_entry)

        assert record is not None
        assert record.id == 1091500
        assert record.title == "Cyberpunk 2077"
        assert record.platforms == ["PC", "Mac"]
        assert record.base_price == pytest.approx(298.0)
        assert record.discount == 0.5
        assert record.effective_price == pytest.approx(149.0)
        assert record.rating == 8.6
        assert record.tags == ["Action", "RPG", "Single-player"]
        assert record.cover.endswith("header.jpg")
        assert record.release_date == "2020年12月10日"
        assert record.dau == 0

    def test_price_from_minor_units(self) -> None:
        record = normalize(make_entry(price_overview={"initial": 5999, "final": 2999, "discount_percent": 50}))

        assert record is not None
        assert record.base_price == pytest.approx(59.99)
        assert record.discount == 0.5

    def test_free_game(self) -> None:
        record = normalize(make_entry(is_free=True))

        assert record is not None
        assert record.base_price == 0.0
        assert record.discount == 0.0

    def test_missing_price_is_unknown(self) -> None:
        record = normalize(make_entry())

        assert record is not None
        assert record.base_price is None

    def test_no_platform_flags_falls_back_to_pc(self) -> None:
        record = normalize(make_entry(platforms={"windows": False, "mac": False, "linux": False}))

        assert record is not None
        assert record.platforms == ["PC"]

    def test_missing_name_gives_empty_title(self) -> None:
        record = normalize(make_entry(name=None))

        assert record is not None
        assert record.title == ""

    def test_irrelevant_categories_dropped(self) -> None:
        record = normalize(
            make_entry(
                categories=[
                    {"id": 1, "description": "Multi-player"},
                    {"id": 29, "description": "Steam Trading Cards"},
                ]
            )
        )

        assert record is not None
        assert "Multi-player" in record.tags
        assert "Steam Trading Cards" not in record.tags

    @pytest.mark.parametrize(
        "entry",
        [
            None,
            {},
            {"success": False},
            {"success": True},
            {"success": True, "data": {"steam_appid": 10, "type": "dlc", "name": "Pack"}},
            {"success": True, "data": {"type": "game"}},
        ],
    )
    def test_dropped_entries(self, entry: dict[str, Any] | None) -> None:
        assert normalize(entry) is None

    def test_idempotent(self, store_entry: dict[str, Any]) -> None:
        normalizer = RecordNormalizer()

        assert normalizer.normalize(store_entry) == normalizer.normalize(store_entry)


class TestInferTags:
    """Tests for keyword tag inference."""

    def test_no_keyword_no_tag(self) -> None:
        assert infer_tags("Dead Woods", []) == []

    def test_keyword_in_existing_tag(self) -> None:
        assert infer_tags("Dead Woods", ["Zombie Survival"]) == ["Horror", "Zombie Survival"]

    def test_keyword_in_title(self) -> None:
        assert "Racing" in infer_tags("Kart Kings", [])

    def test_existing_tags_kept(self) -> None:
        assert infer_tags("", ["Indie"]) == ["Indie"]

    def test_idempotent(self) -> None:
        once = infer_tags("Zombie Farm", ["Indie"])

        assert infer_tags("Zombie Farm", once) == once

    def test_added_category_matches_again(self) -> None:
        """"Sports" contains the Strategy keyword "rts"."""
        once = infer_tags("Kickoff", ["Soccer"])

        assert once == ["Soccer", "Sports", "Strategy"]
        assert infer_tags("Kickoff", once) == once
