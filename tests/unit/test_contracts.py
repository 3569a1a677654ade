"""Tests for data contracts."""

import pytest

from steam_catalog.ingestion.contracts import (
    AppListResponse,
    PlayerCountResponse,
    PriceOverview,
    SteamStoreAPIResponse,
    SteamStoreGame,
)


class TestPriceOverview:
    """Tests for PriceOverview contract."""

    def test_price_conversion(self) -> None:
        """Test minor to major unit conversion."""
        price = PriceOverview(
            initial=5999,
            discount_percent=50,
        )

        assert float(price.initial_amount) == pytest.approx(59.99)

    def test_initial_required(self) -> None:
        with pytest.raises(ValueError):
            PriceOverview.model_validate({"final": 100})


class TestSteamStoreGame:
    """Tests for SteamStoreGame contract."""

    def test_minimal_game(self) -> None:
        """Test game with minimal required fields."""
        game = SteamStoreGame(steam_appid=12345)

        assert game.steam_appid == 12345
        assert game.name is None
        assert game.is_free is False
        assert game.price_overview is None
        assert game.genres == []
        assert game.is_game is False

    def test_type_is_case_insensitive(self) -> None:
        assert SteamStoreGame(steam_appid=1, type="Game").is_game is True
        assert SteamStoreGame(steam_appid=1, type="dlc").is_game is False

    def test_null_lists_and_objects(self) -> None:
        """The API sends null for empty collections on some apps."""
        game = SteamStoreGame.model_validate(
            {"steam_appid": 1, "genres": None, "categories": None, "platforms": None}
        )

        assert game.genres == []
        assert game.category_names == []
        assert game.platforms.windows is False

    def test_genre_ids_coerced(self) -> None:
        game = SteamStoreGame.model_validate(
            {
                "steam_appid": 1,
                "genres": [{"id": 1, "description": "Action"}, {"id": "25", "description": "Adventure"}],
            }
        )

        assert [g.id for g in game.genres] == ["1", "25"]
        assert game.genre_names == ["Action", "Adventure"]

    def test_invalid_app_id(self) -> None:
        with pytest.raises(ValueError):
            SteamStoreGame(steam_appid=0)


class TestSteamStoreAPIResponse:
    """Tests for the per-app envelope."""

    def test_unsuccessful_entry(self) -> None:
        entry = SteamStoreAPIResponse.model_validate({"success": False})

        assert entry.success is False
        assert entry.data is None


class TestAppListResponse:
    """Tests for catalog list contract."""

    def test_null_names(self) -> None:
        payload = AppListResponse.model_validate(
            {"applist": {"apps": [{"appid": 10, "name": None}, {"appid": 20}]}}
        )

        assert [app.name for app in payload.applist.apps] == ["", ""]

    def test_missing_applist(self) -> None:
        with pytest.raises(ValueError):
            AppListResponse.model_validate({"apps": []})


class TestPlayerCountResponse:
    """Tests for PlayerCountResponse contract."""

    def test_successful_response(self) -> None:
        response = PlayerCountResponse(player_count=50000, result=1)

        assert response.is_successful is True
        assert response.player_count == 50000

    def test_missing_count(self) -> None:
        """Apps without stats omit player_count."""
        response = PlayerCountResponse.model_validate({"result": 42})

        assert response.is_successful is False
        assert response.player_count == 0
