"""Tests for CLI helpers."""

import json

import pytest

from steam_catalog.cli import CLIOutput, get_option, print_json


class TestGetOption:
    """Tests for flag parsing."""

    def test_present(self) -> None:
        assert get_option(["--tags", "RPG,Action", "--page", "2"], "page") == "2"

    def test_missing_uses_default(self) -> None:
        assert get_option(["--tags", "RPG"], "sort", "rating") == "rating"

    def test_flag_without_value(self) -> None:
        assert get_option(["--keyword"], "keyword") is None


class TestPrintJson:
    """Tests for structured CLI output."""

    def test_output_shape(self, capsys: pytest.CaptureFixture[str]) -> None:
        print_json(CLIOutput(success=True, command="query", data={"total": 0, "items": []}))

        document = json.loads(capsys.readouterr().out)

        assert document["success"] is True
        assert document["command"] == "query"
        assert document["data"] == {"total": 0, "items": []}
        assert document["error"] is None
        assert "timestamp" in document
