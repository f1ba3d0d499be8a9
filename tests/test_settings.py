"""Tests for JSON settings loading, merging and validation."""

import json
import logging

from keifu.config.settings import Settings
from keifu.constants import MIN_FETCH_INTERVAL, MIN_REFRESH_INTERVAL


def write_settings(path, data) -> None:
    path.write_text(json.dumps(data))


class TestDefaults:
    def test_missing_file_uses_defaults(self, tmp_path):
        settings = Settings(tmp_path / "settings.json")
        assert settings.get_auto_refresh() is True
        assert settings.get_refresh_interval() == 10
        assert settings.get_auto_fetch() is True
        assert settings.get_fetch_interval() == 60
        assert settings.get_max_commits() == 500
        assert settings.get_log_file() == ""
        assert settings.get_log_level() == logging.INFO

    def test_instances_do_not_share_defaults(self, tmp_path):
        first = Settings(tmp_path / "a.json")
        first.set("refresh.refresh_interval", 99)
        second = Settings(tmp_path / "b.json")
        assert second.get("refresh.refresh_interval") == 10
        assert Settings.DEFAULT_SETTINGS["refresh"]["refresh_interval"] == 10


class TestLoading:
    def test_file_merges_with_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        write_settings(path, {"refresh": {"auto_fetch": False}, "graph": {"max_commits": 42}})

        settings = Settings(path)
        assert settings.get_auto_fetch() is False
        assert settings.get_auto_refresh() is True
        assert settings.get_max_commits() == 42

    def test_invalid_json_falls_back(self, tmp_path, caplog):
        path = tmp_path / "settings.json"
        path.write_text("{not json")

        with caplog.at_level(logging.WARNING):
            settings = Settings(path)
        assert settings.get_refresh_interval() == 10
        assert "Ignoring settings file" in caplog.text

    def test_non_object_falls_back(self, tmp_path):
        path = tmp_path / "settings.json"
        write_settings(path, [1, 2, 3])
        assert Settings(path).get_max_commits() == 500


class TestAccessors:
    def test_get_dot_path(self, tmp_path):
        settings = Settings(tmp_path / "settings.json")
        assert settings.get("graph.max_commits") == 500
        assert settings.get("graph.missing", "x") == "x"
        assert settings.get("graph.max_commits.deeper") is None

    def test_set_creates_sections(self, tmp_path):
        settings = Settings(tmp_path / "settings.json")
        settings.set("ui.theme", "dark")
        assert settings.get("ui.theme") == "dark"

    def test_intervals_are_clamped(self, tmp_path):
        path = tmp_path / "settings.json"
        write_settings(path, {"refresh": {"refresh_interval": 0, "fetch_interval": 2}})
        settings = Settings(path)
        assert settings.get_refresh_interval() == MIN_REFRESH_INTERVAL
        assert settings.get_fetch_interval() == MIN_FETCH_INTERVAL

    def test_bad_number_uses_default(self, tmp_path):
        path = tmp_path / "settings.json"
        write_settings(path, {"refresh": {"refresh_interval": "soon"}})
        assert Settings(path).get_refresh_interval() == 10

    def test_log_level_by_name(self, tmp_path):
        path = tmp_path / "settings.json"
        write_settings(path, {"logging": {"level": "debug"}})
        assert Settings(path).get_log_level() == logging.DEBUG

    def test_unknown_log_level(self, tmp_path):
        path = tmp_path / "settings.json"
        write_settings(path, {"logging": {"level": "chatty"}})
        assert Settings(path).get_log_level() == logging.INFO

