"""Tests for settings persistence and notification durations."""

import json
import logging

from pomagotchi.settings import (
    DEFAULT_NOTIFICATION_DURATIONS_MS, Settings, load_settings, save_settings,
)


class TestSettings:

    def test_defaults(self):
        s = Settings()
        assert s.backend == "sqlite"
        assert s.log_level == "INFO"
        assert s.duration_ms("xp") == 3000
        assert s.duration_ms("evolution") == 5000
        assert s.duration_ms("action") == 8000
        assert s.undo_window_seconds == 8.0

    def test_unknown_kind_uses_success_duration(self):
        assert Settings().duration_ms("mystery") == 3000

    def test_default_durations_are_not_shared(self):
        a, b = Settings(), Settings()
        a.notification_durations_ms["xp"] = 1
        assert b.duration_ms("xp") == 3000
        assert DEFAULT_NOTIFICATION_DURATIONS_MS["xp"] == 3000


class TestLoadSave:

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "nope.json") == Settings()

    def test_round_trip(self, tmp_path):
        path = tmp_path / "sub" / "settings.json"
        s = Settings(backend="json", log_level="DEBUG")
        s.notification_durations_ms["action"] = 5000
        save_settings(s, path)

        loaded = load_settings(path)
        assert loaded == s
        assert loaded.undo_window_seconds == 5.0

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"backend": "json", "theme": "dark"}))
        assert load_settings(path).backend == "json"

    def test_partial_durations_merge_with_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"notification_durations_ms": {"error": 100}}))
        s = load_settings(path)
        assert s.duration_ms("error") == 100
        assert s.duration_ms("action") == 8000

    def test_bad_backend_falls_back(self, tmp_path, caplog):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"backend": "postgres"}))
        with caplog.at_level(logging.WARNING):
            assert load_settings(path).backend == "sqlite"
        assert "Unknown backend" in caplog.text

    def test_corrupt_file_falls_back(self, tmp_path, caplog):
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        with caplog.at_level(logging.WARNING):
            assert load_settings(path) == Settings()
        assert "Ignoring unreadable settings file" in caplog.text
