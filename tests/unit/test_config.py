"""Tests for RecorderConfig loading and saving."""

import json

from caveatbot.config import DEFAULT_SESSIONS_DIR, RecorderConfig


class TestRecorderConfig:
    """Tests for RecorderConfig."""

    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CAVEATBOT_SESSIONS_DIR", raising=False)
        monkeypatch.delenv("CAVEATBOT_NAMING_MODE", raising=False)
        config = RecorderConfig.load(tmp_path / "missing.json")
        assert config.storage.sessions_dir == DEFAULT_SESSIONS_DIR
        assert config.capture.confirm_code_changes is True
        assert config.naming.mode == "heuristic"

    def test_load_ignores_unknown_fields(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CAVEATBOT_SESSIONS_DIR", raising=False)
        monkeypatch.delenv("CAVEATBOT_NAMING_MODE", raising=False)
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "storage": {"sessions_dir": str(tmp_path / "s"), "legacy": 1},
            "naming": {"mode": "llm", "max_words": 2},
            "unknown_section": {},
        }))

        config = RecorderConfig.load(path)

        assert config.storage.path == tmp_path / "s"
        assert config.naming.mode == "llm"
        assert config.naming.max_words == 2

    def test_corrupt_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CAVEATBOT_SESSIONS_DIR", raising=False)
        path = tmp_path / "config.json"
        path.write_text("{oops")
        assert RecorderConfig.load(path).storage.sessions_dir == DEFAULT_SESSIONS_DIR

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"storage": {"sessions_dir": "/from/file"}}))
        monkeypatch.setenv("CAVEATBOT_SESSIONS_DIR", str(tmp_path / "env"))
        monkeypatch.setenv("CAVEATBOT_NAMING_MODE", "llm")

        config = RecorderConfig.load(path)

        assert config.storage.sessions_dir == str(tmp_path / "env")
        assert config.naming.mode == "llm"

    def test_save_round_trip(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CAVEATBOT_SESSIONS_DIR", raising=False)
        monkeypatch.delenv("CAVEATBOT_NAMING_MODE", raising=False)
        path = tmp_path / "nested" / "config.json"
        config = RecorderConfig()
        config.capture.confirm_code_changes = False
        config.naming.model = "some-model"

        config.save(path)
        loaded = RecorderConfig.load(path)

        assert loaded == config
