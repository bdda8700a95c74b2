import pytest
from pydantic import ValidationError

from triples.server.settings import GameServerSettings, parse_origins


class TestParseOrigins:
    def test_list_passes_through(self):
        assert parse_origins(["http://a.com"]) == ["http://a.com"]

    def test_csv_is_split_and_stripped(self):
        assert parse_origins(" http://a.com , http://b.com ,") == ["http://a.com", "http://b.com"]

    def test_json_array(self):
        assert parse_origins('["http://a.com","http://b.com"]') == ["http://a.com", "http://b.com"]

    def test_json_must_be_string_array(self):
        with pytest.raises(ValueError, match="array of strings"):
            parse_origins("[1, 2]")

    def test_broken_json_rejected(self):
        with pytest.raises(ValueError, match="Invalid JSON"):
            parse_origins('["http://a.com"')

    def test_empty_rejected(self):
        with pytest.raises(ValueError, match="must not be empty"):
            parse_origins("")


class TestGameServerSettings:
    def test_defaults(self, monkeypatch):
        for name in ("TRIPLES_MATCH_DELAY_SECONDS", "TRIPLES_ROOM_GRACE_SECONDS", "TRIPLES_CORS_ORIGINS"):
            monkeypatch.delenv(name, raising=False)

        settings = GameServerSettings()

        assert settings.match_delay_seconds == 0.25
        assert settings.room_grace_seconds == 30.0
        assert settings.slot_buffer_size == 256
        assert settings.cors_origins == ["http://localhost:8080"]
        assert settings.static_dir is None
        assert settings.telegram_token is None

    def test_cors_origins_csv_from_env(self, monkeypatch):
        monkeypatch.setenv("TRIPLES_CORS_ORIGINS", "http://a.com,http://b.com")

        assert GameServerSettings().cors_origins == ["http://a.com", "http://b.com"]

    def test_cors_origins_empty_env_rejected(self, monkeypatch):
        monkeypatch.setenv("TRIPLES_CORS_ORIGINS", "")

        with pytest.raises(ValidationError, match="cors_origins"):
            GameServerSettings()

    def test_telegram_token_read_without_prefix(self, monkeypatch):
        monkeypatch.setenv("TELEGRAM_TOKEN", "123:abc")

        assert GameServerSettings().telegram_token == "123:abc"

    def test_telegram_token_by_field_name(self):
        assert GameServerSettings(telegram_token="123:abc").telegram_token == "123:abc"

    def test_numeric_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("TRIPLES_SLOT_BUFFER_SIZE", "8")
        monkeypatch.setenv("TRIPLES_MATCH_DELAY_SECONDS", "0.5")

        settings = GameServerSettings()

        assert settings.slot_buffer_size == 8
        assert settings.match_delay_seconds == 0.5

    def test_negative_match_delay_rejected(self):
        with pytest.raises(ValidationError, match="match_delay_seconds"):
            GameServerSettings(match_delay_seconds=-1)

    def test_zero_buffer_rejected(self):
        with pytest.raises(ValidationError, match="slot_buffer_size"):
            GameServerSettings(slot_buffer_size=0)

    def test_zero_rate_rejected(self):
        with pytest.raises(ValidationError, match="rate_limit_per_second"):
            GameServerSettings(rate_limit_per_second=0)
