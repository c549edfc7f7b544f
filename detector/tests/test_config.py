"""Tests for the YAML settings loader."""

from pathlib import Path

import pytest

from detector.config import Settings, load_settings
from detector.watchlists import DEFAULT_BLACKLISTED_IPS, DEFAULT_SUSPICIOUS_KEYWORDS

_SHIPPED = Path(__file__).resolve().parent.parent.parent / "config" / "detector.yml"


def _write(tmp_path, text):
    path = tmp_path / "detector.yml"
    path.write_text(text)
    return path


class TestLoadSettings:
    def test_none_gives_defaults(self):
        settings = load_settings(None)
        assert settings == Settings()
        assert settings.blacklisted_ips == list(DEFAULT_BLACKLISTED_IPS)
        assert settings.allow_local_ips is False

    def test_shipped_config_matches_defaults(self):
        settings = load_settings(_SHIPPED)
        assert settings.blacklisted_ips == list(DEFAULT_BLACKLISTED_IPS)
        assert settings.suspicious_keywords == list(DEFAULT_SUSPICIOUS_KEYWORDS)
        assert settings.allow_local_ips is False

    def test_partial_override(self, tmp_path):
        path = _write(tmp_path, (
            "watchlists:\n"
            "  blacklisted_ips: [' 8.8.4.4 ']\n"
            "dispatch:\n"
            "  allow_local_ips: true\n"
        ))
        settings = load_settings(path)
        assert settings.blacklisted_ips == ["8.8.4.4"]
        assert settings.suspicious_keywords == list(DEFAULT_SUSPICIOUS_KEYWORDS)
        assert settings.allow_local_ips is True

    def test_empty_file_gives_defaults(self, tmp_path):
        assert load_settings(_write(tmp_path, "")) == Settings()

    def test_empty_list_is_allowed(self, tmp_path):
        path = _write(tmp_path, "watchlists:\n  suspicious_keywords: []\n")
        assert load_settings(path).suspicious_keywords == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yml")


class TestValidation:
    @pytest.mark.parametrize("text,message", [
        ("- just\n- a list\n", "top level must be a mapping"),
        ("alerts: {}\n", "unknown section 'alerts'"),
        ("watchlists: [a, b]\n", "'watchlists' must be a mapping"),
        ("watchlists:\n  blacklisted_ips: 1.2.3.4\n", "must be a list"),
        ("watchlists:\n  suspicious_keywords: [ok, '']\n", "must be a list"),
        ("watchlists:\n  suspicious_user_agents: [sqlmap, 3]\n", "must be a list"),
        ("dispatch: yes\n", "'dispatch' must be a mapping"),
        ("dispatch:\n  allow_local_ips: 'sometimes'\n", "true or false"),
    ])
    def test_rejects(self, tmp_path, text, message):
        with pytest.raises(ValueError, match=message):
            load_settings(_write(tmp_path, text))
