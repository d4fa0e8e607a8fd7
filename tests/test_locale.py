"""
Tests for timezone to locale resolution.
"""
import pytest
from docshare.core.locale import (
    get_language_from_locale,
    get_locale_metadata,
    is_supported_timezone,
    resolve_locale,
)


class TestResolveLocale:
    """Tests for resolve_locale."""

    @pytest.mark.parametrize("timezone", ["America/Sao_Paulo", "America/Manaus", "America/Noronha"])
    def test_brazilian_timezones_map_to_pt_br(self, timezone):
        assert resolve_locale(timezone) == "pt-BR"

    @pytest.mark.parametrize("timezone", ["Australia/Sydney", "Europe/Lisbon", "America/New_York", "Mars/Olympus"])
    def test_other_timezones_map_to_en_us(self, timezone):
        assert resolve_locale(timezone) == "en-US"

    @pytest.mark.parametrize("timezone", [None, "", "   ", 42])
    def test_missing_timezone_defaults_to_pt_br(self, timezone):
        """Missing or malformed input never raises."""
        assert resolve_locale(timezone) == "pt-BR"

    def test_surrounding_whitespace_is_ignored(self):
        assert resolve_locale("  America/Sao_Paulo ") == "pt-BR"


class TestLocaleHelpers:
    """Tests for locale metadata helpers."""

    def test_language_subtag(self):
        assert get_language_from_locale("pt-BR") == "pt"
        assert get_language_from_locale("en-US") == "en"
        assert get_language_from_locale(None) == "pt"

    def test_supported_timezones(self):
        assert is_supported_timezone("Australia/Gold_Coast") is True
        assert is_supported_timezone("America/Bahia") is True
        assert is_supported_timezone("Europe/Paris") is False
        assert is_supported_timezone(None) is False

    def test_metadata_for_known_locale(self):
        metadata = get_locale_metadata("pt-BR")

        assert metadata["currency"] == "BRL"
        assert metadata["date_format"] == "DD/MM/YYYY"

    def test_unknown_locale_metadata_falls_back_to_en_us(self):
        assert get_locale_metadata("fr-FR")["code"] == "en-US"

    def test_metadata_is_a_copy(self):
        metadata = get_locale_metadata("en-US")
        metadata["currency"] = "EUR"

        assert get_locale_metadata("en-US")["currency"] == "USD"
