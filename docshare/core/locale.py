"""
Timezone to locale mapping.

The service supports exactly two locales. Brazilian timezones map to
pt-BR, every other timezone maps to en-US, and a missing timezone falls
back to pt-BR.
"""
from typing import Any, Dict, Optional

DEFAULT_LOCALE = "pt-BR"
FALLBACK_LOCALE = "en-US"
SUPPORTED_LOCALES = ("pt-BR", "en-US")

BRAZILIAN_TIMEZONES = frozenset({
    "America/Sao_Paulo",
    "America/Bahia",
    "America/Fortaleza",
    "America/Recife",
    "America/Manaus",
    "America/Belem",
    "America/Rio_Branco",
    "America/Campo_Grande",
    "America/Cuiaba",
    "America/Boa_Vista",
    "America/Porto_Velho",
    "America/Eirunepe",
    "America/Maceio",
    "America/Araguaina",
    "America/Santarem",
    "America/Noronha",
})

AUSTRALIAN_TIMEZONES = frozenset({
    "Australia/Gold_Coast",
    "Australia/Sydney",
    "Australia/Melbourne",
    "Australia/Brisbane",
    "Australia/Perth",
    "Australia/Adelaide",
    "Australia/Darwin",
    "Australia/Hobart",
    "Australia/Canberra",
    "Australia/Lord_Howe",
    "Australia/Eucla",
    "Australia/Broken_Hill",
    "Australia/Currie",
    "Australia/Lindeman",
})

LOCALE_METADATA: Dict[str, Dict[str, str]] = {
    "pt-BR": {
        "code": "pt-BR",
        "name": "Português (Brasil)",
        "language": "pt",
        "country": "BR",
        "currency": "BRL",
        "date_format": "DD/MM/YYYY",
        "time_format": "HH:mm",
    },
    "en-US": {
        "code": "en-US",
        "name": "English",
        "language": "en",
        "country": "US",
        "currency": "USD",
        "date_format": "MM/DD/YYYY",
        "time_format": "hh:mm A",
    },
}


def resolve_locale(timezone: Any) -> str:
    """
    Map a tenant IANA timezone to a supported locale tag.

    Never raises: anything that is not a non-empty string yields the
    default locale, unknown zones yield en-US.
    """
    if not isinstance(timezone, str):
        return DEFAULT_LOCALE
    timezone = timezone.strip()
    if not timezone:
        return DEFAULT_LOCALE
    if timezone in BRAZILIAN_TIMEZONES:
        return "pt-BR"
    return FALLBACK_LOCALE


def get_language_from_locale(locale: Optional[str]) -> str:
    """Language subtag of a locale ('pt-BR' -> 'pt')."""
    if not locale or not isinstance(locale, str):
        return "pt"
    return locale.split("-")[0]


def is_supported_timezone(timezone: Any) -> bool:
    """Whether the timezone belongs to a region the product ships for."""
    if not isinstance(timezone, str):
        return False
    timezone = timezone.strip()
    return timezone in BRAZILIAN_TIMEZONES or timezone in AUSTRALIAN_TIMEZONES


def get_locale_metadata(locale: Optional[str]) -> Dict[str, str]:
    """Display metadata for a locale; unknown locales get the en-US entry."""
    return dict(LOCALE_METADATA.get(locale or "", LOCALE_METADATA[FALLBACK_LOCALE]))
