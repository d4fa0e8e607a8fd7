"""
Content package builder.

Turns a document, its patient and its line items into the frozen
``{"template", "resolvedData"}`` snapshot stored on an access link. The
same function backs the staff preview so both views stay identical.
Everything here is pure: no I/O, no clock, no randomness.
"""
import copy
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional
from docshare.core.locale import DEFAULT_LOCALE

EMPTY_TEMPLATE: Dict[str, Any] = {"content": [], "root": {}}

_MONTHS = {
    "en-US": ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"],
    "pt-BR": ["jan.", "fev.", "mar.", "abr.", "mai.", "jun.", "jul.", "ago.", "set.", "out.", "nov.", "dez."],
}

_CENTS = Decimal("0.01")


def _field(source: Any, name: str, default: Any = None) -> Any:
    """Read a field from an ORM object or a mapping."""
    if source is None:
        return default
    if isinstance(source, dict):
        value = source.get(name, default)
    else:
        value = getattr(source, name, default)
    return default if value is None else value


def format_currency(value: Any) -> str:
    """
    Format an amount as a dollar string with two decimals.

    Empty or unparseable values render as $0.00. No thousands
    separators and no locale-specific symbol.
    """
    if value is None or value == "" or value is False:
        return "$0.00"
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return "$0.00"
    if not amount.is_finite():
        return "$0.00"
    amount = amount.quantize(_CENTS, rounding=ROUND_HALF_UP)
    return f"${format(amount, 'f')}"


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def format_date(value: Any, locale: str = "en-US") -> str:
    """
    Short month/day/year date for a locale.

    en-US renders "Jan 5, 2025", pt-BR renders "5 de jan. de 2025".
    Empty or unparseable input renders as an empty string.
    """
    if not value:
        return ""
    parsed = _parse_date(value)
    if parsed is None:
        return ""
    if locale == "pt-BR":
        month = _MONTHS["pt-BR"][parsed.month - 1]
        return f"{parsed.day} de {month} de {parsed.year}"
    month = _MONTHS["en-US"][parsed.month - 1]
    return f"{month} {parsed.day}, {parsed.year}"


def resolve_document(document: Any, locale: str) -> Dict[str, Any]:
    """Display fields of a quote or prevention."""
    return {
        "number": _field(document, "number", ""),
        "total": format_currency(_field(document, "total", 0)),
        "content": _field(document, "content", ""),
        "status": _field(document, "status", "draft"),
        "created_at": format_date(_field(document, "created_at"), locale),
    }


def resolve_patient(patient: Any) -> Dict[str, Any]:
    """Display fields of a patient, with a full_name convenience field."""
    first_name = _field(patient, "first_name", "")
    last_name = _field(patient, "last_name", "")
    full_name = f"{first_name} {last_name}".strip()
    return {
        "first_name": first_name,
        "last_name": last_name,
        "full_name": full_name or "N/A",
        "email": _field(patient, "email", ""),
        "phone": _field(patient, "phone", ""),
    }


def resolve_items(items: Optional[Iterable[Any]]) -> list:
    """Display rows for line items. final_price is taken as given."""
    return [
        {
            "name": _field(item, "name", ""),
            "description": _field(item, "description", ""),
            "quantity": _field(item, "quantity") or 1,
            "base_price": format_currency(_field(item, "base_price", 0)),
            "discount": format_currency(_field(item, "discount_amount", 0)),
            "final_price": format_currency(_field(item, "final_price", 0)),
        }
        for item in (items or [])
    ]


def build_content_package(
    template: Optional[Dict[str, Any]],
    document: Any,
    patient: Any,
    items: Optional[Iterable[Any]] = None,
    locale: str = DEFAULT_LOCALE,
    document_type: str = "quote",
) -> Dict[str, Any]:
    """
    Build the frozen content package for a document.

    Args:
        template: UI template definition, None for the empty default
        document: Quote or prevention (ORM object or mapping)
        patient: Patient (ORM object or mapping)
        items: Line items, empty for preventions
        locale: Resolved tenant locale, drives date formatting
        document_type: "quote" or "prevention"

    Returns:
        {"template": ..., "resolvedData": {...}}. The document is exposed
        under "document" and under its type key so templates may bind to
        either.
    """
    resolved_document = resolve_document(document, locale)
    return {
        "template": copy.deepcopy(template) if template else copy.deepcopy(EMPTY_TEMPLATE),
        "resolvedData": {
            "locale": locale,
            "documentType": document_type,
            "document": resolved_document,
            document_type: dict(resolved_document),
            "patient": resolve_patient(patient),
            "items": resolve_items(items),
        },
    }
