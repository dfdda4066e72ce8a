"""Text helpers for matching titles across sources"""

import re
import unicodedata


def normalize_title(text: str | None) -> str:
    """
    Lowercase, strip diacritics and collapse whitespace.

    "  Visa  Santánder " -> "visa santander"
    """
    value = unicodedata.normalize("NFD", text or "")
    value = "".join(ch for ch in value if not unicodedata.combining(ch))
    value = re.sub(r"\s+", " ", value.lower())
    return value.strip()


def format_money(amount) -> str:
    """Whole-unit amount with dot thousands separators: 45000 -> "$45.000" """
    return "$" + f"{amount:,.0f}".replace(",", ".")
