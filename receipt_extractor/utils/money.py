"""
Money token utilities.

Handles the number formats printed on retail receipts:
- Thousands grouping: 1,234.50
- Indian lakh grouping: 1,23,456.00
- Plain digits with optional decimals: 45, 99.99
"""

from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Pattern
import re


# Grouped forms are tried before plain digits so "1,234.50" stays one token
NUMBER_TOKEN_RE = re.compile(
    r'(?:\d{1,3}(?:,\d{3})+|\d{1,2}(?:,\d{2})+,\d{3}|\d+)(?:\.\d+)?'
)


def find_number_tokens(text: str) -> List[str]:
    """
    Return every number-like token in text, left to right.

    Examples:
        >>> find_number_tokens("Total Rs. 1,234.50 (incl. 18 GST)")
        ['1,234.50', '18']
    """
    return NUMBER_TOKEN_RE.findall(text)


def parse_money(amount_str: str, allow_negative: bool = False) -> Optional[Decimal]:
    """
    Parse a money string into a Decimal.

    Currency symbols and grouping commas are stripped. Negative and
    non-finite values are rejected unless allow_negative is set (non-finite
    values are always rejected).

    Args:
        amount_str: String containing an amount (e.g. "1,234.50", "₹45")
        allow_negative: Whether to accept a leading minus sign

    Returns:
        Decimal amount or None if parsing fails

    Examples:
        >>> parse_money("1,23,456.00")
        Decimal('123456.00')
        >>> parse_money("-5") is None
        True
    """
    if not amount_str or not isinstance(amount_str, str):
        return None

    cleaned = re.sub(r'[^\d.\-,]', '', amount_str).replace(',', '')
    if not cleaned:
        return None

    try:
        value = Decimal(cleaned)
    except (InvalidOperation, ValueError):
        return None

    if not value.is_finite():
        return None
    if value < 0 and not allow_negative:
        return None

    return value


def currency_pattern(markers: Dict[str, str]) -> Pattern:
    """
    Compile a pattern matching any currency marker in the table.

    Alphabetic markers (INR, Rs.) must start on a word boundary; symbols
    (₹, $) match anywhere. Longer markers are tried first.
    """
    alternatives = []
    for marker in sorted(markers, key=len, reverse=True):
        escaped = re.escape(marker)
        if marker[0].isalpha():
            escaped = r'\b' + escaped
            if marker[-1].isalnum():
                escaped += r'\b'
        alternatives.append(escaped)
    if not alternatives:
        return re.compile(r'(?!)')
    return re.compile('|'.join(alternatives), re.IGNORECASE)


def find_currency_codes(text: str, pattern: Pattern, markers: Dict[str, str]) -> List[str]:
    """Map every currency marker found in text to its ISO code, in order."""
    lookup = {marker.lower(): code for marker, code in markers.items()}
    return [lookup[match.lower()] for match in pattern.findall(text) if match.lower() in lookup]
