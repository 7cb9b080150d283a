"""
Locale profiles for receipt extraction.

A profile bundles the keyword tables, month names and currency markers the
detectors use, so a new market can be supported without touching scoring.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Tuple


MONTH_ABBREVIATIONS: Tuple[str, ...] = (
    'jan', 'feb', 'mar', 'apr', 'may', 'jun',
    'jul', 'aug', 'sep', 'oct', 'nov', 'dec',
)


@dataclass(frozen=True)
class LocaleProfile:
    """
    Keyword and format tables for one receipt locale.

    Keyword tuples are matched case-insensitively as whole words.
    """
    name: str
    default_currency: str

    # Merchant: lines containing these are receipt boilerplate, not names
    boilerplate_keywords: Tuple[str, ...] = (
        'invoice', 'receipt', 'tax', 'gst', 'bill', 'cash memo', 'token',
    )

    # Money: keywords that push a line towards being the payable total
    total_keywords: Tuple[str, ...] = (
        'total', 'grand total', 'net payable', 'amount paid', 'balance', 'amount',
    )
    # Money: sub-total / tax lines are usually not the final amount
    subtotal_keywords: Tuple[str, ...] = (
        'subtotal', 'tax', 'gst', 'cgst', 'sgst', 'vat', 'service charge',
    )
    # Amount selector: labels that mark the total line itself
    total_labels: Tuple[str, ...] = (
        'grand total', 'total', 'net payable', 'amount paid', 'amount',
    )

    # Payment
    wallet_keywords: Tuple[str, ...] = (
        'upi', 'gpay', 'google pay', 'phonepe', 'paytm', 'amazon pay',
        'netbanking', 'net banking',
    )
    card_brands: Tuple[str, ...] = ('visa', 'mastercard', 'rupay', 'amex', 'maestro')
    card_types: Tuple[str, ...] = ('debit card', 'credit card')
    cash_keywords: Tuple[str, ...] = ('cash',)
    payment_phrases: Tuple[str, ...] = (
        'paid via', 'paid using', 'payment mode', 'txn type', 'transaction',
    )

    # Date
    date_labels: Tuple[str, ...] = ('bill date', 'invoice date', 'inv date', 'date')
    months: Tuple[str, ...] = MONTH_ABBREVIATIONS

    # Currency markers, longest first so "Rs." wins over "Rs"
    currency_markers: Dict[str, str] = field(default_factory=lambda: {
        '₹': 'INR',
        'INR': 'INR',
        'Rs.': 'INR',
        'Rs': 'INR',
        'USD': 'USD',
        '$': 'USD',
        'EUR': 'EUR',
        '€': 'EUR',
        'GBP': 'GBP',
        '£': 'GBP',
    })

    # Positional windows (in lines)
    merchant_window: int = 6
    merchant_fallback_window: int = 8
    header_window: int = 6
    footer_window: int = 6

    def with_overrides(self, **changes) -> 'LocaleProfile':
        """Return a copy of this profile with some tables replaced."""
        return replace(self, **changes)


INDIA = LocaleProfile(name='IN', default_currency='INR')

GENERIC = INDIA.with_overrides(
    name='GENERIC',
    default_currency='USD',
    subtotal_keywords=(
        'subtotal', 'sub total', 'tax', 'gst', 'hst', 'pst', 'vat', 'service charge', 'tip',
    ),
    wallet_keywords=('apple pay', 'google pay', 'gpay', 'paypal', 'venmo', 'upi'),
    card_brands=('visa', 'mastercard', 'amex', 'discover', 'maestro', 'interac'),
)

PROFILES: Dict[str, LocaleProfile] = {
    INDIA.name: INDIA,
    GENERIC.name: GENERIC,
}


def get_profile(name: str) -> LocaleProfile:
    """
    Look up a registered profile by name (case-insensitive).

    Raises:
        KeyError: if no profile is registered under that name
    """
    try:
        return PROFILES[name.upper()]
    except KeyError:
        raise KeyError(f"Unknown locale profile: {name!r}. Known: {sorted(PROFILES)}") from None
