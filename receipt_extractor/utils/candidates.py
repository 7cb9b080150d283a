"""
Candidate records and per-line detectors.

Each detector looks at one normalized line and returns zero or more scored
candidates. Detectors never see each other's output; selection happens
later in scoring.py.
"""

from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence
import re

from receipt_extractor.utils.dates import parse_date
from receipt_extractor.utils.locale import LocaleProfile
from receipt_extractor.utils.money import (
    currency_pattern,
    find_number_tokens,
)
from receipt_extractor.utils.text import (
    digit_ratio,
    has_alpha,
    keyword_pattern,
    looks_like_gst,
    looks_like_phone,
)


@dataclass(frozen=True)
class Candidate:
    """A scored, provisional value for one field."""
    text: str
    idx: int  # Source line index
    score: float  # Heuristic confidence, 0.0 - 1.0


# Merchant: 0.7 at the window edge, +0.04 per line closer to the top
MERCHANT_BASE_SCORE = 0.7
MERCHANT_LINE_STEP = 0.04
MERCHANT_MAX_DIGIT_RATIO = 0.35

# Money
MONEY_BASE_SCORE = 0.6
MONEY_TOTAL_BONUS = 0.25
MONEY_SUBTOTAL_PENALTY = 0.15
MONEY_FOOTER_BONUS = 0.10

# Payment
PAYMENT_WALLET_SCORE = 0.95
PAYMENT_CARD_SCORE = 0.90
PAYMENT_BASE_SCORE = 0.8

# Date
DATE_LABEL_INLINE_SCORE = 0.98
DATE_LABEL_NEXT_LINE_SCORE = 0.90
DATE_FREEFORM_SCORE = 0.85
DATE_HEADER_BONUS = 0.10


_EMAIL_LIKE_RE = re.compile(r'[A-Za-z0-9.\-_]+@[A-Za-z]{2,}')
_INVOICE_NUMBER_RE = re.compile(r'\b(?:inv|ino)\w*\b', re.IGNORECASE)
_PAYMENT_CONFIRM_RE = re.compile(r'\b(?:paid|card|upi|cash)\b', re.IGNORECASE)
_MODE_LABEL_RE = re.compile(r'\bmode\s*:', re.IGNORECASE)


@dataclass(frozen=True)
class PatternTable:
    """Regexes compiled once from a LocaleProfile."""
    profile: LocaleProfile
    boilerplate: Pattern
    total_keywords: Pattern
    subtotal_keywords: Pattern
    total_label: Pattern
    wallet: Pattern
    card_brand: Pattern
    card_any: Pattern
    cash: Pattern
    payment_phrase: Pattern
    date_label: Pattern
    date_label_only: Pattern
    currency: Pattern


def _alternation(labels: Sequence[str]) -> str:
    """Regex alternation of multi-word labels, longest first."""
    return '|'.join(
        r'\s*'.join(re.escape(part) for part in label.split())
        for label in sorted(labels, key=len, reverse=True)
        if label.strip()
    ) or r'(?!)'


def compile_patterns(profile: LocaleProfile) -> PatternTable:
    """Build every detector regex for a locale profile."""
    date_labels = _alternation(profile.date_labels)
    total_labels = _alternation(profile.total_labels)

    return PatternTable(
        profile=profile,
        boilerplate=keyword_pattern(profile.boilerplate_keywords),
        total_keywords=keyword_pattern(profile.total_keywords),
        subtotal_keywords=keyword_pattern(profile.subtotal_keywords),
        # A trailing label ("Grand Total", "Amount Paid:") or "Total 118";
        # "Taxable Amount: 100" is not a total line
        total_label=re.compile(
            rf'\b(?:{total_labels})\b[:\s\-]*$|\btotal[:\s]',
            re.IGNORECASE,
        ),
        wallet=keyword_pattern(profile.wallet_keywords),
        card_brand=keyword_pattern(profile.card_brands),
        card_any=keyword_pattern(profile.card_brands + profile.card_types),
        cash=keyword_pattern(profile.cash_keywords),
        payment_phrase=keyword_pattern(profile.payment_phrases),
        # Label, then ":" or "-", then whatever follows on the same line
        date_label=re.compile(
            rf'\b(?:{date_labels})\s*[:\-]\s*(?P<rest>.*)$',
            re.IGNORECASE,
        ),
        date_label_only=re.compile(
            rf'^\s*(?:{date_labels})\s*[:\-\s]*$',
            re.IGNORECASE,
        ),
        currency=currency_pattern(profile.currency_markers),
    )


def detect_merchant(line: str, idx: int, patterns: PatternTable) -> Optional[Candidate]:
    """
    Merchant names sit at the top of a receipt.

    Only lines inside the merchant window qualify; phone numbers, GST lines,
    digit-heavy lines and receipt boilerplate ("Tax Invoice") are skipped.
    """
    window = patterns.profile.merchant_window
    if idx >= window or not is_name_like(line):
        return None
    if patterns.boilerplate.search(line):
        return None
    return Candidate(
        text=line,
        idx=idx,
        score=round(MERCHANT_BASE_SCORE + (window - idx) * MERCHANT_LINE_STEP, 4),
    )


def is_name_like(line: str) -> bool:
    """Alphabetic, not a phone or GST line, and not mostly digits."""
    return (
        has_alpha(line)
        and not looks_like_phone(line)
        and not looks_like_gst(line)
        and digit_ratio(line) < MERCHANT_MAX_DIGIT_RATIO
    )


def detect_money(line: str, idx: int, line_count: int, patterns: PatternTable) -> List[Candidate]:
    """
    Every number on a line is a money candidate.

    Scoring:
    - Base: 0.6
    - Total-ish keyword on the line: +0.25
    - Subtotal / tax keyword on the line: -0.15
    - Within the last lines of the receipt: +0.10
    """
    tokens = find_number_tokens(line)
    if not tokens:
        return []

    score = MONEY_BASE_SCORE
    if patterns.total_keywords.search(line):
        score += MONEY_TOTAL_BONUS
    if patterns.subtotal_keywords.search(line):
        score -= MONEY_SUBTOTAL_PENALTY
    if idx >= line_count - patterns.profile.footer_window:
        score += MONEY_FOOTER_BONUS
    score = round(score, 4)

    return [Candidate(text=token, idx=idx, score=score) for token in tokens]


def detect_payment(line: str, idx: int, patterns: PatternTable) -> Optional[Candidate]:
    """
    Lines naming a payment method.

    Invoice-number lines ("INV-2231") are skipped unless they also mention
    paid/card/upi/cash.
    """
    wallet = patterns.wallet.search(line)
    card = patterns.card_any.search(line)
    mentions_payment = (
        wallet
        or card
        or patterns.cash.search(line)
        or patterns.payment_phrase.search(line)
        or _MODE_LABEL_RE.search(line)
        or _EMAIL_LIKE_RE.search(line)
    )
    if not mentions_payment:
        return None

    if _INVOICE_NUMBER_RE.search(line) and not _PAYMENT_CONFIRM_RE.search(line):
        return None

    if wallet:
        score = PAYMENT_WALLET_SCORE
    elif patterns.card_brand.search(line):
        score = PAYMENT_CARD_SCORE
    else:
        score = PAYMENT_BASE_SCORE
    return Candidate(text=line, idx=idx, score=score)


def detect_dates(lines: Sequence[str], idx: int, patterns: PatternTable) -> List[Candidate]:
    """
    Date candidates contributed by line idx.

    A "Date: ..." label takes the rest of the line, or the next line when
    nothing follows the label. Other lines are parsed as they stand, with a
    bonus near the header.
    """
    line = lines[idx]
    months = patterns.profile.months

    label = patterns.date_label.search(line)
    if label:
        rest = label.group('rest').strip()
        if rest:
            if parse_date(rest, months):
                return [Candidate(text=rest, idx=idx, score=DATE_LABEL_INLINE_SCORE)]
        elif idx + 1 < len(lines) and parse_date(lines[idx + 1], months):
            return [Candidate(text=lines[idx + 1], idx=idx + 1, score=DATE_LABEL_NEXT_LINE_SCORE)]
        return []

    if parse_date(line, months):
        score = DATE_FREEFORM_SCORE
        if idx < patterns.profile.header_window:
            score += DATE_HEADER_BONUS
        return [Candidate(text=line, idx=idx, score=round(score, 4))]
    return []
