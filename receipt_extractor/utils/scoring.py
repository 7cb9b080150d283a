"""
Field selection over detector candidates.

Each selector picks at most one winner per field and derives the confidence
reported for it. Selectors degrade to None / 0.0 instead of raising.
"""

from collections import Counter
from datetime import datetime
from typing import List, Optional, Sequence, Tuple
import logging
import re

from receipt_extractor.utils.candidates import Candidate, PatternTable, is_name_like
from receipt_extractor.utils.dates import parse_date
from receipt_extractor.utils.money import find_currency_codes, find_number_tokens
from receipt_extractor.utils.text import looks_like_gst, looks_like_phone, tokenize

__all__ = [
    'clamp_confidence',
    'select_amount', 'select_date', 'select_merchant',
    'select_payment', 'select_category', 'select_currency',
    'token_overlap_score',
]

logger = logging.getLogger(__name__)

TOTAL_LINE_SCORE = 0.98
DATE_LABEL_SCAN_CONFIDENCE = 0.5
MERCHANT_FALLBACK_SCORE = 0.5

UPI_CONFIDENCE = 0.95
CARD_CONFIDENCE = 0.90
CASH_CONFIDENCE = 0.85

CURRENCY_ON_AMOUNT_LINE_CONFIDENCE = 0.9
CURRENCY_IN_DOCUMENT_CONFIDENCE = 0.6

_SUBTOTAL_LABEL_RE = re.compile(r'\bsub\s*-?\s*total', re.IGNORECASE)
_UPI_ID_RE = re.compile(r'([A-Za-z0-9.\-_]{2,}@[A-Za-z]{2,})')


def clamp_confidence(score: float) -> float:
    """Clamp a heuristic score into [0.0, 1.0]."""
    return max(0.0, min(1.0, score))


def select_amount(
    lines: Sequence[str],
    money_candidates: Sequence[Candidate],
    patterns: PatternTable
) -> Optional[Candidate]:
    """
    Pick the payable amount.

    1. The first total-label line ("Total 118", a trailing "Grand Total" or
       "Amount Paid:") decides; its last number is taken, since a currency
       symbol or tax note usually precedes the figure.
    2. If there is no such line, or it carries no number, the money
       candidate latest in the document, ties going to the higher score.
       The largest number is deliberately not preferred: tax and service
       lines can exceed the payable amount.
    """
    total_idx = next(
        (idx for idx, line in enumerate(lines)
         if patterns.total_label.search(line) and not _SUBTOTAL_LABEL_RE.search(line)),
        None,
    )
    if total_idx is not None:
        tokens = find_number_tokens(lines[total_idx])
        if tokens:
            return Candidate(text=tokens[-1], idx=total_idx, score=TOTAL_LINE_SCORE)

    eligible = [
        candidate for candidate in money_candidates
        if not looks_like_gst(candidate.text) and not looks_like_phone(candidate.text)
    ]
    if not eligible:
        return None

    ordered = sorted(eligible, key=lambda c: (c.idx, c.score))
    logger.debug("No usable total line, using last money candidate", extra={
        "candidate_count": len(eligible),
        "line": ordered[-1].idx,
    })
    return ordered[-1]


def select_date(
    lines: Sequence[str],
    date_candidates: Sequence[Candidate],
    patterns: PatternTable
) -> Tuple[Optional[datetime], float]:
    """
    Pick the transaction date.

    Highest score wins, earlier line on ties. Without any candidate, a bare
    "Invoice Date" label line lends its following line a 0.5 confidence.

    Returns:
        (datetime or None, confidence)
    """
    months = patterns.profile.months

    if date_candidates:
        best = sorted(date_candidates, key=lambda c: (-c.score, c.idx))[0]
        value = parse_date(best.text, months) or parse_date(lines[best.idx], months)
        if value is not None:
            return value, clamp_confidence(best.score)

    for idx, line in enumerate(lines[:-1]):
        if patterns.date_label_only.match(line):
            value = parse_date(lines[idx + 1], months)
            if value is not None:
                logger.debug("Date taken from line after bare label", extra={"line": idx + 1})
                return value, DATE_LABEL_SCAN_CONFIDENCE

    return None, 0.0


def select_merchant(
    lines: Sequence[str],
    merchant_candidates: Sequence[Candidate],
    patterns: PatternTable
) -> Optional[Candidate]:
    """
    Highest-scoring merchant candidate, or the first name-like line near
    the top (boilerplate allowed) at a flat 0.5.
    """
    if merchant_candidates:
        return sorted(merchant_candidates, key=lambda c: (-c.score, c.idx))[0]

    window = patterns.profile.merchant_fallback_window
    for idx, line in enumerate(lines[:window]):
        if is_name_like(line):
            logger.debug("Merchant from fallback scan", extra={"line": idx})
            return Candidate(text=line, idx=idx, score=MERCHANT_FALLBACK_SCORE)
    return None


def select_payment(
    payment_candidates: Sequence[Candidate],
    patterns: PatternTable
) -> Tuple[Optional[str], float]:
    """
    Classify the best payment line into a method label.

    - UPI ID (name@bank) in the line: "UPI", 0.95
    - Card brand: the brand uppercased ("VISA"), 0.90
    - Cash: "CASH", 0.85
    - Anything else: "OTHER" at the candidate's own score
    """
    if not payment_candidates:
        return None, 0.0

    best = sorted(payment_candidates, key=lambda c: (-c.score, c.idx))[0]
    text = best.text

    if _UPI_ID_RE.search(text):
        return 'UPI', UPI_CONFIDENCE

    brand = patterns.card_brand.search(text)
    if brand:
        return brand.group(0).upper(), CARD_CONFIDENCE

    if patterns.cash.search(text):
        return 'CASH', CASH_CONFIDENCE

    return 'OTHER', clamp_confidence(best.score)


def token_overlap_score(text: str, phrase: str) -> float:
    """
    Fraction of the phrase's word tokens that appear as whole tokens in text.

    Examples:
        >>> token_overlap_score("veg food combo", "Food & Drinks")
        0.5
    """
    phrase_tokens = tokenize(phrase)
    if not phrase_tokens:
        return 0.0
    text_tokens = set(tokenize(text))
    hits = sum(1 for token in phrase_tokens if token in text_tokens)
    return hits / len(phrase_tokens)


def select_category(
    lines: Sequence[str],
    categories: Sequence[str]
) -> Tuple[Tuple[str, ...], float]:
    """
    Best category by token overlap with the whole receipt.

    Ties go to the category listed first. No overlap at all yields an
    empty tuple rather than a guess.

    Returns:
        ((category,) or (), confidence)
    """
    text = ' '.join(lines)
    best_name = None
    best_score = 0.0
    for name in categories:
        if not isinstance(name, str):
            continue
        score = token_overlap_score(text, name)
        if score > best_score:
            best_name, best_score = name, score

    if best_name is None:
        return (), 0.0
    return (best_name,), clamp_confidence(best_score)


def select_currency(
    lines: Sequence[str],
    amount: Optional[Candidate],
    patterns: PatternTable
) -> Tuple[Optional[str], float]:
    """
    Currency from printed markers (₹, Rs., INR, $).

    A marker on the chosen amount's line wins; otherwise the most frequent
    marker in the receipt, first seen on ties.
    """
    markers = patterns.profile.currency_markers

    if amount is not None:
        codes = find_currency_codes(lines[amount.idx], patterns.currency, markers)
        if codes:
            return codes[0], CURRENCY_ON_AMOUNT_LINE_CONFIDENCE

    seen: List[str] = []
    for line in lines:
        seen.extend(find_currency_codes(line, patterns.currency, markers))
    if not seen:
        return None, 0.0

    counts = Counter(seen)
    top = max(counts.values())
    code = next(code for code in seen if counts[code] == top)
    return code, CURRENCY_IN_DOCUMENT_CONFIDENCE
