"""
Receipt parser service for extracting expense fields from OCR lines.
"""

import logging
from typing import Any, Iterable, List, Sequence

from receipt_extractor.models.receipt import ParseDebug, ParseResult
from receipt_extractor.utils.candidates import (
    Candidate,
    compile_patterns,
    detect_dates,
    detect_merchant,
    detect_money,
    detect_payment,
)
from receipt_extractor.utils.dates import format_local_iso
from receipt_extractor.utils.locale import INDIA, LocaleProfile
from receipt_extractor.utils.money import parse_money
from receipt_extractor.utils.scoring import (
    clamp_confidence,
    select_amount,
    select_category,
    select_currency,
    select_date,
    select_merchant,
    select_payment,
)
from receipt_extractor.utils.text import normalize_lines

logger = logging.getLogger(__name__)

REVIEW_THRESHOLD = 0.7


def _as_list(items: Any) -> List[Any]:
    """A string becomes its lines, other iterables a list, anything else empty."""
    if items is None:
        return []
    if isinstance(items, str):
        return items.splitlines()
    try:
        return list(items)
    except TypeError:
        logger.warning("Ignoring non-iterable input", extra={"type": type(items).__name__})
        return []


class ReceiptParser:
    """
    Heuristic extractor for photographed receipts.

    One pass over the normalized lines collects merchant, money, payment and
    date candidates; per-field selectors then pick the winners. The parser
    holds only compiled patterns, so one instance can be shared across
    threads.
    """

    def __init__(self, profile: LocaleProfile = INDIA):
        self.profile = profile
        self.patterns = compile_patterns(profile)

    def parse(self, lines: Iterable[Any], categories: Sequence[str] = ()) -> ParseResult:
        """
        Extract expense fields from OCR lines.

        Args:
            lines: OCR lines top to bottom; strings, {"text", "bbox"} mappings
                or objects with a ``text`` attribute
            categories: Caller's category names; earlier names win ties

        Returns:
            ParseResult with values, confidences and the candidate trail
        """
        normalized = normalize_lines(_as_list(lines))
        categories = _as_list(categories)

        money: List[Candidate] = []
        dates: List[Candidate] = []
        merchants: List[Candidate] = []
        payments: List[Candidate] = []

        for idx, line in enumerate(normalized):
            self._collect(normalized, idx, line, money, dates, merchants, payments)

        amount_candidate = select_amount(normalized, money, self.patterns)
        amount = parse_money(amount_candidate.text) if amount_candidate else None
        if amount is None:
            amount_candidate = None

        date_value, date_confidence = select_date(normalized, dates, self.patterns)
        date_text = format_local_iso(date_value) if date_value else None

        merchant = select_merchant(normalized, merchants, self.patterns)
        payment_method, payment_confidence = select_payment(payments, self.patterns)
        category_keywords, category_confidence = select_category(normalized, categories)
        currency, currency_confidence = select_currency(normalized, amount_candidate, self.patterns)

        result = ParseResult(
            amount=amount,
            amount_raw=amount_candidate.text if amount_candidate else None,
            amount_confidence=clamp_confidence(amount_candidate.score) if amount_candidate else 0.0,
            date=date_text,
            date_iso=date_text,
            date_confidence=date_confidence if date_text else 0.0,
            merchant=merchant.text if merchant else None,
            merchant_confidence=clamp_confidence(merchant.score) if merchant else 0.0,
            payment_method=payment_method,
            payment_confidence=payment_confidence,
            category_keywords=category_keywords,
            category_confidence=category_confidence,
            currency=currency,
            currency_confidence=currency_confidence,
            debug=ParseDebug(
                lines=tuple(normalized),
                money_candidates=tuple(money),
                date_candidates=tuple(dates),
                merchant_candidates=tuple(merchants),
                payment_candidates=tuple(payments),
            ),
        )

        logger.debug("Parsed receipt", extra={
            "line_count": len(normalized),
            "money_candidates": len(money),
            "date_candidates": len(dates),
            "merchant_candidates": len(merchants),
            "payment_candidates": len(payments),
            "amount": result.amount_raw,
            "date": result.date,
            "merchant": result.merchant,
            "payment_method": result.payment_method,
        })
        return result

    def parse_text(self, text: str, categories: Sequence[str] = ()) -> ParseResult:
        """Parse an OCR text blob, one receipt line per text line."""
        if not isinstance(text, str):
            text = ''
        return self.parse(text.splitlines(), categories)

    def _collect(
        self,
        lines: Sequence[str],
        idx: int,
        line: str,
        money: List[Candidate],
        dates: List[Candidate],
        merchants: List[Candidate],
        payments: List[Candidate],
    ) -> None:
        """Run every detector on one line; a failing detector adds nothing."""
        try:
            merchant = detect_merchant(line, idx, self.patterns)
            if merchant:
                merchants.append(merchant)
        except Exception:
            logger.warning("Merchant detector failed", extra={"line": idx}, exc_info=True)

        try:
            money.extend(detect_money(line, idx, len(lines), self.patterns))
        except Exception:
            logger.warning("Money detector failed", extra={"line": idx}, exc_info=True)

        try:
            payment = detect_payment(line, idx, self.patterns)
            if payment:
                payments.append(payment)
        except Exception:
            logger.warning("Payment detector failed", extra={"line": idx}, exc_info=True)

        try:
            dates.extend(detect_dates(lines, idx, self.patterns))
        except Exception:
            logger.warning("Date detector failed", extra={"line": idx}, exc_info=True)


_default_parser = ReceiptParser()


def parse_receipt(lines: Iterable[Any], categories: Sequence[str] = ()) -> ParseResult:
    """
    Extract total, date, merchant, payment method and category from OCR lines.

    Pure: same input, same output; nothing is read or written outside the
    call. See ReceiptParser.parse.
    """
    return _default_parser.parse(lines, categories)


def parse_receipt_text(text: str, categories: Sequence[str] = ()) -> ParseResult:
    """Like parse_receipt, for OCR output delivered as one text blob."""
    return _default_parser.parse_text(text, categories)


def requires_review(result: ParseResult, threshold: float = REVIEW_THRESHOLD) -> bool:
    """
    Whether a person should confirm the result before it is saved.

    True when the amount or merchant is missing, or either is below the
    confidence threshold.
    """
    if result.amount is None or result.merchant is None:
        return True
    return result.amount_confidence < threshold or result.merchant_confidence < threshold
