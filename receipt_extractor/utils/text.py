"""
Line-level text helpers shared by the detectors.
"""

import re
from typing import Any, Iterable, List, Pattern


_NBSP_RE = re.compile('\u00a0')
_WHITESPACE_RE = re.compile(r'\s+')
_NON_DIGIT_RE = re.compile(r'\D')
_ALPHA_RE = re.compile(r'[A-Za-z]')
_PHONE_CHARS_RE = re.compile(r'[\d\-\s()+]')
_GST_RE = re.compile(r'\bGSTIN\b|\bGST\b|[0-9A-Z]{2}[0-9A-Z]{10}[0-9A-Z]{3}', re.IGNORECASE)
_TOKEN_SPLIT_RE = re.compile(r'\W+')


def normalize_line(text: str) -> str:
    """
    Normalize one OCR line.

    Non-breaking spaces become regular spaces, whitespace runs collapse to a
    single space and the ends are trimmed. Idempotent.
    """
    text = _NBSP_RE.sub(' ', text)
    text = _WHITESPACE_RE.sub(' ', text)
    return text.strip()


def line_text(line: Any) -> str:
    """
    Pull the text out of an OCR line.

    Accepts a plain string, a mapping with a "text" key, or any object with a
    ``text`` attribute. Anything else yields an empty string.
    """
    if isinstance(line, str):
        return line
    if isinstance(line, dict):
        text = line.get('text')
    else:
        text = getattr(line, 'text', None)
    return text if isinstance(text, str) else ''


def normalize_lines(lines: Iterable[Any]) -> List[str]:
    """Normalize every line and drop the ones left empty."""
    normalized = (normalize_line(line_text(line)) for line in lines)
    return [line for line in normalized if line]


def digits_only(text: str) -> str:
    return _NON_DIGIT_RE.sub('', text)


def has_alpha(text: str) -> bool:
    return bool(_ALPHA_RE.search(text))


def digit_ratio(text: str) -> float:
    """Fraction of non-space characters that are digits."""
    compact = _WHITESPACE_RE.sub('', text)
    return len(digits_only(text)) / max(1, len(compact))


def looks_like_phone(text: str) -> bool:
    """Between 6 and 15 digits, as printed in phone numbers."""
    count = len(digits_only(text))
    return 6 <= count <= 15 and bool(_PHONE_CHARS_RE.search(text))


def looks_like_gst(text: str) -> bool:
    """GST keyword or a 15-character GSTIN-shaped token."""
    return bool(_GST_RE.search(text))


def tokenize(text: str) -> List[str]:
    """Lowercase word tokens, split on anything that is not a word character."""
    return [token for token in _TOKEN_SPLIT_RE.split(text.lower()) if token]


def keyword_pattern(keywords: Iterable[str]) -> Pattern:
    """
    Compile a case-insensitive whole-word alternation of keywords.

    Spaces inside a keyword match any run of whitespace.
    """
    alternatives = [
        r'\s+'.join(re.escape(part) for part in keyword.split())
        for keyword in sorted(keywords, key=len, reverse=True)
        if keyword.strip()
    ]
    if not alternatives:
        return re.compile(r'(?!)')
    return re.compile(r'\b(?:' + '|'.join(alternatives) + r')\b', re.IGNORECASE)
