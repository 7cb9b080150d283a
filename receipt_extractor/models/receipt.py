"""
Pydantic models for receipt extraction.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Tuple, Union
from decimal import Decimal

from receipt_extractor.utils.candidates import Candidate


class BoundingBox(BaseModel):
    """Position of an OCR line on the receipt image."""
    x: float
    y: float
    w: float
    h: float


class OCRLine(BaseModel):
    """One recognised line of text. The bounding box is carried but unused."""
    text: str = ""
    bbox: Optional[BoundingBox] = None


class ParseDebug(BaseModel):
    """Every candidate the detectors produced, for tuning and review."""
    model_config = ConfigDict(frozen=True)

    lines: Tuple[str, ...] = ()
    money_candidates: Tuple[Candidate, ...] = ()
    date_candidates: Tuple[Candidate, ...] = ()
    merchant_candidates: Tuple[Candidate, ...] = ()
    payment_candidates: Tuple[Candidate, ...] = ()


class ParseResult(BaseModel):
    """
    Structured fields extracted from one receipt.

    Every value comes with a confidence in [0, 1]; a missing value always
    has confidence 0.
    """
    model_config = ConfigDict(frozen=True)

    amount: Optional[Decimal] = None
    amount_raw: Optional[str] = None
    amount_confidence: float = 0.0

    date: Optional[str] = None  # Local time, YYYY-MM-DDTHH:MM:SS, no zone
    date_iso: Optional[str] = None
    date_confidence: float = 0.0

    merchant: Optional[str] = None
    merchant_confidence: float = 0.0

    payment_method: Optional[str] = None  # UPI, VISA, CASH, OTHER, ...
    payment_confidence: float = 0.0

    category_keywords: Tuple[str, ...] = ()  # Top match only
    category_confidence: float = 0.0

    currency: Optional[str] = None  # ISO code: INR, USD, ...
    currency_confidence: float = 0.0

    debug: ParseDebug = Field(default_factory=ParseDebug)


class ParseRequest(BaseModel):
    """Request model for parsing OCR output."""
    lines: List[Union[str, OCRLine]]
    categories: Optional[List[str]] = None


class ParseResponse(BaseModel):
    """Response model for a parse request."""
    result: ParseResult
    needs_review: bool
