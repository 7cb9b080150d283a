"""
Receipts API router for parsing OCR output into expense fields.
"""

from fastapi import APIRouter, HTTPException
import logging

from receipt_extractor.config import settings
from receipt_extractor.models.receipt import ParseRequest, ParseResponse
from receipt_extractor.services.parser import ReceiptParser, requires_review
from receipt_extractor.utils.locale import get_profile

router = APIRouter(prefix="/receipts", tags=["receipts"])
logger = logging.getLogger(__name__)

parser = ReceiptParser(get_profile(settings.LOCALE))


@router.post("/parse", response_model=ParseResponse)
async def parse_receipt_lines(request: ParseRequest):
    """
    Parse OCR lines from one receipt.

    Categories default to the configured vocabulary when the request omits
    them. Requests with more than MAX_OCR_LINES lines are rejected.

    Args:
        request: OCR lines (top to bottom) and optional category names

    Returns:
        Extracted fields plus whether the result needs manual review
    """
    if len(request.lines) > settings.MAX_OCR_LINES:
        logger.warning("Rejected oversized OCR input", extra={
            "line_count": len(request.lines),
            "max_lines": settings.MAX_OCR_LINES
        })
        raise HTTPException(
            status_code=413,
            detail=f"Too many OCR lines: {len(request.lines)}. Maximum: {settings.MAX_OCR_LINES}"
        )

    categories = request.categories if request.categories is not None else settings.DEFAULT_CATEGORIES
    result = parser.parse(request.lines, categories)
    needs_review = requires_review(result, settings.REVIEW_THRESHOLD)

    logger.info("Parsed receipt lines", extra={
        "line_count": len(request.lines),
        "amount_confidence": result.amount_confidence,
        "merchant_confidence": result.merchant_confidence,
        "needs_review": needs_review
    })

    return ParseResponse(result=result, needs_review=needs_review)


@router.get("/categories")
async def list_default_categories():
    """Default category vocabulary used when a request sends none."""
    return {"categories": settings.DEFAULT_CATEGORIES}
