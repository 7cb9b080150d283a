"""
Behavioural contract of parse_receipt.

Covers:
- Normalization and input coercion
- Null-safety on empty input
- Total-label precedence and the fallback amount ordering
- Label-form dates, merchant top-of-receipt bias
- Payment classification and category token overlap
"""

from decimal import Decimal

import pydantic
import pytest

from receipt_extractor.models.receipt import BoundingBox, OCRLine, ParseResult
from receipt_extractor.services.parser import (
    ReceiptParser,
    parse_receipt,
    parse_receipt_text,
    requires_review,
)
from receipt_extractor.utils.candidates import Candidate
from receipt_extractor.utils.text import normalize_line


class TestNormalization:
    """Lines are normalized once, at the boundary."""

    @pytest.mark.parametrize("raw", [
        "\u00a0ABC\u00a0\u00a0Mart \t ",
        "Total\n\n 118",
        "already clean",
        "",
        " ",
    ])
    def test_normalize_is_idempotent(self, raw):
        once = normalize_line(raw)
        assert normalize_line(once) == once

    def test_normalize_collapses_nbsp_and_whitespace(self):
        assert normalize_line("\u00a0ABC\u00a0\u00a0Mart \t ") == "ABC Mart"

    def test_empty_lines_are_dropped(self):
        result = parse_receipt(["", "   ", "Cafe Rio", " ", "Total 118"])
        assert result.debug.lines == ("Cafe Rio", "Total 118")

    def test_non_text_entries_become_empty(self):
        """None, numbers and text-less mappings are skipped, not fatal."""
        result = parse_receipt([None, 42, {"bbox": {"x": 0}}, {"text": "Cafe Rio"}, "Total 118"])
        assert result.debug.lines == ("Cafe Rio", "Total 118")
        assert result.merchant == "Cafe Rio"
        assert result.amount == Decimal("118")

    def test_ocr_line_models_are_accepted(self):
        lines = [
            OCRLine(text="ABC Mart", bbox=BoundingBox(x=10, y=5, w=200, h=30)),
            OCRLine(text="Total 500"),
        ]
        result = parse_receipt(lines)
        assert result.merchant == "ABC Mart"
        assert result.amount == Decimal("500")


class TestEmptyInput:
    """Empty input is a normal case, not an error."""

    def test_empty_input_is_all_null(self):
        result = parse_receipt([], [])

        assert result.amount is None
        assert result.amount_raw is None
        assert result.date is None
        assert result.date_iso is None
        assert result.merchant is None
        assert result.payment_method is None
        assert result.currency is None
        assert result.category_keywords == ()

        assert result.amount_confidence == 0
        assert result.date_confidence == 0
        assert result.merchant_confidence == 0
        assert result.payment_confidence == 0
        assert result.category_confidence == 0
        assert result.currency_confidence == 0

        assert result.debug.lines == ()
        assert result.debug.money_candidates == ()
        assert result.debug.date_candidates == ()
        assert result.debug.merchant_candidates == ()
        assert result.debug.payment_candidates == ()

    def test_none_input_behaves_like_empty(self):
        assert parse_receipt(None, None) == parse_receipt([], [])

    def test_non_iterable_input_behaves_like_empty(self):
        assert parse_receipt(12345, []) == parse_receipt([], [])


class TestAmount:
    """Total-label lines beat every other money candidate."""

    def test_total_label_precedence(self):
        result = parse_receipt(["Cafe Rio", "Subtotal 100", "Tax 18", "Total 118"])
        assert result.amount == Decimal("118")
        assert result.amount_raw == "118"
        assert result.amount_confidence == 0.98

    def test_total_line_takes_last_number(self):
        result = parse_receipt(["Cafe Rio", "Total (2 items) Rs. 1,234.50"])
        assert result.amount == Decimal("1234.50")
        assert result.amount_raw == "1,234.50"

    def test_amount_paid_with_figure_is_a_money_candidate(self):
        """Only a trailing label is a total line; "Amount Paid: 350" goes through the fallback."""
        result = parse_receipt(["Cafe Rio", "Item 45", "Amount Paid: 350", "Thanks"])
        assert result.amount == Decimal("350")
        assert result.amount_confidence == pytest.approx(0.95)

    def test_taxable_amount_does_not_beat_total(self):
        result = parse_receipt(["Shop", "Taxable Amount: 100", "CGST 9", "SGST 9", "Total: 118"])
        assert result.amount == Decimal("118")
        assert result.amount_confidence == 0.98

    def test_discount_amount_does_not_beat_grand_total(self):
        result = parse_receipt(["Shop", "Item 120", "Discount Amount - 20", "Grand Total 100"])
        assert result.amount == Decimal("100")
        assert result.amount_confidence == 0.98

    def test_spaced_sub_total_is_not_the_total(self):
        result = parse_receipt(["Shop", "Sub Total 100", "CGST 9", "SGST 9", "Total 118"])
        assert result.amount == Decimal("118")

    def test_indian_grouping_is_one_amount(self):
        result = parse_receipt(["Jewellers", "Grand Total: 1,23,456.00"])
        assert result.amount == Decimal("123456.00")

    def test_fallback_picks_last_token_not_largest(self):
        """Without a total line the latest money token wins."""
        result = parse_receipt(["Store", "Item A 250", "Item B 40"])
        assert result.amount == Decimal("40")

    def test_fallback_prefers_index_over_score(self):
        """
        A later lower-scoring line still beats an earlier higher-scoring one.

        Ordering is (line index, score) ascending and the last entry is
        taken; the tax line wins here although the balance line scores
        higher.
        """
        result = parse_receipt(["Shop", "Balance 500", "Tax 18"])
        money = {c.text: c.score for c in result.debug.money_candidates}
        assert money["500"] > money["18"]
        assert result.amount == Decimal("18")
        assert result.amount_confidence == pytest.approx(money["18"])

    def test_fallback_takes_last_token_on_last_line(self):
        result = parse_receipt(["Shop", "Qty 2 Rate 45"])
        assert result.amount == Decimal("45")

    def test_fallback_skips_phone_numbers(self):
        result = parse_receipt(["Shop", "Item 45", "Call 9876543210"])
        assert result.amount == Decimal("45")

    def test_total_label_without_number_falls_back(self):
        result = parse_receipt(["Shop", "TOTAL", "450.00"])
        assert result.amount == Decimal("450.00")
        assert result.amount_confidence == pytest.approx(0.7)

    def test_only_first_total_label_line_counts(self):
        """A bare "TOTAL" label decides; later label lines are not consulted."""
        result = parse_receipt(["Shop", "TOTAL", "450.00", "Total 500", "Change 50"])
        assert result.amount == Decimal("50")
        assert result.amount_confidence == pytest.approx(0.7)

    def test_no_numbers_means_no_amount(self):
        result = parse_receipt(["Shop", "Thank you"])
        assert result.amount is None
        assert result.amount_confidence == 0


class TestDate:
    """Date selection and the local ISO output."""

    def test_label_form_round_trip(self):
        result = parse_receipt(["Invoice Date: 20-May-18 22:55"])
        assert result.date == "2018-05-20T22:55:00"
        assert result.date_iso == result.date
        assert not result.date.endswith("Z")
        assert result.date_confidence == 0.98

    def test_label_on_its_own_line_uses_next_line(self):
        result = parse_receipt(["Shop", "Bill Date:", "12/03/2023", "Total 99"])
        assert result.date == "2023-03-12T00:00:00"
        assert Candidate(text="12/03/2023", idx=2, score=0.90) in result.debug.date_candidates

    def test_header_date_beats_footer_date(self):
        lines = ["Shop", "01/02/2023", "Item 10", "Item 20", "Item 30", "Item 40", "Total 100", "Printed 05/06/2023"]
        result = parse_receipt(lines)
        assert result.date == "2023-02-01T00:00:00"
        assert result.date_confidence == pytest.approx(0.95)

    def test_equal_scores_prefer_earlier_line(self):
        result = parse_receipt(["Shop", "01/02/2023", "05/06/2023"])
        assert result.date == "2023-02-01T00:00:00"

    def test_no_date(self):
        result = parse_receipt(["Shop", "Total 100"])
        assert result.date is None
        assert result.date_confidence == 0


class TestMerchant:
    """Merchant names come from the top of the receipt."""

    def test_top_of_receipt_bias(self):
        result = parse_receipt(["ABC Mart", "123-456-7890", "GSTIN 29ABCDE1234F1Z5", "Total 500"])
        assert result.merchant == "ABC Mart"
        assert result.merchant_confidence == pytest.approx(0.94)
        assert [c.text for c in result.debug.merchant_candidates] == ["ABC Mart"]

    def test_boilerplate_only_header_uses_fallback(self):
        result = parse_receipt(["TAX INVOICE", "Total 100"])
        assert result.merchant == "TAX INVOICE"
        assert result.merchant_confidence == 0.5

    def test_fallback_reaches_past_merchant_window(self):
        result = parse_receipt(["123456", "111", "222", "333", "444", "555", "Big Bazaar"])
        assert result.debug.merchant_candidates == ()
        assert result.merchant == "Big Bazaar"
        assert result.merchant_confidence == 0.5


class TestPayment:
    """The best payment line is classified into a method label."""

    def test_upi_id(self):
        result = parse_receipt(["Cafe Rio", "Total 250", "paid via someone@upi"])
        assert result.payment_method == "UPI"
        assert result.payment_confidence == 0.95

    def test_card_brand(self):
        result = parse_receipt(["Cafe Rio", "Total 250", "Card: VISA ****1234"])
        assert result.payment_method == "VISA"
        assert result.payment_confidence == 0.90

    def test_cash(self):
        result = parse_receipt(["Cafe Rio", "Total 250", "Cash"])
        assert result.payment_method == "CASH"
        assert result.payment_confidence == 0.85

    def test_wallet_line_without_id_is_other(self):
        """Classification reads the winning line's text, not its keyword."""
        result = parse_receipt(["Cafe Rio", "Cash", "UPI Ref 1234"])
        assert result.payment_method == "OTHER"
        assert result.payment_confidence == 0.95

    def test_no_payment(self):
        result = parse_receipt(["Cafe Rio", "Total 250"])
        assert result.payment_method is None
        assert result.payment_confidence == 0


class TestCategory:
    """Category matching never invents a category."""

    def test_token_overlap_selects_category(self):
        result = parse_receipt(["Food Court", "Total 90"], ["Food & Drinks", "Transport"])
        assert result.category_keywords == ("Food & Drinks",)
        assert result.category_confidence > 0

    def test_no_overlap_yields_nothing(self):
        result = parse_receipt(["Hardware Store", "Total 90"], ["Food & Drinks", "Transport"])
        assert result.category_keywords == ()
        assert result.category_confidence == 0

    def test_single_category_string(self):
        result = parse_receipt(["City Transport Depot", "Total 20"], "Transport")
        assert result.category_keywords == ("Transport",)


class TestCurrency:
    def test_marker_on_amount_line(self):
        result = parse_receipt(["Cafe", "Total ₹ 118.00"])
        assert result.currency == "INR"
        assert result.currency_confidence == 0.9

    def test_marker_elsewhere_in_receipt(self):
        result = parse_receipt(["Cafe", "Rs. 50 Tea", "Total 118"])
        assert result.currency == "INR"
        assert result.currency_confidence == 0.6

    def test_no_marker(self):
        result = parse_receipt(["Cafe", "Total 118"])
        assert result.currency is None
        assert result.currency_confidence == 0


class TestPurity:
    """Same input, same output, and nothing a line contains can abort a call."""

    NOISY = [
        "((( [[[ *** \\",
        "@@@ ??? +++",
        "Total: ) ( 12.5.",
        "Date: ]]]",
        "\u200b\ufeff",
        "{\"text\": 1}",
    ]

    def test_deterministic(self):
        lines = ["ABC Mart", "Date: 12/03/2023", "Total 500", "Paid via GPay"]
        assert parse_receipt(lines, ["Shopping"]) == parse_receipt(lines, ["Shopping"])

    def test_noisy_lines_do_not_raise(self):
        result = parse_receipt(self.NOISY, ["Food & Drinks"])
        assert isinstance(result, ParseResult)

    def test_confidence_invariants(self):
        result = parse_receipt(self.NOISY + ["Cafe Rio", "Total 99"], ["Food & Drinks"])
        pairs = [
            (result.amount, result.amount_confidence),
            (result.date, result.date_confidence),
            (result.merchant, result.merchant_confidence),
            (result.payment_method, result.payment_confidence),
            (result.currency, result.currency_confidence),
        ]
        for value, confidence in pairs:
            assert 0.0 <= confidence <= 1.0
            if value is None:
                assert confidence == 0

    def test_result_is_frozen(self):
        result = parse_receipt(["Cafe Rio", "Total 118"])
        with pytest.raises(pydantic.ValidationError):
            result.amount = Decimal("1")

    def test_category_match_is_immutable(self):
        result = parse_receipt(["Food Court", "Total 90"], ["Food & Drinks"])
        assert isinstance(result.category_keywords, tuple)
        with pytest.raises(AttributeError):
            result.category_keywords.append("Transport")

    def test_text_blob_matches_line_list(self):
        text = "Cafe Rio\nSubtotal 100\nTax 18\nTotal 118\n"
        assert parse_receipt_text(text) == parse_receipt(text.splitlines())

    def test_parser_instance_matches_module_function(self):
        lines = ["Cafe Rio", "Total 118"]
        assert ReceiptParser().parse(lines) == parse_receipt(lines)


class TestReviewRouting:
    def test_confident_result_skips_review(self):
        result = parse_receipt(["Cafe Rio", "Total 118"])
        assert requires_review(result) is False

    def test_missing_amount_needs_review(self):
        result = parse_receipt(["Cafe Rio"])
        assert requires_review(result) is True

    def test_low_merchant_confidence_needs_review(self):
        result = parse_receipt(["TAX INVOICE", "Total 100"])
        assert result.merchant_confidence == 0.5
        assert requires_review(result) is True
        assert requires_review(result, threshold=0.4) is False
