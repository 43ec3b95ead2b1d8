"""Tests for fee summary arithmetic."""

from types import SimpleNamespace

import pytest

from src.core.exceptions import MissingFeeReferenceError, ValidationError
from src.modules.admissions.models import FeeStatus
from src.modules.fees.calculator import (
    compute_fee_summary,
    derive_payment_status,
    resolve_gross_fees,
    summarize,
    total_paid,
)


def _admission(fees: int | None = 15000, discount: int = 0, snapshot: int | None = None):
    course = SimpleNamespace(fees=fees) if fees is not None else None
    return SimpleNamespace(id=1, course=course, fees_snapshot=snapshot, discount=discount)


def _payment(amount: int, status: str = "paid"):
    return SimpleNamespace(amount=amount, status=status)


class TestDerivePaymentStatus:
    def test_nothing_paid_is_pending(self):
        assert derive_payment_status(0, 15000) == FeeStatus.PENDING

    def test_partial(self):
        assert derive_payment_status(5000, 15000) == FeeStatus.PARTIALLY_PAID

    def test_exact_and_over(self):
        assert derive_payment_status(15000, 15000) == FeeStatus.PAID
        assert derive_payment_status(16000, 15000) == FeeStatus.PAID

    def test_zero_fee_with_nothing_paid_stays_pending(self):
        assert derive_payment_status(0, 0) == FeeStatus.PENDING


class TestSummarize:
    """Net fee and balance invariants."""

    @pytest.mark.parametrize(
        "gross, discount, expected_total",
        [(15000, 0, 15000), (15000, 2000, 13000), (15000, 15000, 0), (15000, 99999, 0)],
    )
    def test_total_fees_never_negative(self, gross, discount, expected_total):
        summary = summarize(gross, discount, 0)
        assert summary.total_fees == expected_total == max(0, gross - discount)

    def test_balance_clamped_and_excess_reported(self):
        summary = summarize(10000, 0, 12000)
        assert summary.balance_due == 0
        assert summary.excess_paid == 2000
        assert summary.payment_status == FeeStatus.PAID

    def test_negative_discount_rejected(self):
        with pytest.raises(ValidationError):
            summarize(15000, -1, 0)


class TestComputeFeeSummary:
    def test_scenario_full_payment(self):
        """₹15,000 course, one admin payment of ₹15,000."""
        summary = compute_fee_summary(_admission(), [_payment(15000)])

        assert summary.payment_status == FeeStatus.PAID
        assert summary.balance_due == 0
        assert summary.excess_paid == 0

    def test_scenario_discount_and_two_payments(self):
        """₹15,000 course, ₹2,000 discount, two approved payments of ₹5,000."""
        summary = compute_fee_summary(
            _admission(discount=2000), [_payment(5000), _payment(5000)]
        )

        assert summary.total_fees == 13000
        assert summary.total_paid == 10000
        assert summary.balance_due == 3000
        assert summary.payment_status == FeeStatus.PARTIALLY_PAID

    def test_only_paid_rows_count(self):
        ledger = [
            _payment(5000),
            _payment(3000, "pending_approval"),
            _payment(2000, "failed"),
            _payment(1000, "created"),
        ]
        assert total_paid(ledger) == 5000
        assert compute_fee_summary(_admission(), ledger).balance_due == 10000

    def test_pure(self):
        admission = _admission(discount=500)
        ledger = [_payment(4000), _payment(100, "failed")]
        assert compute_fee_summary(admission, ledger) == compute_fee_summary(admission, ledger)


class TestResolveGrossFees:
    def test_course_fee_wins_over_snapshot(self):
        assert resolve_gross_fees(_admission(fees=18000, snapshot=15000)) == 18000

    def test_snapshot_when_course_deleted(self):
        assert resolve_gross_fees(_admission(fees=None, snapshot=15000)) == 15000

    def test_missing_reference_is_an_error_not_zero(self):
        with pytest.raises(MissingFeeReferenceError) as exc_info:
            compute_fee_summary(_admission(fees=None, snapshot=None), [_payment(100)])

        assert "Fee data unavailable" in exc_info.value.message
