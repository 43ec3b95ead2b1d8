"""
Fee summary arithmetic.

Everything in this module is a pure function of its inputs. Summaries are
derived on every read from the admission and its full payment ledger and are
never stored.

All amounts are whole rupees.
"""

from collections.abc import Iterable
from typing import Any

from src.core.exceptions import MissingFeeReferenceError, ValidationError
from src.modules.admissions.models import Admission, FeeStatus
from src.modules.fees.schemas import FeeSummary
from src.modules.payments.models import Payment, PaymentStatus
from src.shared.utils.money import clamp_non_negative


def derive_payment_status(total_paid: int, total_fees: int) -> FeeStatus:
    """
    Admission-level status from what has been paid against the net fee.

    Nothing paid is Pending even when the net fee is zero; any payment that
    leaves no balance is Paid.
    """
    if total_paid <= 0:
        return FeeStatus.PENDING
    if total_paid >= total_fees:
        return FeeStatus.PAID
    return FeeStatus.PARTIALLY_PAID


def total_paid(payments: Iterable[Payment | Any]) -> int:
    """Sum of ``paid`` rows. Pending, failed and created rows stay in history only."""
    return sum(p.amount for p in payments if p.status == PaymentStatus.PAID.value)


def resolve_gross_fees(admission: Admission) -> int:
    """
    Gross fee of the admission's course.

    Falls back to the snapshot taken at admission time when the course has
    been deleted. With neither, the fee is unknown and must not be shown as 0.
    """
    if admission.course is not None:
        return admission.course.fees
    if admission.fees_snapshot is not None:
        return admission.fees_snapshot
    raise MissingFeeReferenceError(admission.id)


def summarize(gross_fees: int, discount: int, paid: int) -> FeeSummary:
    """The arithmetic core shared by single-admission summaries and the overview."""
    if discount < 0:
        raise ValidationError("Discount cannot be negative", field="discount")
    total_fees = clamp_non_negative(gross_fees - discount)
    return FeeSummary(
        gross_fees=gross_fees,
        discount=discount,
        total_fees=total_fees,
        total_paid=paid,
        balance_due=clamp_non_negative(total_fees - paid),
        payment_status=derive_payment_status(paid, total_fees),
        excess_paid=clamp_non_negative(paid - total_fees),
    )


def compute_fee_summary(admission: Admission, payments: Iterable[Payment]) -> FeeSummary:
    """
    Fee summary of one admission.

    ``payments`` must be the admission's complete, unfiltered ledger.
    """
    return summarize(
        resolve_gross_fees(admission),
        admission.discount or 0,
        total_paid(payments),
    )
