"""
Installment planning.

Installments are not persisted. They are recomputed from the net fee and the
admission's installment count on every read, and their paid/pending state
comes from the cumulative amount paid, not from which payment was tagged
with which installment number.
"""

from src.core.exceptions import ValidationError
from src.modules.admissions.models import (
    MAX_INSTALLMENTS,
    MIN_INSTALLMENTS,
    Admission,
    PaymentPlan,
)
from src.modules.fees.schemas import (
    FeeSummary,
    Installment,
    InstallmentSchedule,
    InstallmentStatus,
)
from src.shared.utils.money import ceil_div


def plan_installments(total_fees: int, total_installments: int) -> list[Installment]:
    """
    Split ``total_fees`` into ``total_installments`` dues.

    Installments 1..N-1 get ceil(total / N) and the last one gets whatever is
    left, so the amounts always add up to ``total_fees`` exactly:

        >>> [i.amount for i in plan_installments(20000, 3)]
        [6667, 6667, 6666]

    When the total is too small for the ceiling (1 rupee over 4 installments)
    each due is capped at what remains, so no amount is negative:

        >>> [i.amount for i in plan_installments(1, 4)]
        [1, 0, 0, 0]
    """
    if not MIN_INSTALLMENTS <= total_installments <= MAX_INSTALLMENTS:
        raise ValidationError(
            f"Installments must be between {MIN_INSTALLMENTS} and {MAX_INSTALLMENTS}",
            field="total_installments",
        )
    if total_fees < 0:
        raise ValidationError("Total fees cannot be negative", field="total_fees")

    per_installment = ceil_div(total_fees, total_installments)
    remaining = total_fees
    installments = []
    for number in range(1, total_installments + 1):
        if number == total_installments:
            amount = remaining
        else:
            amount = min(per_installment, remaining)
        remaining -= amount
        installments.append(Installment(number=number, amount=amount))
    return installments


def resolve_installment_status(
    installments: list[Installment], total_paid: int
) -> list[Installment]:
    """
    Mark installments Paid in order while ``total_paid`` covers their cumulative threshold.

    A partially covered installment stays Pending (``amount_paid`` shows how
    much of it is covered) and so does everything after it.
    """
    resolved = []
    threshold = 0
    for installment in installments:
        covered_before = threshold
        threshold += installment.amount
        paid = total_paid >= threshold
        resolved.append(
            installment.model_copy(
                update={
                    "status": InstallmentStatus.PAID if paid else InstallmentStatus.PENDING,
                    "amount_paid": min(
                        installment.amount, max(0, total_paid - covered_before)
                    ),
                }
            )
        )
    return resolved


def next_due_installment(installments: list[Installment]) -> Installment | None:
    """First Pending installment; this is what the payment page asks the student to pay."""
    return next(
        (i for i in installments if i.status == InstallmentStatus.PENDING),
        None,
    )


def build_schedule(admission: Admission, summary: FeeSummary) -> InstallmentSchedule:
    """
    Installment view of an admission.

    A Full plan is a single due of the whole net fee, Paid once nothing is
    left to pay.
    """
    if admission.payment_plan == PaymentPlan.INSTALLMENT.value:
        installments = resolve_installment_status(
            plan_installments(summary.total_fees, admission.total_installments),
            summary.total_paid,
        )
        plan = PaymentPlan.INSTALLMENT
    else:
        installments = [
            Installment(
                number=1,
                amount=summary.total_fees,
                status=(
                    InstallmentStatus.PAID
                    if summary.balance_due == 0
                    else InstallmentStatus.PENDING
                ),
                amount_paid=min(summary.total_fees, summary.total_paid),
            )
        ]
        plan = PaymentPlan.FULL

    return InstallmentSchedule(
        payment_plan=plan,
        total_installments=len(installments),
        installments=installments,
        next_due=next_due_installment(installments),
    )
