"""Tests for installment planning."""

from types import SimpleNamespace

import pytest

from src.core.exceptions import ValidationError
from src.modules.fees.calculator import summarize
from src.modules.fees.installments import (
    build_schedule,
    next_due_installment,
    plan_installments,
    resolve_installment_status,
)
from src.modules.fees.schemas import InstallmentStatus


class TestPlanInstallments:
    def test_three_way_split(self):
        """₹20,000 over 3 installments."""
        amounts = [i.amount for i in plan_installments(20000, 3)]
        assert amounts == [6667, 6667, 6666]
        assert sum(amounts) == 20000

    @pytest.mark.parametrize("count", [2, 3, 4])
    @pytest.mark.parametrize("total", [0, 1, 2, 3, 7, 999, 13000, 20001])
    def test_sum_is_exact(self, total, count):
        installments = plan_installments(total, count)
        assert len(installments) == count
        assert sum(i.amount for i in installments) == total
        assert all(i.amount >= 0 for i in installments)

    def test_tiny_total_is_capped(self):
        assert [i.amount for i in plan_installments(1, 4)] == [1, 0, 0, 0]

    def test_numbers_start_at_one(self):
        assert [i.number for i in plan_installments(9000, 3)] == [1, 2, 3]

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_count_out_of_range(self, count):
        with pytest.raises(ValidationError):
            plan_installments(20000, count)

    def test_negative_total(self):
        with pytest.raises(ValidationError):
            plan_installments(-1, 2)


class TestResolveInstallmentStatus:
    def test_partial_coverage_stays_pending(self):
        """₹6,000 paid against 6,667 / 6,667 / 6,666."""
        resolved = resolve_installment_status(plan_installments(20000, 3), 6000)

        assert [i.status for i in resolved] == [InstallmentStatus.PENDING] * 3
        assert resolved[0].amount_paid == 6000
        assert next_due_installment(resolved).number == 1

    def test_cumulative_thresholds(self):
        resolved = resolve_installment_status(plan_installments(20000, 3), 13334)

        assert [i.status for i in resolved] == [
            InstallmentStatus.PAID,
            InstallmentStatus.PAID,
            InstallmentStatus.PENDING,
        ]
        assert next_due_installment(resolved).number == 3

    def test_fully_paid_has_no_next_due(self):
        resolved = resolve_installment_status(plan_installments(20000, 4), 20000)
        assert all(i.status == InstallmentStatus.PAID for i in resolved)
        assert next_due_installment(resolved) is None


class TestBuildSchedule:
    def test_full_plan_is_single_due(self):
        admission = SimpleNamespace(payment_plan="Full", total_installments=1)
        schedule = build_schedule(admission, summarize(15000, 0, 5000))

        assert schedule.total_installments == 1
        assert schedule.installments[0].amount == 15000
        assert schedule.installments[0].status == InstallmentStatus.PENDING
        assert schedule.next_due.number == 1

    def test_full_plan_paid_when_balance_cleared(self):
        admission = SimpleNamespace(payment_plan="Full", total_installments=1)
        schedule = build_schedule(admission, summarize(15000, 0, 15000))

        assert schedule.installments[0].status == InstallmentStatus.PAID
        assert schedule.next_due is None

    def test_installment_plan_uses_net_fee(self):
        admission = SimpleNamespace(payment_plan="Installment", total_installments=2)
        schedule = build_schedule(admission, summarize(15000, 3000, 0))

        assert [i.amount for i in schedule.installments] == [6000, 6000]
