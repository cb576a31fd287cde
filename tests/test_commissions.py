from datetime import date
from decimal import Decimal

import pytest
from django.utils import timezone

from commissions.models import Commission, CommissionRule, CommissionTarget
from commissions.services import (
    change_commission_status,
    commission_stats,
    compute_commission,
    create_commission_for_invoice,
    period_bounds,
    refresh_target,
    select_rule,
)
from documents.services.payments import record_payment, reverse_payment

TIERS = [
    {"min": 1000, "max": 5000, "rate": 7},
    {"min": 0, "max": 1000, "rate": 5},
    {"min": 5000, "max": None, "rate": 10},
]


class TestCompute:
    def test_percentage(self):
        calc = compute_commission(CommissionRule(rule_type="percentage", percentage=Decimal("5")), "1000")
        assert (calc.rate, calc.commission, calc.bonus) == (Decimal("5.00"), Decimal("50.00"), Decimal("0.00"))

    def test_fixed_has_no_rate(self):
        calc = compute_commission(CommissionRule(rule_type="fixed", fixed_amount=Decimal("150")), "1000")
        assert calc.rate == Decimal("0.00")
        assert calc.commission == Decimal("150.00")

    def test_tiered_sorts_tiers_and_reports_effective_rate(self):
        calc = compute_commission(CommissionRule(rule_type="tiered", tiers=TIERS), "6000")
        assert calc.commission == Decimal("430.00")
        assert calc.rate == Decimal("7.17")

    def test_tiered_below_first_threshold(self):
        calc = compute_commission(CommissionRule(rule_type="tiered", tiers=TIERS), "400")
        assert calc.commission == Decimal("20.00")

    def test_bonus_above_threshold(self):
        rule = CommissionRule(
            rule_type="percentage",
            percentage=Decimal("5"),
            bonus_threshold_amount=Decimal("5000"),
            bonus_percentage=Decimal("2"),
        )
        assert compute_commission(rule, "4999.99").bonus == Decimal("0.00")
        calc = compute_commission(rule, "6000")
        assert calc.bonus == Decimal("120.00")
        assert calc.total == Decimal("420.00")

    def test_bonus_rule_only_pays_bonus(self):
        rule = CommissionRule(rule_type="bonus", bonus_threshold_amount=Decimal("1000"), bonus_percentage=Decimal("3"))
        calc = compute_commission(rule, "2000")
        assert (calc.commission, calc.bonus) == (Decimal("0.00"), Decimal("60.00"))


class TestSelectRule:
    def test_user_specific_rule_wins(self):
        general = CommissionRule(name="Général", priority=10)
        personal = CommissionRule(name="Bob", priority=0, applies_to_user_id=7)
        assert select_rule([general, personal], 7, "100") is personal
        assert select_rule([general, personal], 8, "100") is general

    def test_priority_then_minimum_amount(self):
        low = CommissionRule(name="Bas", priority=1)
        high = CommissionRule(name="Haut", priority=5, min_invoice_amount=Decimal("1000"))
        assert select_rule([low, high], 1, "5000") is high
        assert select_rule([low, high], 1, "500") is low

    def test_inactive_rules_ignored(self):
        assert select_rule([CommissionRule(name="Off", is_active=False)], 1, "100") is None


@pytest.mark.django_db
class TestInvoiceCommission:
    @pytest.fixture
    def rule(self, organization):
        return CommissionRule.objects.create(organization=organization, name="Standard", percentage=Decimal("10"))

    def test_created_when_invoice_paid(self, rule, make_invoice, salesperson):
        invoice = make_invoice(salesperson=salesperson)

        record_payment(invoice, "120.00")

        commission = Commission.objects.get(invoice=invoice, user=salesperson)
        assert commission.status == Commission.Status.PENDING
        assert commission.invoice_amount == Decimal("100.00")
        assert commission.commission_amount == Decimal("10.00")
        assert commission.period_month == invoice.date.month

    def test_cancelled_when_payment_reversed(self, rule, make_invoice, salesperson):
        invoice = make_invoice(salesperson=salesperson)
        payment = record_payment(invoice, "120.00")

        reverse_payment(payment)

        commission = Commission.objects.get(invoice=invoice, user=salesperson)
        assert commission.status == Commission.Status.CANCELLED

    def test_approved_commission_kept_when_payment_reversed(self, rule, make_invoice, salesperson, user):
        invoice = make_invoice(salesperson=salesperson)
        payment = record_payment(invoice, "120.00")
        change_commission_status(Commission.objects.get(invoice=invoice), "approve", by=user)

        reverse_payment(payment)

        assert Commission.objects.get(invoice=invoice).status == Commission.Status.APPROVED

    def test_idempotent(self, rule, make_invoice, salesperson):
        invoice = make_invoice(salesperson=salesperson)
        first = create_commission_for_invoice(invoice, salesperson)
        assert create_commission_for_invoice(invoice, salesperson) == first
        assert Commission.objects.filter(invoice=invoice).count() == 1

    def test_no_rule_no_commission(self, organization, make_invoice, salesperson):
        assert create_commission_for_invoice(make_invoice(), salesperson) is None

    def test_status_flow(self, rule, make_invoice, salesperson, user):
        commission = create_commission_for_invoice(make_invoice(salesperson=salesperson), salesperson)

        commission = change_commission_status(commission, "approve", by=user)
        assert commission.approved_by == user
        commission = change_commission_status(commission, "mark_paid", by=user, reference="VIR-42")
        assert commission.status == Commission.Status.PAID
        assert commission.payment_reference == "VIR-42"

        with pytest.raises(ValueError):
            change_commission_status(commission, "cancel", by=user)

    def test_stats_exclude_cancelled(self, rule, make_invoice, salesperson):
        kept = create_commission_for_invoice(make_invoice(salesperson=salesperson), salesperson)
        dropped = create_commission_for_invoice(make_invoice(salesperson=salesperson), salesperson)
        change_commission_status(dropped, "cancel")

        stats = commission_stats(rule.organization, user=salesperson)

        assert stats.count == 1
        assert stats.pending == kept.total_amount


def test_period_bounds():
    assert period_bounds("monthly", date(2024, 2, 14)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert period_bounds("quarterly", date(2024, 5, 2)) == (date(2024, 4, 1), date(2024, 6, 30))
    assert period_bounds("yearly", date(2024, 5, 2)) == (date(2024, 1, 1), date(2024, 12, 31))


@pytest.mark.django_db
def test_target_progress(organization, make_invoice, salesperson):
    make_invoice(salesperson=salesperson, lines=(("1", "750.00", "20"),))
    start, end = period_bounds("monthly", timezone.localdate())
    target = CommissionTarget.objects.create(
        organization=organization,
        user=salesperson,
        period_start=start,
        period_end=end,
        target_amount=Decimal("1000.00"),
        bonus_threshold_percent=Decimal("75"),
    )

    target = refresh_target(target)

    assert target.achieved_amount == Decimal("750.00")
    assert target.progress_percent == Decimal("75.00")
    assert target.bonus_reached
