"""Commission calculation.

Base amount is the invoice total HT. Percentages are percent values (5 = 5 %).

    percentage  amount * percentage
    fixed       fixed_amount
    tiered      tiers sorted by min; a tier contributes min(remaining, (max or amount) - min) * rate
    bonus       no base commission, only the bonus

On top of any rule type, bonus = amount * bonus_percentage when bonus_percentage > 0 and
amount >= bonus_threshold_amount.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import Q, Sum
from django.utils import timezone
from django_fsm import can_proceed

from commissions.models import Commission, CommissionRule, CommissionTarget
from documents.models import Invoice
from documents.services.totals import q2, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CommissionCalc:
    rate: Decimal
    commission: Decimal
    bonus: Decimal

    @property
    def total(self) -> Decimal:
        return self.commission + self.bonus


def select_rule(rules, user, amount):
    """First applicable rule: user-specific rules before general ones, then by priority."""
    amount = to_decimal(amount)
    user_id = getattr(user, "pk", user)
    candidates = [
        r for r in rules
        if r.is_active
        and (r.applies_to_user_id is None or r.applies_to_user_id == user_id)
        and (r.min_invoice_amount is None or amount >= r.min_invoice_amount)
    ]
    candidates.sort(key=lambda r: (r.applies_to_user_id is None, -r.priority))
    return candidates[0] if candidates else None


def _tiered(tiers, amount) -> Decimal:
    commission = ZERO
    remaining = amount
    for tier in sorted(tiers or [], key=lambda t: to_decimal(t.get("min"))):
        if remaining <= 0:
            break
        low = to_decimal(tier.get("min"))
        if amount <= low:
            continue
        high = to_decimal(tier["max"]) if tier.get("max") not in (None, "") else amount
        portion = min(remaining, high - low)
        commission += q2(portion * to_decimal(tier.get("rate")) / HUNDRED)
        remaining -= portion
    return commission


def compute_commission(rule, amount) -> CommissionCalc:
    amount = to_decimal(amount)
    rate = ZERO
    commission = ZERO

    if rule.rule_type == CommissionRule.RuleType.PERCENTAGE:
        rate = to_decimal(rule.percentage)
        commission = q2(amount * rate / HUNDRED)
    elif rule.rule_type == CommissionRule.RuleType.FIXED:
        commission = q2(rule.fixed_amount)
    elif rule.rule_type == CommissionRule.RuleType.TIERED:
        commission = _tiered(rule.tiers, amount)
        if amount > 0:
            rate = q2(commission / amount * HUNDRED)

    bonus = ZERO
    if rule.bonus_percentage and rule.bonus_percentage > 0 and rule.bonus_threshold_amount is not None:
        if amount >= rule.bonus_threshold_amount:
            bonus = q2(amount * rule.bonus_percentage / HUNDRED)

    return CommissionCalc(rate=q2(rate), commission=q2(commission), bonus=bonus)


@transaction.atomic
def create_commission_for_invoice(invoice, user):
    """Pending commission for `user` on `invoice`, or None when no rule applies.

    Calling it twice for the same invoice and user returns the existing commission.
    """
    existing = Commission.objects.filter(invoice=invoice, user=user).first()
    if existing is not None:
        return existing

    amount = invoice.subtotal
    rules = CommissionRule.objects.filter(organization=invoice.organization, is_active=True)
    rule = select_rule(rules, user, amount)
    if rule is None:
        logger.info("No commission rule for invoice %s and user %s", invoice.number, user)
        return None

    calc = compute_commission(rule, amount)
    period = invoice.date
    commission = Commission.objects.create(
        organization=invoice.organization,
        invoice=invoice,
        user=user,
        rule=rule,
        invoice_amount=amount,
        commission_rate=calc.rate,
        commission_amount=calc.commission,
        bonus_amount=calc.bonus,
        total_amount=calc.total,
        period_month=period.month,
        period_year=period.year,
    )
    logger.info("Commission %s created for %s on invoice %s (rule %s)", commission.total_amount, user, invoice.number, rule)
    return commission


@transaction.atomic
def cancel_pending_commissions(invoice, by=None) -> int:
    """Cancel the still-pending commissions of an invoice that is no longer paid."""
    cancelled = 0
    for commission in Commission.objects.select_for_update().filter(invoice=invoice, status=Commission.Status.PENDING):
        commission.cancel(by=by)
        commission.save()
        cancelled += 1
    if cancelled:
        logger.info("%s pending commission(s) cancelled on invoice %s", cancelled, invoice.number)
    return cancelled


@dataclass
class CommissionStats:
    pending: Decimal
    approved: Decimal
    paid: Decimal
    this_month: Decimal
    this_year: Decimal
    count: int


def commission_stats(organization, user=None, today=None) -> CommissionStats:
    today = today or timezone.localdate()
    qs = Commission.objects.filter(organization=organization).exclude(status=Commission.Status.CANCELLED)
    if user is not None:
        qs = qs.filter(user=user)

    S = Commission.Status
    totals = qs.aggregate(
        pending=Sum("total_amount", filter=Q(status=S.PENDING)),
        approved=Sum("total_amount", filter=Q(status=S.APPROVED)),
        paid=Sum("total_amount", filter=Q(status=S.PAID)),
        this_month=Sum("total_amount", filter=Q(period_year=today.year, period_month=today.month)),
        this_year=Sum("total_amount", filter=Q(period_year=today.year)),
    )
    return CommissionStats(
        pending=totals["pending"] or ZERO,
        approved=totals["approved"] or ZERO,
        paid=totals["paid"] or ZERO,
        this_month=totals["this_month"] or ZERO,
        this_year=totals["this_year"] or ZERO,
        count=qs.count(),
    )


def period_bounds(period_type, day: date):
    """First and last day of the month, quarter or year containing `day`."""
    if period_type == CommissionTarget.PeriodType.YEARLY:
        return date(day.year, 1, 1), date(day.year, 12, 31)
    if period_type == CommissionTarget.PeriodType.QUARTERLY:
        first_month = 3 * ((day.month - 1) // 3) + 1
        last_month = first_month + 2
    else:
        first_month = last_month = day.month
    last_day = calendar.monthrange(day.year, last_month)[1]
    return date(day.year, first_month, 1), date(day.year, last_month, last_day)


def refresh_target(target):
    """Recompute achieved revenue (HT) of the target's user over its period."""
    achieved = (
        Invoice.objects
        .filter(
            organization=target.organization,
            salesperson=target.user,
            date__gte=target.period_start,
            date__lte=target.period_end,
        )
        .exclude(state__in=[Invoice.State.DRAFT, Invoice.State.CANCELLED])
        .aggregate(s=Sum("subtotal"))["s"]
    ) or ZERO

    target.achieved_amount = q2(achieved)
    target.save(update_fields=["achieved_amount", "updated_at"])
    return target


@transaction.atomic
def change_commission_status(commission, action, by=None, reference=""):
    """Run approve / mark_paid / cancel on a commission."""
    commission = Commission.objects.select_for_update().get(pk=commission.pk)
    if action not in ("approve", "mark_paid", "cancel"):
        raise ValueError("Action inconnue.")
    method = getattr(commission, action)
    if not can_proceed(method):
        raise ValueError("Action impossible depuis le statut actuel.")

    if action == "mark_paid":
        method(reference=reference, by=by)
    else:
        method(by=by)
    commission.save()
    logger.info("Commission %s: %s -> %s", commission.pk, action, commission.status)
    return commission
