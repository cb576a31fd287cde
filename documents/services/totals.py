"""Quote/invoice arithmetic.

All functions are pure: they take line objects (model instances or plain dicts with
the same keys) and return Decimals rounded to cents with ROUND_HALF_UP.

    line HT  = quantity * unit_price - discount_percent %
    line TVA = line HT * tax_rate / 100

Sums are accumulated exactly and rounded once at the end, so the result does not
depend on line order and recomputing never drifts.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """None and '' count as zero (blank form fields)."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def q2(value) -> Decimal:
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _field(line, name, default=None):
    if isinstance(line, dict):
        return line.get(name, default)
    return getattr(line, name, default)


def is_priced(line) -> bool:
    """Only 'item' lines carry an amount; 'text' and 'section' lines are labels."""
    return (_field(line, "line_type") or "item") == "item"


def line_subtotal(quantity, unit_price, discount_percent=None) -> Decimal:
    """Unrounded HT amount of a line."""
    gross = to_decimal(quantity) * to_decimal(unit_price)
    return gross - gross * to_decimal(discount_percent) / HUNDRED


def line_total(quantity, unit_price, discount_percent=None) -> Decimal:
    return q2(line_subtotal(quantity, unit_price, discount_percent))


def _line_base(line) -> Decimal:
    return line_subtotal(
        _field(line, "quantity"),
        _field(line, "unit_price"),
        _field(line, "discount_percent"),
    )


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


def compute_totals(lines) -> Totals:
    subtotal = ZERO
    tax_amount = ZERO
    for line in lines:
        if not is_priced(line):
            continue
        base = _line_base(line)
        subtotal += base
        tax_amount += base * to_decimal(_field(line, "tax_rate")) / HUNDRED

    return Totals(
        subtotal=q2(subtotal),
        tax_amount=q2(tax_amount),
        total=q2(subtotal + tax_amount),
    )


@dataclass(frozen=True)
class VatRow:
    rate: Decimal
    base: Decimal
    tax_amount: Decimal


def vat_breakdown(lines) -> list:
    """One row per VAT rate, highest rate first (the order printed on French invoices)."""
    bases = {}
    for line in lines:
        if not is_priced(line):
            continue
        base = _line_base(line)
        if base == ZERO:
            continue
        rate = to_decimal(_field(line, "tax_rate")).normalize()
        bases[rate] = bases.get(rate, ZERO) + base

    return [
        VatRow(rate=rate, base=q2(base), tax_amount=q2(base * rate / HUNDRED))
        for rate, base in sorted(bases.items(), key=lambda kv: kv[0], reverse=True)
    ]


@dataclass(frozen=True)
class Margin:
    revenue: Decimal
    cost: Decimal
    margin: Decimal
    margin_percent: Decimal


def compute_margin(lines) -> Margin:
    """Gross margin of priced lines. Lines without a cost price count as pure margin."""
    revenue = ZERO
    cost = ZERO
    for line in lines:
        if not is_priced(line):
            continue
        revenue += _line_base(line)
        cost += to_decimal(_field(line, "quantity")) * to_decimal(_field(line, "cost_price"))

    margin = revenue - cost
    percent = margin / revenue * HUNDRED if revenue else ZERO
    return Margin(revenue=q2(revenue), cost=q2(cost), margin=q2(margin), margin_percent=q2(percent))
