from decimal import Decimal

from documents.services.totals import compute_margin, compute_totals, line_total, q2, vat_breakdown

LINES = [
    {"line_type": "item", "quantity": "3", "unit_price": "19.99", "tax_rate": "20"},
    {"line_type": "section", "description": "Options"},
    {"line_type": "item", "quantity": "1", "unit_price": "100", "discount_percent": "10", "tax_rate": "5.5"},
    {"line_type": "text", "description": "Livraison offerte"},
]


def test_rounding_is_half_up():
    assert q2("0.125") == Decimal("0.13")
    assert q2("2.675") == Decimal("2.68")
    assert q2(None) == Decimal("0.00")


def test_line_total_applies_discount():
    assert line_total("2", "10.005") == Decimal("20.01")
    assert line_total("4", "25", "12.5") == Decimal("87.50")


def test_totals_ignore_label_lines():
    totals = compute_totals(LINES)
    assert totals.subtotal == Decimal("149.97")
    assert totals.tax_amount == Decimal("16.94")
    assert totals.total == Decimal("166.91")


def test_totals_do_not_depend_on_line_order():
    assert compute_totals(LINES) == compute_totals(list(reversed(LINES)))


def test_vat_breakdown_highest_rate_first():
    rows = vat_breakdown(LINES)
    assert [r.rate for r in rows] == [Decimal("20"), Decimal("5.5")]
    assert rows[0].base == Decimal("59.97")
    assert rows[0].tax_amount == Decimal("11.99")
    assert rows[1].base == Decimal("90.00")
    assert rows[1].tax_amount == Decimal("4.95")


def test_margin_counts_missing_cost_as_margin():
    lines = [
        {"quantity": "2", "unit_price": "100", "cost_price": "60", "tax_rate": "20"},
        {"quantity": "1", "unit_price": "50", "tax_rate": "20"},
    ]
    margin = compute_margin(lines)
    assert margin.revenue == Decimal("250.00")
    assert margin.cost == Decimal("120.00")
    assert margin.margin == Decimal("130.00")
    assert margin.margin_percent == Decimal("52.00")


def test_recalc_is_idempotent(make_invoice):
    invoice = make_invoice(lines=(("3", "19.99", "20"), ("1", "0.10", "5.5")), send=False)
    first = (invoice.subtotal, invoice.tax_amount, invoice.total)
    invoice.recalc_totals()
    invoice.recalc_totals()
    assert (invoice.subtotal, invoice.tax_amount, invoice.total) == first
    assert invoice.total == Decimal("72.07")
