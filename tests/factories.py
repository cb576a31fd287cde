from decimal import Decimal


def add_lines(document, line_model, parent_field, lines):
    """Create (quantity, unit_price, tax_rate) lines on a document and recompute its totals."""
    for quantity, unit_price, tax_rate in lines:
        line_model.objects.create(**{
            parent_field: document,
            "description": "Prestation",
            "quantity": Decimal(quantity),
            "unit_price": Decimal(unit_price),
            "tax_rate": Decimal(tax_rate),
        })
    document.recalc_totals()
    return document
