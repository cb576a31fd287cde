from decimal import Decimal, InvalidOperation

from django import template

register = template.Library()


@register.filter
def euro(value):
    """1234.5 -> '1 234,50 €' (French formatting)."""
    try:
        amount = Decimal(str(value if value not in (None, "") else 0))
    except InvalidOperation:
        return value
    text = f"{amount:,.2f}".replace(",", " ").replace(".", ",")
    return f"{text} €"


@register.filter
def percent(value):
    try:
        amount = Decimal(str(value)).normalize()
    except (InvalidOperation, TypeError):
        return value
    return f"{amount:f}".replace(".", ",") + " %"
