import csv
import io

from django.utils import formats

INVOICE_CSV_HEADERS = [
    "Numéro",
    "Date",
    "Échéance",
    "Client",
    "Statut",
    "Total HT",
    "TVA",
    "Total TTC",
    "Payé",
    "Reste dû",
]


def _amount(value) -> str:
    # French spreadsheets expect a decimal comma
    return f"{value:.2f}".replace(".", ",")


def invoices_to_csv(invoices) -> str:
    """';'-separated CSV with a UTF-8 BOM so Excel opens accents correctly."""
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=";")
    writer.writerow(INVOICE_CSV_HEADERS)
    for inv in invoices:
        writer.writerow([
            inv.number,
            formats.date_format(inv.date, "d/m/Y"),
            formats.date_format(inv.due_date, "d/m/Y") if inv.due_date else "",
            inv.contact.display_name,
            inv.get_state_display(),
            _amount(inv.subtotal),
            _amount(inv.tax_amount),
            _amount(inv.total),
            _amount(inv.amount_paid),
            _amount(inv.remaining),
        ])
    return "\ufeff" + buf.getvalue()
