from django.contrib.auth.decorators import login_required
from django.http import Http404
from django.shortcuts import get_object_or_404, render

from core.permissions import get_organization
from documents.models import Invoice, Quote

PRINTABLE = {
    "quote": (Quote, "Devis"),
    "invoice": (Invoice, "Facture"),
}


@login_required
def document_print(request, kind, pk):
    """Print-ready page; the browser's "Imprimer / PDF" produces the PDF file."""
    organization = get_organization(request)
    if kind not in PRINTABLE:
        raise Http404("Type de document inconnu")
    model, title = PRINTABLE[kind]
    doc = get_object_or_404(model.objects.select_related("contact"), pk=pk, organization=organization)

    return render(request, "documents/print.html", {
        "doc": doc,
        "kind": kind,
        "title": title,
        "organization": organization,
        "lines": doc.lines.all(),
        "vat_rows": doc.vat_breakdown(),
    })
