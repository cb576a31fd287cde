from django.urls import path

from documents.views.bills import bill_action, bill_delete, bill_detail, bill_edit, bill_list, bill_payment_add
from documents.views.invoices import (
    invoice_action,
    invoice_create,
    invoice_delete,
    invoice_detail,
    invoice_edit,
    invoice_list,
    invoice_payment_add,
    payment_delete,
)
from documents.views.printing import document_print
from documents.views.quotes import quote_action, quote_create, quote_delete, quote_detail, quote_edit, quote_list

app_name = "documents"

urlpatterns = [
    path("devis/", quote_list, name="quote-list"),
    path("devis/nouveau/", quote_create, name="quote-create"),
    path("devis/<int:pk>/", quote_detail, name="quote-detail"),
    path("devis/<int:pk>/modifier/", quote_edit, name="quote-edit"),
    path("devis/<int:pk>/action/", quote_action, name="quote-action"),
    path("devis/<int:pk>/supprimer/", quote_delete, name="quote-delete"),

    path("factures/", invoice_list, name="invoice-list"),
    path("factures/nouvelle/", invoice_create, name="invoice-create"),
    path("factures/<int:pk>/", invoice_detail, name="invoice-detail"),
    path("factures/<int:pk>/modifier/", invoice_edit, name="invoice-edit"),
    path("factures/<int:pk>/action/", invoice_action, name="invoice-action"),
    path("factures/<int:pk>/paiement/", invoice_payment_add, name="invoice-payment-add"),
    path("factures/<int:pk>/supprimer/", invoice_delete, name="invoice-delete"),
    path("paiements/<int:pk>/supprimer/", payment_delete, name="payment-delete"),

    path("achats/", bill_list, name="bill-list"),
    path("achats/nouvelle/", bill_edit, name="bill-create"),
    path("achats/<int:pk>/", bill_detail, name="bill-detail"),
    path("achats/<int:pk>/modifier/", bill_edit, name="bill-edit"),
    path("achats/<int:pk>/action/", bill_action, name="bill-action"),
    path("achats/<int:pk>/paiement/", bill_payment_add, name="bill-payment-add"),
    path("achats/<int:pk>/supprimer/", bill_delete, name="bill-delete"),

    path("imprimer/<str:kind>/<int:pk>/", document_print, name="document-print"),
]
