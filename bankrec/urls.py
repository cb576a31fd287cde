from django.urls import path

from . import views

app_name = "bankrec"

urlpatterns = [
    path("", views.transaction_list, name="transaction-list"),
    path("comptes/", views.bank_account_list, name="account-list"),
    path("import/", views.statement_import, name="statement-import"),
    path("transactions/nouvelle/", views.transaction_create, name="transaction-create"),
    path("transactions/<int:pk>/supprimer/", views.transaction_delete, name="transaction-delete"),
    path("transactions/<int:pk>/rapprocher/", views.reconcile_view, name="reconcile"),
    path("transactions/<int:pk>/suggestions/", views.suggestions_json, name="suggestions"),
    path("transactions/<int:pk>/annuler/", views.transaction_unreconcile, name="unreconcile"),
]
