from django.urls import path

from . import views

app_name = "commissions"

urlpatterns = [
    path("", views.commission_list, name="commission-list"),
    path("<int:pk>/<str:action>/", views.commission_action, name="commission-action"),
    path("regles/", views.rule_list, name="rule-list"),
    path("regles/<int:pk>/", views.rule_edit, name="rule-edit"),
    path("regles/<int:pk>/supprimer/", views.rule_delete, name="rule-delete"),
    path("objectifs/", views.target_list, name="target-list"),
    path("objectifs/<int:pk>/recalculer/", views.target_refresh, name="target-refresh"),
]
