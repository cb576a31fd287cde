from django.urls import path

from . import views

app_name = "reminders"

urlpatterns = [
    path("", views.reminder_list, name="reminder-list"),
    path("<int:pk>/terminer/", views.reminder_complete, name="reminder-complete"),
    path("<int:pk>/supprimer/", views.reminder_delete, name="reminder-delete"),
    path("notifications/", views.notification_list, name="notification-list"),
    path("notifications/lues/", views.notification_read, name="notification-read-all"),
    path("notifications/<int:pk>/lue/", views.notification_read, name="notification-read"),
    path("regles/", views.rule_list, name="rule-list"),
    path("regles/executer/", views.rules_run, name="rule-run"),
    path("regles/<int:pk>/", views.rule_edit, name="rule-edit"),
    path("regles/<int:pk>/supprimer/", views.rule_delete, name="rule-delete"),
]
