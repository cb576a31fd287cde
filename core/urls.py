from django.urls import path

from core.views.organization import organization_settings
from core.views.profile import profile_edit

app_name = "core"

urlpatterns = [
    path("profil/", profile_edit, name="profile"),
    path("parametres/", organization_settings, name="organization-settings"),
]
