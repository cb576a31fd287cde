from django.urls import path

from . import views

app_name = "dashboard"

urlpatterns = [
    path("", views.home, name="home"),
    path("tableau-de-bord/disposition/", views.save_layout, name="save-layout"),
    path("tableau-de-bord/reinitialiser/", views.reset_layout, name="reset-layout"),
]
