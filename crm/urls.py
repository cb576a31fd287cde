from django.urls import path

from crm.views import csv_io, maps, prospects

app_name = "crm"

urlpatterns = [
    path("", prospects.prospect_list, name="prospect-list"),
    path("nouveau/", prospects.prospect_create, name="prospect-create"),
    path("doublons/", prospects.duplicates_json, name="duplicates"),
    path("carte/", maps.prospect_map, name="prospect-map"),
    path("carte/marqueurs/", maps.markers_json, name="map-markers"),
    path("adresses/", maps.address_search_json, name="address-search"),
    path("export/", csv_io.prospect_export, name="prospect-export"),
    path("import/", csv_io.prospect_import, name="prospect-import"),
    path("import/modele/", csv_io.prospect_template, name="prospect-template"),
    path("<int:pk>/", prospects.prospect_detail, name="prospect-detail"),
    path("<int:pk>/modifier/", prospects.prospect_edit, name="prospect-edit"),
    path("<int:pk>/supprimer/", prospects.prospect_delete, name="prospect-delete"),
    path("<int:pk>/statut/", prospects.prospect_status, name="prospect-status"),
    path("<int:pk>/visites/", prospects.visit_add, name="visit-add"),
    path("<int:pk>/interlocuteurs/", prospects.contact_add, name="contact-add"),
    path("<int:pk>/interlocuteurs/<int:contact_pk>/supprimer/", prospects.contact_delete, name="contact-delete"),
    path("<int:pk>/notes/", prospects.note_add, name="note-add"),
    path("<int:pk>/convertir/", prospects.prospect_convert, name="prospect-convert"),
    path("<int:pk>/geocoder/", prospects.prospect_geocode, name="prospect-geocode"),
]
