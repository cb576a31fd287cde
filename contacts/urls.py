from django.urls import path

from contacts.views.contacts import contact_delete, contact_detail, contact_edit, contact_list
from contacts.views.items import item_delete, item_edit, item_list

app_name = "contacts"

urlpatterns = [
    path("", contact_list, name="contact-list"),
    path("<int:pk>/", contact_detail, name="contact-detail"),
    path("<int:pk>/modifier/", contact_edit, name="contact-edit"),
    path("<int:pk>/supprimer/", contact_delete, name="contact-delete"),

    path("articles/", item_list, name="item-list"),
    path("articles/<int:pk>/", item_edit, name="item-edit"),
    path("articles/<int:pk>/supprimer/", item_delete, name="item-delete"),
]
