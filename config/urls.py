from django.contrib import admin
from django.urls import include, path
from django.conf.urls.static import static
from django.conf import settings

admin.autodiscover()

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("dashboard.urls")),
    path("", include("core.urls")),
    path("contacts/", include("contacts.urls")),
    path("", include("documents.urls")),
    path("banque/", include("bankrec.urls")),
    path("prospects/", include("crm.urls")),
    path("rappels/", include("reminders.urls")),
    path("commissions/", include("commissions.urls")),
]

urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
