"""Admin mixins to keep admin code simple and consistent."""

from core.models import Organization
from core.permissions import assign_object_perms_to_user, assign_object_perms_to_organization_admins


class OrganizationScopedAdminMixin:
    """Mixin: after save, assign guardian permissions for visibility.

    This avoids relying on signals (signals don't know the request.user).
    """

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)

        organization = getattr(obj, "organization", None)
        if organization is not None:
            assign_object_perms_to_user(request.user, obj)
            assign_object_perms_to_organization_admins(organization, obj)

    def get_queryset(self, request):
        """Superusers see everything, everybody else only their organization."""
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        profile = getattr(request.user, "profile", None)
        if not profile:
            return qs.none()
        if hasattr(qs.model, "organization_id"):
            return qs.filter(organization=profile.organization)
        return qs

    def get_changeform_initial_data(self, request):
        initial = super().get_changeform_initial_data(request)
        profile = getattr(request.user, "profile", None)
        if profile and profile.organization_id:
            initial.setdefault("organization", profile.organization_id)
        return initial

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        if db_field.name == "organization" and not request.user.is_superuser:
            profile = getattr(request.user, "profile", None)
            if profile:
                kwargs["queryset"] = Organization.objects.filter(pk=profile.organization_id)
        return super().formfield_for_foreignkey(db_field, request, **kwargs)
