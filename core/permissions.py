"""Guardian helpers and role checks for 'organization visibility'.

Goal:
- When an object is created/edited from admin, assign object-level permissions to:
  * the current user
  * all organization admins (UserProfile.is_organization_admin=True)
- Front views are scoped by organization and guarded by the profile role.

We keep this explicit and readable. No magic signal that tries to infer the user.
"""

from functools import wraps

from django.contrib import messages
from django.core.exceptions import PermissionDenied
from django.shortcuts import redirect
from guardian.shortcuts import assign_perm

from core.models import UserProfile

DEFAULT_PERMS = ("view", "change", "delete")


def assign_object_perms_to_user(user, obj, perms=DEFAULT_PERMS):
    """Assign view/change/delete perms for obj to a user."""
    if not user or not user.is_authenticated:
        return
    app_label = obj._meta.app_label
    model_name = obj._meta.model_name
    for p in perms:
        assign_perm(f"{app_label}.{p}_{model_name}", user, obj)


def assign_object_perms_to_organization_admins(organization, obj, perms=DEFAULT_PERMS):
    """Assign perms for obj to all users marked as organization admin."""
    qs = UserProfile.objects.filter(organization=organization, is_organization_admin=True).select_related("user")
    for prof in qs:
        assign_object_perms_to_user(prof.user, obj, perms=perms)


def get_organization(request):
    """Organization of the logged-in user (PermissionDenied when the user has no profile)."""
    profile = getattr(request.user, "profile", None)
    if profile is None:
        raise PermissionDenied("Aucune organisation associée à cet utilisateur.")
    return profile.organization


def user_has_role(user, *roles) -> bool:
    if user.is_superuser:
        return True
    profile = getattr(user, "profile", None)
    return bool(profile and profile.has_role(*roles))


def role_required(*roles, redirect_to="dashboard:home"):
    """View decorator: only users with one of the roles (or organization admins) may pass."""

    def decorator(view):
        @wraps(view)
        def wrapped(request, *args, **kwargs):
            if not user_has_role(request.user, *roles):
                messages.error(request, "Vous n'avez pas les droits nécessaires pour cette action.")
                return redirect(redirect_to)
            return view(request, *args, **kwargs)

        return wrapped

    return decorator
