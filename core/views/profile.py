from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.db import transaction
from django.shortcuts import render, redirect

from core.forms.profile_forms import UserEditForm, UserProfileEditForm
from core.permissions import get_organization


@login_required
def profile_edit(request):
    organization = get_organization(request)
    profile = request.user.profile

    if request.method == "POST":
        user_form = UserEditForm(request.POST, instance=request.user)
        profile_form = UserProfileEditForm(request.POST, instance=profile)

        if user_form.is_valid() and profile_form.is_valid():
            with transaction.atomic():
                user_form.save()
                profile_form.save()

            messages.success(request, "Profil mis à jour.")
            return redirect("core:profile")
    else:
        user_form = UserEditForm(instance=request.user)
        profile_form = UserProfileEditForm(instance=profile)

    return render(request, "core/profile_edit.html", {
        "user_form": user_form,
        "profile_form": profile_form,
        "profile": profile,
        "organization": organization,
    })
