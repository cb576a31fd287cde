from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.db.models.deletion import ProtectedError
from django.shortcuts import render, redirect, get_object_or_404
from django.views.decorators.http import require_POST

from contacts.forms.item_forms import ItemForm
from contacts.models import Item
from core.permissions import get_organization


@login_required
def item_list(request):
    organization = get_organization(request)

    if request.method == "POST":
        form = ItemForm(request.POST, organization=organization)
        if form.is_valid():
            item = form.save()
            messages.success(request, f"Article créé : {item.name}")
            return redirect("contacts:item-list")
    else:
        form = ItemForm(organization=organization)

    items = (
        Item.objects
        .filter(organization=organization)
        .select_related("tax_rate")
        .order_by("name")
    )

    return render(request, "contacts/item_list.html", {"items": items, "form": form})


@login_required
def item_edit(request, pk):
    organization = get_organization(request)
    item = get_object_or_404(Item, pk=pk, organization=organization)

    if request.method == "POST":
        form = ItemForm(request.POST, instance=item, organization=organization)
        if form.is_valid():
            form.save()
            messages.success(request, "Article mis à jour.")
            return redirect("contacts:item-list")
    else:
        form = ItemForm(instance=item, organization=organization)

    return render(request, "contacts/item_form.html", {"form": form, "item": item})


@login_required
@require_POST
def item_delete(request, pk):
    organization = get_organization(request)
    item = get_object_or_404(Item, pk=pk, organization=organization)
    name = item.name

    try:
        item.delete()
        messages.success(request, f"Article supprimé : {name}")
    except ProtectedError:
        messages.error(request, "Suppression impossible : l'article est utilisé sur des documents.")

    return redirect("contacts:item-list")
