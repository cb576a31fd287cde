import logging

from django.db import transaction
from django_fsm import can_proceed

logger = logging.getLogger(__name__)


def get_filtered(request, organization, model, filter_form_class):
    filter_form = filter_form_class(request.GET or None, organization=organization, model=model)
    qs = (
        model.objects
        .filter(organization=organization)
        .select_related("contact")
        .order_by("-date", "-id")
    )
    return filter_form, filter_form.apply(qs)


def save_document(request, form, formset):
    """Save header + lines and recompute totals in one transaction.

    `form` and `formset` must already be valid.
    """
    with transaction.atomic():
        doc = form.save(commit=False)
        if not doc.pk:
            doc.created_by = request.user
        doc.save()
        form.save_m2m()

        formset.instance = doc
        formset.save()

        doc.recalc_totals()
    return doc


def run_transition(doc, action: str, allowed: tuple, by=None):
    """Run an FSM transition by name (only the names listed in `allowed`)."""
    if action not in allowed:
        raise ValueError("Action inconnue.")
    method = getattr(doc, action)
    if not can_proceed(method):
        raise ValueError("Action impossible depuis le statut actuel.")
    with transaction.atomic():
        method(by=by)
        doc.save()
    logger.info("%s %s: %s -> %s", doc._meta.model_name, doc.number, action, doc.state)
