import logging

from django.db import transaction
from django.utils import timezone

from documents.models import Bill, Invoice

logger = logging.getLogger(__name__)


@transaction.atomic
def mark_overdue_documents(organization=None, today=None, by=None) -> int:
    """Flag open invoices and bills whose due date has passed. Returns the number flagged."""
    today = today or timezone.localdate()
    count = 0

    for model in (Invoice, Bill):
        qs = model.objects.select_for_update().filter(
            state__in=[s for s in model.OPEN_STATES if s != model.State.OVERDUE],
            due_date__lt=today,
        )
        if organization is not None:
            qs = qs.filter(organization=organization)

        for doc in qs:
            if doc.remaining <= 0:
                continue
            doc.mark_overdue(by=by)
            doc.save()
            count += 1

    if count:
        logger.info("%d document(s) marked overdue", count)
    return count
