from datetime import timedelta

from django.db import models
from django.utils import timezone
from django_fsm import FSMField, RETURN_VALUE, transition
from django_fsm_log.decorators import fsm_log_by
from simple_history.models import HistoricalRecords

from documents.models.base import DocumentLine, PayableDocument


class Bill(PayableDocument):
    """Supplier invoice (facture fournisseur).

    `number` is our internal number (ACH-00001); `supplier_reference` is the number
    printed by the supplier.
    """

    number_series_field = "bill_series"

    class State(models.TextChoices):
        DRAFT = "draft", "Brouillon"
        RECEIVED = "received", "Reçue"
        PARTIALLY_PAID = "partially_paid", "Partiellement payée"
        PAID = "paid", "Payée"
        OVERDUE = "overdue", "En retard"
        CANCELLED = "cancelled", "Annulée"

    OPEN_STATES = (State.RECEIVED, State.PARTIALLY_PAID, State.OVERDUE)

    state = FSMField(default=State.DRAFT, choices=State.choices, protected=True)

    supplier_reference = models.CharField(max_length=100, blank=True, default="")

    history = HistoricalRecords()

    class Meta(PayableDocument.Meta):
        indexes = [
            models.Index(fields=["organization", "state", "date"]),
        ]

    def save(self, *args, **kwargs):
        if not self.due_date and self.date and self.contact_id:
            self.due_date = self.date + timedelta(days=self.contact.payment_terms_days())
        super().save(*args, **kwargs)

    @property
    def is_editable(self) -> bool:
        return self.state in (self.State.DRAFT, self.State.RECEIVED) and self.amount_paid == 0

    def is_overdue_on(self, day) -> bool:
        return bool(self.due_date and self.due_date < day and self.state in self.OPEN_STATES and self.remaining > 0)

    @fsm_log_by
    @transition(field=state, source=State.DRAFT, target=State.RECEIVED)
    def receive(self, by=None):
        self._ensure_lines()

    @fsm_log_by
    @transition(field=state, source=[State.RECEIVED, State.PARTIALLY_PAID], target=State.OVERDUE)
    def mark_overdue(self, by=None):
        pass

    @fsm_log_by
    @transition(
        field=state,
        source=[State.DRAFT, State.RECEIVED, State.OVERDUE],
        target=State.CANCELLED,
        conditions=[lambda doc: doc.amount_paid == 0],
    )
    def cancel(self, by=None):
        pass

    @fsm_log_by
    @transition(
        field=state,
        source=[State.DRAFT, State.RECEIVED, State.PARTIALLY_PAID, State.PAID, State.OVERDUE],
        target=RETURN_VALUE(State.RECEIVED, State.PARTIALLY_PAID, State.PAID),
    )
    def sync_payment_state(self, by=None):
        new_state = self.payment_state(unpaid_state=self.State.RECEIVED)
        if new_state == self.State.PAID:
            self.paid_at = self.paid_at or timezone.now()
        else:
            self.paid_at = None
        return new_state


class BillLine(DocumentLine):
    parent_field = "bill"

    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name="lines")

    class Meta(DocumentLine.Meta):
        pass
