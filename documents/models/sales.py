from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, RETURN_VALUE, transition
from django_fsm_log.decorators import fsm_log_by
from simple_history.models import HistoricalRecords

from documents.models.base import CommercialDocument, DocumentLine, PayableDocument


class Quote(CommercialDocument):
    """Quote (devis) with state machine.

    The number (DEV-00001) is allocated on first save. An accepted quote can be turned
    into an invoice once; the link is kept in both directions.
    """

    number_series_field = "quote_series"

    class State(models.TextChoices):
        DRAFT = "draft", "Brouillon"
        SENT = "sent", "Envoyé"
        VIEWED = "viewed", "Consulté"
        ACCEPTED = "accepted", "Accepté"
        REJECTED = "rejected", "Refusé"
        EXPIRED = "expired", "Expiré"

    state = FSMField(default=State.DRAFT, choices=State.choices, protected=True)

    title = models.CharField(max_length=255, blank=True, default="")
    valid_until = models.DateField(null=True, blank=True)
    terms = models.TextField(blank=True, default="")

    salesperson = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="quotes")
    prospect = models.ForeignKey("crm.Prospect", null=True, blank=True, on_delete=models.SET_NULL, related_name="quotes")

    sent_at = models.DateTimeField(null=True, blank=True)
    accepted_at = models.DateTimeField(null=True, blank=True)

    history = HistoricalRecords()

    class Meta(CommercialDocument.Meta):
        indexes = [
            models.Index(fields=["organization", "state", "date"]),
            models.Index(fields=["organization", "number"]),
        ]

    def save(self, *args, **kwargs):
        if not self.valid_until and self.date:
            self.valid_until = self.date + timedelta(days=30)
        super().save(*args, **kwargs)

    @property
    def is_converted(self) -> bool:
        return hasattr(self, "invoice") and self.invoice is not None

    @property
    def is_editable(self) -> bool:
        return self.state in (self.State.DRAFT, self.State.SENT)

    @fsm_log_by
    @transition(field=state, source=State.DRAFT, target=State.SENT)
    def send(self, by=None):
        self._ensure_lines()
        self.sent_at = timezone.now()

    @fsm_log_by
    @transition(field=state, source=State.SENT, target=State.VIEWED)
    def mark_viewed(self, by=None):
        pass

    @fsm_log_by
    @transition(field=state, source=[State.DRAFT, State.SENT, State.VIEWED], target=State.ACCEPTED)
    def accept(self, by=None):
        self._ensure_lines()
        self.accepted_at = timezone.now()

    @fsm_log_by
    @transition(field=state, source=[State.SENT, State.VIEWED], target=State.REJECTED)
    def reject(self, by=None):
        pass

    @fsm_log_by
    @transition(field=state, source=[State.SENT, State.VIEWED], target=State.EXPIRED)
    def expire(self, by=None):
        pass


class QuoteLine(DocumentLine):
    parent_field = "quote"

    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name="lines")

    class Meta(DocumentLine.Meta):
        pass


class Invoice(PayableDocument):
    """Invoice (facture) with state machine.

    Payment states are never set by hand: `sync_payment_state` derives them from
    amount_paid after every recorded or reversed payment.
    """

    number_series_field = "invoice_series"

    class State(models.TextChoices):
        DRAFT = "draft", "Brouillon"
        SENT = "sent", "Envoyée"
        VIEWED = "viewed", "Consultée"
        PARTIALLY_PAID = "partially_paid", "Partiellement payée"
        PAID = "paid", "Payée"
        OVERDUE = "overdue", "En retard"
        CANCELLED = "cancelled", "Annulée"

    OPEN_STATES = (State.SENT, State.VIEWED, State.PARTIALLY_PAID, State.OVERDUE)

    state = FSMField(default=State.DRAFT, choices=State.choices, protected=True)

    title = models.CharField(max_length=255, blank=True, default="")
    terms = models.TextField(blank=True, default="")

    quote = models.OneToOneField(Quote, null=True, blank=True, on_delete=models.SET_NULL, related_name="invoice")
    salesperson = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="invoices")

    sent_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    history = HistoricalRecords()

    class Meta(PayableDocument.Meta):
        indexes = [
            models.Index(fields=["organization", "state", "date"]),
            models.Index(fields=["organization", "number"]),
            models.Index(fields=["organization", "due_date"]),
        ]

    def save(self, *args, **kwargs):
        if not self.due_date and self.date and self.contact_id:
            self.due_date = self.date + timedelta(days=self.contact.payment_terms_days())
        super().save(*args, **kwargs)

    @property
    def is_editable(self) -> bool:
        return self.state == self.State.DRAFT

    def is_overdue_on(self, day) -> bool:
        return bool(self.due_date and self.due_date < day and self.state in self.OPEN_STATES and self.remaining > 0)

    @fsm_log_by
    @transition(field=state, source=State.DRAFT, target=State.SENT)
    def send(self, by=None):
        self._ensure_lines()
        self.sent_at = timezone.now()

    @fsm_log_by
    @transition(field=state, source=State.SENT, target=State.VIEWED)
    def mark_viewed(self, by=None):
        pass

    @fsm_log_by
    @transition(field=state, source=[State.SENT, State.VIEWED, State.PARTIALLY_PAID], target=State.OVERDUE)
    def mark_overdue(self, by=None):
        pass

    @fsm_log_by
    @transition(
        field=state,
        source=[State.DRAFT, State.SENT, State.VIEWED, State.OVERDUE],
        target=State.CANCELLED,
        conditions=[lambda doc: doc.amount_paid == 0],
    )
    def cancel(self, by=None):
        self.cancelled_at = timezone.now()

    @fsm_log_by
    @transition(
        field=state,
        source=[State.DRAFT, State.SENT, State.VIEWED, State.PARTIALLY_PAID, State.PAID, State.OVERDUE],
        target=RETURN_VALUE(State.SENT, State.PARTIALLY_PAID, State.PAID),
    )
    def sync_payment_state(self, by=None):
        new_state = self.payment_state(unpaid_state=self.State.SENT)
        if new_state == self.State.PAID:
            self.paid_at = self.paid_at or timezone.now()
        else:
            self.paid_at = None
        return new_state


class InvoiceLine(DocumentLine):
    parent_field = "invoice"

    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="lines")

    class Meta(DocumentLine.Meta):
        pass
