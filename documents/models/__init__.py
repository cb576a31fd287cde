from .base import DocumentLine
from .sales import Quote, QuoteLine, Invoice, InvoiceLine
from .purchase import Bill, BillLine
from .payments import Payment
