# bankmatch/models/__init__.py

from bankmatch.models.transaction import (
    BankTransaction,
    TransactionStatus,
)
from bankmatch.models.invoice import (
    CLOSED_INVOICE_STATUSES,
    Contact,
    ContactBankAccount,
    Invoice,
    InvoiceType,
)
from bankmatch.models.match import (
    AutoMatchDetail,
    AutoMatchResult,
    ConfidenceBreakdown,
    MatchCandidate,
    MatchResult,
    SkippedTransaction,
    SkipReason,
)

__all__ = [
    # Transaction
    "BankTransaction",
    "TransactionStatus",
    # Invoice
    "CLOSED_INVOICE_STATUSES",
    "Contact",
    "ContactBankAccount",
    "Invoice",
    "InvoiceType",
    # Match
    "AutoMatchDetail",
    "AutoMatchResult",
    "ConfidenceBreakdown",
    "MatchCandidate",
    "MatchResult",
    "SkippedTransaction",
    "SkipReason",
]
