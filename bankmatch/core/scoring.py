# bankmatch/core/scoring.py

"""
Match scoring between bank transactions and open invoices.

Scoring breakdown (0-100 points, confidence = points / 100):
- Variable symbol: 50 points
- Amount:          30 points (transaction amount settles the remaining balance)
- IBAN:            10 points (counterparty account is on file for the contact)
- Name:            10 points (counterparty name contains the contact name)

No combination of weak signals reaches the auto-match threshold (0.90);
it takes the variable symbol and the amount plus the IBAN or the name.
"""

from dataclasses import dataclass, field

from bankmatch.models import (
    BankTransaction,
    ConfidenceBreakdown,
    Contact,
    ContactBankAccount,
    Invoice,
    MatchCandidate,
    MatchResult,
)
from bankmatch.core.normalizers import normalize_iban, normalize_name, normalize_reference
from bankmatch.config import get_settings

settings = get_settings()

REFERENCE_POINTS = 50
AMOUNT_POINTS = 30
ACCOUNT_POINTS = 10
NAME_POINTS = 10
MAX_POINTS = 100

AUTO_MATCH_THRESHOLD = settings.auto_match_threshold  # 0.90
MAX_CANDIDATES = settings.max_match_candidates  # 5
AMOUNT_TOLERANCE = settings.amount_tolerance  # 0.01


@dataclass(frozen=True)
class MatchContext:
    """Contact lookups shared by every transaction scored in one request."""

    contacts: dict[str, Contact] = field(default_factory=dict)
    contact_ibans: dict[str, frozenset[str]] = field(default_factory=dict)

    def contact_name(self, contact_id: str | None) -> str:
        contact = self.contacts.get(contact_id) if contact_id else None
        return contact.name if contact else ""


def build_match_context(
    contacts: list[Contact],
    contact_bank_accounts: list[ContactBankAccount],
) -> MatchContext:
    """Index contacts by id and their IBANs (normalized) by contact id."""
    contact_map = {contact.id: contact for contact in contacts}

    ibans: dict[str, set[str]] = {}
    for account in contact_bank_accounts:
        iban = normalize_iban(account.iban)
        if iban:
            ibans.setdefault(account.contact_id, set()).add(iban)

    return MatchContext(
        contacts=contact_map,
        contact_ibans={contact_id: frozenset(values) for contact_id, values in ibans.items()},
    )


def find_matches(
    transaction: BankTransaction,
    invoices: list[Invoice],
    contacts: list[Contact],
    contact_bank_accounts: list[ContactBankAccount],
) -> MatchResult:
    """
    Find and rank invoice candidates for a single bank transaction.

    Pure: builds its own lookups and never touches the inputs.
    """
    context = build_match_context(contacts, contact_bank_accounts)
    return score_transaction(transaction, invoices, context)


def find_matches_for_all(
    transactions: list[BankTransaction],
    invoices: list[Invoice],
    contacts: list[Contact],
    contact_bank_accounts: list[ContactBankAccount],
) -> list[MatchResult]:
    """Find matches for every transaction, sharing one lookup context."""
    context = build_match_context(contacts, contact_bank_accounts)
    return [score_transaction(t, invoices, context) for t in transactions]


def score_transaction(
    transaction: BankTransaction,
    invoices: list[Invoice],
    context: MatchContext,
) -> MatchResult:
    """
    Rank eligible invoices for a transaction using a prebuilt context.

    Candidates are sorted by descending confidence; equal confidences keep
    the order the invoices were given in.
    """
    candidates: list[MatchCandidate] = []

    for invoice in eligible_invoices(transaction, invoices):
        breakdown = calculate_confidence(transaction, invoice, context)
        if breakdown.total <= 0:
            continue

        candidates.append(MatchCandidate(
            invoice_id=invoice.id,
            invoice_number=invoice.number,
            contact_name=context.contact_name(invoice.contact_id),
            total=invoice.total,
            remaining=invoice.remaining,
            confidence=min(breakdown.total, MAX_POINTS) / MAX_POINTS,
            match_reason=", ".join(breakdown.factors),
            breakdown=breakdown,
        ))

    candidates.sort(key=lambda c: c.confidence, reverse=True)
    top = candidates[:MAX_CANDIDATES]
    best = top[0] if top else None

    return MatchResult(
        transaction_id=transaction.id,
        candidates=top,
        best_match=best,
        auto_match=best is not None and is_auto_match(best.confidence),
    )


def is_auto_match(confidence: float) -> bool:
    """Return True if a confidence is high enough to commit without review."""
    return confidence >= AUTO_MATCH_THRESHOLD


def eligible_invoices(transaction: BankTransaction, invoices: list[Invoice]) -> list[Invoice]:
    """
    Filter invoices a transaction may settle.

    Credits (inflows) settle issued invoices, debits (outflows) settle
    received invoices. Paid and cancelled invoices are never eligible.
    """
    if transaction.is_credit:
        direction = "issued"
    elif transaction.is_debit:
        direction = "received"
    else:
        return []

    return [inv for inv in invoices if inv.type == direction and inv.is_open]


def calculate_confidence(
    transaction: BankTransaction,
    invoice: Invoice,
    context: MatchContext,
) -> ConfidenceBreakdown:
    """
    Calculate match confidence between a transaction and one invoice.

    Returns a ConfidenceBreakdown with per-signal points and human-readable factors.
    """
    factors: list[str] = []

    reference_score = _score_reference(transaction.variable_symbol, invoice.variable_symbol, factors)
    amount_score = _score_amount(transaction.amount, invoice.remaining, factors)
    account_score = _score_account(
        transaction.counterparty_iban,
        context.contact_ibans.get(invoice.contact_id, frozenset()) if invoice.contact_id else frozenset(),
        factors,
    )
    name_score = _score_name(
        transaction.counterparty_name,
        context.contact_name(invoice.contact_id),
        factors,
    )

    total = min(reference_score + amount_score + account_score + name_score, MAX_POINTS)

    return ConfidenceBreakdown(
        reference_score=reference_score,
        amount_score=amount_score,
        account_score=account_score,
        name_score=name_score,
        total=total,
        factors=factors,
    )


def _score_reference(tx_reference: str | None, invoice_reference: str | None, factors: list[str]) -> int:
    """Score based on variable symbol equality (0 or 50 points)."""
    tx_vs = normalize_reference(tx_reference)
    invoice_vs = normalize_reference(invoice_reference)

    if tx_vs and invoice_vs and tx_vs == invoice_vs:
        factors.append("Variable symbol match")
        return REFERENCE_POINTS
    return 0


def _score_amount(tx_amount: float, remaining: float, factors: list[str]) -> int:
    """Score based on the transaction settling the remaining balance (0 or 30 points)."""
    if remaining > 0 and abs(abs(tx_amount) - remaining) < AMOUNT_TOLERANCE:
        factors.append("Amount matches remaining balance")
        return AMOUNT_POINTS
    return 0


def _score_account(tx_iban: str | None, contact_ibans: frozenset[str], factors: list[str]) -> int:
    """Score based on the counterparty IBAN being on file for the contact (0 or 10 points)."""
    iban = normalize_iban(tx_iban)

    if iban and iban in contact_ibans:
        factors.append("Counterparty IBAN match")
        return ACCOUNT_POINTS
    return 0


def _score_name(tx_name: str | None, contact_name: str | None, factors: list[str]) -> int:
    """Score based on the counterparty name containing the contact name (0 or 10 points)."""
    counterparty = normalize_name(tx_name)
    contact = normalize_name(contact_name)

    if counterparty and contact and contact in counterparty:
        factors.append("Counterparty name match")
        return NAME_POINTS
    return 0
