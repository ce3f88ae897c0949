# bankmatch/core/auto_match.py

"""
Auto-matching of bank transactions to open invoices.

Loads a batch of unmatched transactions for a company, scores each one
against the company's open invoices and commits only the matches that
clear the auto-match threshold. Everything else stays unmatched for
human review.
"""

import logging
from datetime import datetime
from typing import Optional, TypeVar

from pydantic import BaseModel, ValidationError

from bankmatch.models import (
    AutoMatchDetail,
    AutoMatchResult,
    BankTransaction,
    Contact,
    ContactBankAccount,
    Invoice,
    MatchResult,
    SkippedTransaction,
)
from bankmatch.core.scoring import MatchContext, build_match_context, score_transaction
from bankmatch.database import MatchingStore, StoreError
from bankmatch.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

ModelT = TypeVar("ModelT", bound=BaseModel)


async def run_auto_matching(
    store: MatchingStore,
    company_id: str,
    user_id: Optional[str],
    bank_account_id: Optional[str] = None,
) -> AutoMatchResult:
    """
    Run auto-matching for one company.

    user_id is recorded as the author of committed links (None for scheduled runs).

    1. Load up to `auto_match_batch_limit` unmatched transactions
    2. Load open invoices, contacts and contact IBANs once
    3. Score each transaction independently
    4. Commit the best match when it clears the threshold

    Store failures while loading propagate; failures for a single
    transaction are recorded in `skipped` and the run carries on.
    """
    start_time = datetime.now()
    result = AutoMatchResult()

    # ============================================
    # Load the batch
    # ============================================
    transaction_rows = await store.get_unmatched_transactions(
        company_id,
        bank_account_id=bank_account_id,
        limit=settings.auto_match_batch_limit,
    )

    if not transaction_rows:
        logger.info(f"Auto-match company={company_id}: no unmatched transactions")
        return result

    invoices = validate_rows(Invoice, await store.get_open_invoices(company_id), "invoice")

    if not invoices:
        logger.info(
            f"Auto-match company={company_id}: no open invoices, "
            f"{len(transaction_rows)} transactions left unmatched"
        )
        result.unmatched = len(transaction_rows)
        return result

    context = await load_match_context(store, company_id)

    # ============================================
    # Score and commit, one transaction at a time
    # ============================================
    claimed_invoice_ids: set[str] = set()

    for row in transaction_rows:
        transaction_id = _row_id(row)

        outcome = _match_transaction(transaction_id, row, invoices, context)
        if isinstance(outcome, SkippedTransaction):
            _skip(result, outcome)
            continue

        if not outcome.auto_match or outcome.best_match is None:
            continue

        best = outcome.best_match
        if best.invoice_id in claimed_invoice_ids:
            _skip(result, SkippedTransaction(
                transaction_id=transaction_id,
                reason="invoice_already_claimed",
                detail=f"Invoice {best.invoice_id} was matched earlier in this run",
            ))
            continue

        try:
            committed = await store.mark_transaction_matched(transaction_id, best.invoice_id, user_id)
        except StoreError as e:
            _skip(result, SkippedTransaction(
                transaction_id=transaction_id,
                reason="persist_failed",
                detail=str(e),
            ))
            continue

        if not committed:
            _skip(result, SkippedTransaction(
                transaction_id=transaction_id,
                reason="transaction_changed",
                detail="Transaction is no longer unmatched",
            ))
            continue

        claimed_invoice_ids.add(best.invoice_id)
        result.details.append(AutoMatchDetail(
            transaction_id=transaction_id,
            invoice_id=best.invoice_id,
            confidence=best.confidence,
        ))
        logger.info(
            f"Auto-matched transaction {transaction_id} to invoice {best.invoice_id} "
            f"({best.confidence:.2f}: {best.match_reason})"
        )

    result.matched = len(result.details)
    result.unmatched = len(transaction_rows) - result.matched

    duration_ms = int((datetime.now() - start_time).total_seconds() * 1000)
    logger.info(
        f"Auto-match company={company_id}: {result.matched} matched, "
        f"{result.unmatched} unmatched, {len(result.skipped)} skipped in {duration_ms}ms"
    )

    return result


async def preview_matches(
    store: MatchingStore,
    company_id: str,
    bank_account_id: Optional[str] = None,
) -> list[MatchResult]:
    """Score every unmatched transaction of a company without writing anything."""
    transaction_rows = await store.get_unmatched_transactions(
        company_id,
        bank_account_id=bank_account_id,
        limit=settings.auto_match_batch_limit,
    )
    if not transaction_rows:
        return []

    transactions = validate_rows(BankTransaction, transaction_rows, "bank transaction")
    context = await load_match_context(store, company_id)
    invoices = validate_rows(Invoice, await store.get_open_invoices(company_id), "invoice")

    return [score_transaction(t, invoices, context) for t in transactions]


async def load_match_context(store: MatchingStore, company_id: str) -> MatchContext:
    """Load and index a company's contacts and contact IBANs."""
    contacts = validate_rows(Contact, await store.get_contacts(company_id), "contact")
    accounts = validate_rows(
        ContactBankAccount,
        await store.get_contact_bank_accounts(company_id),
        "contact bank account",
    )
    return build_match_context(contacts, accounts)


def _match_transaction(
    transaction_id: str,
    row: dict,
    invoices: list[Invoice],
    context: MatchContext,
) -> MatchResult | SkippedTransaction:
    """Validate and score one transaction row."""
    try:
        transaction = BankTransaction.model_validate(row)
    except ValidationError as e:
        return SkippedTransaction(
            transaction_id=transaction_id,
            reason="invalid_record",
            detail=f"{e.error_count()} invalid field(s)",
        )

    if not transaction.is_eligible:
        return SkippedTransaction(
            transaction_id=transaction_id,
            reason="not_eligible",
            detail=f"Status is {transaction.status}",
        )

    try:
        return score_transaction(transaction, invoices, context)
    except Exception as e:
        return SkippedTransaction(
            transaction_id=transaction_id,
            reason="scoring_failed",
            detail=f"{type(e).__name__}: {e}",
        )


def _skip(result: AutoMatchResult, skipped: SkippedTransaction) -> None:
    logger.warning(
        f"Skipped transaction {skipped.transaction_id}: {skipped.reason}"
        + (f" ({skipped.detail})" if skipped.detail else "")
    )
    result.skipped.append(skipped)


def validate_rows(model: type[ModelT], rows: list[dict], label: str) -> list[ModelT]:
    """Validate store rows into models, dropping (and logging) malformed ones."""
    valid: list[ModelT] = []
    for row in rows:
        try:
            valid.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Ignoring malformed {label} {_row_id(row) or '<no id>'}: {e.error_count()} invalid field(s)")
    return valid


def _row_id(row) -> str:
    row_id = row.get("id") if isinstance(row, dict) else None
    return "" if row_id is None else str(row_id)
