# bankmatch/routers/bank_transactions.py

"""
Bank transaction matching routes.

Runs the matching engine for a company, shows ranked candidates for
review and lets a reviewer pair or unpair a transaction by hand.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ValidationError

from bankmatch.core.auto_match import (
    load_match_context,
    preview_matches,
    run_auto_matching,
    validate_rows,
)
from bankmatch.core.scoring import eligible_invoices, score_transaction
from bankmatch.database import MatchingStore, StoreError, get_matching_store
from bankmatch.dependencies import get_current_user
from bankmatch.models import (
    AutoMatchResult,
    BankTransaction,
    Invoice,
    MatchResult,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Request/Response Models
# ============================================

class MatchRequest(BaseModel):
    company_id: str
    bank_account_id: Optional[str] = None
    auto_pair: bool = False


class MatchResponse(BaseModel):
    matched: int
    unmatched: int
    results: list[MatchResult] = []
    run: Optional[AutoMatchResult] = None


class PairRequest(BaseModel):
    invoice_id: str


# ============================================
# Run matching
# ============================================

@router.post("/match", response_model=MatchResponse)
async def match_transactions(
    request: MatchRequest,
    user_id: str = Depends(get_current_user),
    store: MatchingStore = Depends(get_matching_store),
):
    """
    Match a company's unmatched transactions.

    Returns the ranked candidates of every unmatched transaction. With
    auto_pair the confident matches are committed first, so `results`
    shows what is left for review.
    """
    try:
        if request.auto_pair:
            run = await run_auto_matching(
                store,
                request.company_id,
                user_id,
                bank_account_id=request.bank_account_id,
            )
            results = await preview_matches(
                store,
                request.company_id,
                bank_account_id=request.bank_account_id,
            )
            return MatchResponse(matched=run.matched, unmatched=run.unmatched, results=results, run=run)

        results = await preview_matches(
            store,
            request.company_id,
            bank_account_id=request.bank_account_id,
        )
    except StoreError as e:
        raise HTTPException(status_code=502, detail=str(e))

    auto = len([r for r in results if r.auto_match])
    return MatchResponse(
        matched=auto,
        unmatched=len(results) - auto,
        results=results,
    )


# ============================================
# Candidates for review
# ============================================

@router.get("/{transaction_id}/candidates", response_model=MatchResult)
async def get_candidates(
    transaction_id: str,
    company_id: str = Query(..., description="Company owning the transaction"),
    user_id: str = Depends(get_current_user),
    store: MatchingStore = Depends(get_matching_store),
):
    """
    Get ranked invoice candidates for a single transaction.
    """
    try:
        transaction = await _load_transaction(store, transaction_id)
        if transaction.company_id != company_id:
            raise HTTPException(status_code=404, detail="Bank transaction not found")

        invoices = validate_rows(Invoice, await store.get_open_invoices(company_id), "invoice")
        context = await load_match_context(store, company_id)
    except StoreError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return score_transaction(transaction, invoices, context)


# ============================================
# Manual pairing
# ============================================

@router.post("/{transaction_id}/pair")
async def pair_transaction(
    transaction_id: str,
    request: PairRequest,
    user_id: str = Depends(get_current_user),
    store: MatchingStore = Depends(get_matching_store),
):
    """
    Pair a transaction with an invoice chosen by a reviewer.

    Only links the transaction; the invoice balance is settled when the
    pair is posted to the ledger.
    """
    try:
        transaction = await _load_transaction(store, transaction_id)

        if not transaction.is_eligible:
            raise HTTPException(
                status_code=400,
                detail=f"Transaction is already matched or posted. Current status: {transaction.status}",
            )

        invoice_row = await store.get_invoice(request.invoice_id)
        if not invoice_row:
            raise HTTPException(status_code=404, detail="Invoice not found")
        invoice = Invoice.model_validate(invoice_row)

        if invoice.company_id != transaction.company_id:
            raise HTTPException(status_code=404, detail="Invoice not found")

        if not invoice.is_open:
            raise HTTPException(status_code=400, detail="Invoice is already paid or cancelled")

        if not eligible_invoices(transaction, [invoice]):
            raise HTTPException(
                status_code=400,
                detail=f"A {'credit' if transaction.is_credit else 'debit'} transaction "
                       f"cannot settle a {invoice.type} invoice",
            )

        paired = await store.mark_transaction_matched(transaction_id, invoice.id, user_id)
    except StoreError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ValidationError:
        raise HTTPException(status_code=422, detail="Malformed invoice data")

    if not paired:
        raise HTTPException(status_code=409, detail="Transaction was changed by another request")

    logger.info(f"User {user_id} paired transaction {transaction_id} with invoice {invoice.id}")

    return {
        "success": True,
        "transaction_id": transaction_id,
        "invoice_id": invoice.id,
        "status": "matched",
    }


@router.post("/{transaction_id}/unpair")
async def unpair_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user),
    store: MatchingStore = Depends(get_matching_store),
):
    """
    Remove the invoice link of a matched (not yet posted) transaction.
    """
    try:
        transaction = await _load_transaction(store, transaction_id)

        if transaction.status != "matched":
            raise HTTPException(
                status_code=400,
                detail=f"Only matched transactions can be unpaired. Current status: {transaction.status}",
            )

        unpaired = await store.mark_transaction_unmatched(transaction_id, user_id)
    except StoreError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if not unpaired:
        raise HTTPException(status_code=409, detail="Transaction was changed by another request")

    logger.info(f"User {user_id} unpaired transaction {transaction_id}")

    return {
        "success": True,
        "transaction_id": transaction_id,
        "previous_invoice_id": transaction.matched_invoice_id,
        "status": "unmatched",
    }


async def _load_transaction(store: MatchingStore, transaction_id: str) -> BankTransaction:
    row = await store.get_transaction(transaction_id)
    if not row:
        raise HTTPException(status_code=404, detail="Bank transaction not found")

    try:
        return BankTransaction.model_validate(row)
    except ValidationError:
        raise HTTPException(status_code=422, detail="Malformed bank transaction data")
