# bankmatch/routers/cron.py

"""
Scheduled jobs.

Called by the platform scheduler (every few hours and after statement
imports) to auto-match every company's unmatched transactions.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from bankmatch.core.auto_match import run_auto_matching
from bankmatch.database import MatchingStore, StoreError, get_matching_store
from bankmatch.dependencies import verify_cron_secret

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/bank-auto-match", dependencies=[Depends(verify_cron_secret)])
async def bank_auto_match(store: MatchingStore = Depends(get_matching_store)):
    """
    Run auto-matching for all companies.

    A failure for one company is reported and the next company is
    processed.
    """
    try:
        companies = await store.list_companies()
    except StoreError as e:
        raise HTTPException(status_code=502, detail=str(e))

    total_matched = 0
    errors: list[str] = []
    per_company = {}

    for company in companies:
        company_id = company.get("id")
        label = company.get("name") or company_id

        if not company_id:
            logger.error(f"Skipping company row without id: {company}")
            errors.append(f"{label or '<unnamed company>'}: missing id")
            continue

        try:
            result = await run_auto_matching(store, company_id, user_id=None)
        except Exception as e:
            logger.exception(f"Auto-match failed for company {label}")
            errors.append(f"{label}: {e}")
            continue

        total_matched += result.matched
        per_company[company_id] = {
            "matched": result.matched,
            "unmatched": result.unmatched,
            "skipped": len(result.skipped),
        }

    return {
        "success": True,
        "companies_checked": len(companies),
        "matched": total_matched,
        "companies": per_company,
        "errors": errors or None,
    }
