# bankmatch/database.py

import logging
from functools import lru_cache
from typing import Optional

import httpx
from postgrest.exceptions import APIError
from supabase import create_client, Client

from bankmatch.config import get_settings
from bankmatch.models import CLOSED_INVOICE_STATUSES

logger = logging.getLogger(__name__)

settings = get_settings()


class StoreError(Exception):
    """The data store could not be read or written."""


@lru_cache()
def get_supabase_admin() -> Client:
    """Admin client (bypasses RLS - use carefully)."""
    return create_client(
        settings.supabase_url,
        settings.supabase_service_role_key,
    )


# ============================================
# Matching store
# ============================================

class MatchingStore:
    """
    Reads and writes the rows the matching engine works on.

    Rows are returned as plain dicts; validation into models happens in the
    caller so that one malformed row never hides the rest of the batch.
    """

    def __init__(self, client: Client):
        self.client = client

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"Store failure while trying to {action}: {e}")
            raise StoreError(f"Failed to {action}: {e}") from e

    async def get_unmatched_transactions(
        self,
        company_id: str,
        bank_account_id: str = None,
        limit: int = 200,
    ) -> list[dict]:
        """Get unmatched bank transactions without an invoice link."""
        query = (
            self.client.table("bank_transactions")
            .select("*")
            .eq("company_id", company_id)
            .eq("status", "unmatched")
            .is_("matched_invoice_id", "null")
            .is_("deleted_at", "null")
        )

        if bank_account_id:
            query = query.eq("bank_account_id", bank_account_id)

        response = self._execute(
            query.order("transaction_date", desc=True).limit(limit),
            "load unmatched transactions",
        )
        return response.data or []

    async def get_open_invoices(self, company_id: str) -> list[dict]:
        """Get invoices that are neither paid nor cancelled."""
        query = (
            self.client.table("invoices")
            .select("id, company_id, number, type, variable_symbol, total, paid_amount, status, contact_id")
            .eq("company_id", company_id)
            .is_("deleted_at", "null")
            .not_.in_("status", list(CLOSED_INVOICE_STATUSES))
        )
        response = self._execute(query, "load open invoices")
        return response.data or []

    async def get_contacts(self, company_id: str) -> list[dict]:
        """Get all contacts of a company."""
        query = (
            self.client.table("contacts")
            .select("id, name, registration_number")
            .eq("company_id", company_id)
            .is_("deleted_at", "null")
        )
        response = self._execute(query, "load contacts")
        return response.data or []

    async def get_contact_bank_accounts(self, company_id: str) -> list[dict]:
        """Get all contact ↔ IBAN associations of a company."""
        query = (
            self.client.table("contact_bank_accounts")
            .select("contact_id, iban")
            .eq("company_id", company_id)
        )
        response = self._execute(query, "load contact bank accounts")
        return response.data or []

    async def get_transaction(self, transaction_id: str) -> Optional[dict]:
        """Get a single bank transaction."""
        query = (
            self.client.table("bank_transactions")
            .select("*")
            .eq("id", transaction_id)
            .is_("deleted_at", "null")
        )
        response = self._execute(query, "load bank transaction")
        return response.data[0] if response.data else None

    async def get_invoice(self, invoice_id: str) -> Optional[dict]:
        """Get a single invoice."""
        query = (
            self.client.table("invoices")
            .select("id, company_id, number, type, variable_symbol, total, paid_amount, status, contact_id")
            .eq("id", invoice_id)
            .is_("deleted_at", "null")
        )
        response = self._execute(query, "load invoice")
        return response.data[0] if response.data else None

    async def mark_transaction_matched(
        self,
        transaction_id: str,
        invoice_id: str,
        user_id: Optional[str],
    ) -> bool:
        """
        Link a transaction to an invoice and set it to matched.

        Only applies while the transaction is still unmatched; returns False
        if another writer got there first.
        """
        query = (
            self.client.table("bank_transactions")
            .update({
                "matched_invoice_id": invoice_id,
                "status": "matched",
                "updated_by": user_id,
            })
            .eq("id", transaction_id)
            .eq("status", "unmatched")
            .is_("matched_invoice_id", "null")
        )
        response = self._execute(query, f"match transaction {transaction_id}")
        return len(response.data) > 0 if response.data else False

    async def mark_transaction_unmatched(self, transaction_id: str, user_id: str) -> bool:
        """Remove the invoice link of a matched transaction."""
        query = (
            self.client.table("bank_transactions")
            .update({
                "matched_invoice_id": None,
                "status": "unmatched",
                "updated_by": user_id,
            })
            .eq("id", transaction_id)
            .eq("status", "matched")
        )
        response = self._execute(query, f"unmatch transaction {transaction_id}")
        return len(response.data) > 0 if response.data else False

    async def list_companies(self) -> list[dict]:
        """Get all active companies."""
        query = (
            self.client.table("companies")
            .select("id, name")
            .is_("deleted_at", "null")
        )
        response = self._execute(query, "load companies")
        return response.data or []


def get_matching_store() -> MatchingStore:
    """FastAPI dependency returning the Supabase-backed store."""
    return MatchingStore(get_supabase_admin())
