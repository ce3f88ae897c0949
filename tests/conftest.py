"""
Pytest configuration and shared fixtures.
"""

import os

# Settings require Supabase credentials; tests never reach Supabase.
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")

import copy
from typing import Optional

import pytest

from bankmatch.database import StoreError


class FakeMatchingStore:
    """In-memory stand-in for MatchingStore, holding rows as dicts."""

    def __init__(
        self,
        transactions: list[dict] = None,
        invoices: list[dict] = None,
        contacts: list[dict] = None,
        contact_bank_accounts: list[dict] = None,
        companies: list[dict] = None,
    ):
        self.transactions = {t["id"]: dict(t) for t in transactions or []}
        self.invoices = {i["id"]: dict(i) for i in invoices or []}
        self.contacts = list(contacts or [])
        self.contact_bank_accounts = list(contact_bank_accounts or [])
        self.companies = list(companies or [])

        self.writes: list[tuple] = []
        self.fail_writes_for: set[str] = set()
        self.fail_reads = False
        self.last_limit: Optional[int] = None

    def _check_reads(self):
        if self.fail_reads:
            raise StoreError("Failed to load: connection refused")

    async def get_unmatched_transactions(self, company_id, bank_account_id=None, limit=200):
        self._check_reads()
        self.last_limit = limit
        rows = [
            copy.deepcopy(t) for t in self.transactions.values()
            if t.get("company_id") == company_id
            and t.get("status") == "unmatched"
            and t.get("matched_invoice_id") is None
            and (bank_account_id is None or t.get("bank_account_id") == bank_account_id)
        ]
        return rows[:limit]

    async def get_open_invoices(self, company_id):
        self._check_reads()
        return [
            copy.deepcopy(i) for i in self.invoices.values()
            if i.get("company_id", company_id) == company_id
            and i.get("status") not in ("paid", "cancelled")
        ]

    async def get_contacts(self, company_id):
        self._check_reads()
        return copy.deepcopy(self.contacts)

    async def get_contact_bank_accounts(self, company_id):
        self._check_reads()
        return copy.deepcopy(self.contact_bank_accounts)

    async def get_transaction(self, transaction_id):
        self._check_reads()
        row = self.transactions.get(transaction_id)
        return copy.deepcopy(row) if row else None

    async def get_invoice(self, invoice_id):
        self._check_reads()
        row = self.invoices.get(invoice_id)
        return copy.deepcopy(row) if row else None

    async def mark_transaction_matched(self, transaction_id, invoice_id, user_id):
        if transaction_id in self.fail_writes_for:
            raise StoreError(f"Failed to match transaction {transaction_id}: timeout")

        row = self.transactions.get(transaction_id)
        if not row or row.get("status") != "unmatched" or row.get("matched_invoice_id") is not None:
            return False

        row.update(matched_invoice_id=invoice_id, status="matched", updated_by=user_id)
        self.writes.append(("match", transaction_id, invoice_id, user_id))
        return True

    async def mark_transaction_unmatched(self, transaction_id, user_id):
        row = self.transactions.get(transaction_id)
        if not row or row.get("status") != "matched":
            return False

        row.update(matched_invoice_id=None, status="unmatched", updated_by=user_id)
        self.writes.append(("unmatch", transaction_id, None, user_id))
        return True

    async def list_companies(self):
        self._check_reads()
        return copy.deepcopy(self.companies)


# ============================================
# Row builders
# ============================================

def make_transaction_row(
    id: str,
    amount: float,
    variable_symbol: str = None,
    counterparty_name: str = None,
    counterparty_iban: str = None,
    company_id: str = "company_1",
    bank_account_id: str = "bank_1",
    status: str = "unmatched",
    matched_invoice_id: str = None,
) -> dict:
    return {
        "id": id,
        "company_id": company_id,
        "bank_account_id": bank_account_id,
        "transaction_date": "2025-03-14",
        "amount": amount,
        "counterparty_name": counterparty_name,
        "counterparty_iban": counterparty_iban,
        "variable_symbol": variable_symbol,
        "description": f"Payment {id}",
        "status": status,
        "matched_invoice_id": matched_invoice_id,
    }


def make_invoice_row(
    id: str,
    total: float,
    type: str = "issued",
    variable_symbol: str = None,
    paid_amount: float = 0.0,
    status: str = "sent",
    contact_id: str = None,
    company_id: str = "company_1",
) -> dict:
    return {
        "id": id,
        "company_id": company_id,
        "number": f"INV-{id}",
        "type": type,
        "variable_symbol": variable_symbol,
        "total": total,
        "paid_amount": paid_amount,
        "status": status,
        "contact_id": contact_id,
    }


@pytest.fixture
def acme_contacts() -> tuple[list[dict], list[dict]]:
    """ACME with one IBAN on file."""
    contacts = [{"id": "contact_acme", "name": "ACME"}]
    accounts = [{"contact_id": "contact_acme", "iban": "SK31 1200 0000 1987 4263 7541"}]
    return contacts, accounts
