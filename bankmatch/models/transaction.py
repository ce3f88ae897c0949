# bankmatch/models/transaction.py

from datetime import date
from typing import Optional, Literal
from pydantic import BaseModel

TransactionStatus = Literal["unmatched", "matched", "posted"]


class BankTransaction(BaseModel):
    """One bank statement line, as imported for a company's bank account."""

    id: str
    company_id: str
    bank_account_id: str
    bank_statement_id: Optional[str] = None
    transaction_date: Optional[date] = None
    amount: float  # positive = credit (inflow), negative = debit (outflow)
    counterparty_name: Optional[str] = None
    counterparty_iban: Optional[str] = None
    variable_symbol: Optional[str] = None
    constant_symbol: Optional[str] = None
    specific_symbol: Optional[str] = None
    description: Optional[str] = None
    status: TransactionStatus = "unmatched"
    matched_invoice_id: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True

    @property
    def is_credit(self) -> bool:
        return self.amount > 0

    @property
    def is_debit(self) -> bool:
        return self.amount < 0

    @property
    def is_eligible(self) -> bool:
        """Only unmatched transactions without an invoice link can be matched."""
        return self.status == "unmatched" and self.matched_invoice_id is None
