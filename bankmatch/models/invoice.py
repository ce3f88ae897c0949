# bankmatch/models/invoice.py

from typing import Optional, Literal
from pydantic import BaseModel, field_validator

# issued = money owed to the company, received = money owed by the company
InvoiceType = Literal["issued", "received"]

# Statuses that take an invoice out of candidacy (settled / voided)
CLOSED_INVOICE_STATUSES = ("paid", "cancelled")


class Invoice(BaseModel):
    """A receivable (issued) or payable (received) invoice."""

    id: str
    company_id: Optional[str] = None
    number: str = ""
    type: InvoiceType
    variable_symbol: Optional[str] = None
    total: float
    paid_amount: float = 0.0
    status: str
    contact_id: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True

    @field_validator("paid_amount", mode="before")
    @classmethod
    def _paid_amount_defaults_to_zero(cls, value):
        return 0.0 if value is None else value

    @field_validator("number", mode="before")
    @classmethod
    def _number_defaults_to_empty(cls, value):
        return "" if value is None else value

    @property
    def remaining(self) -> float:
        return self.total - self.paid_amount

    @property
    def is_open(self) -> bool:
        return self.status not in CLOSED_INVOICE_STATUSES


class Contact(BaseModel):
    """A counterparty (customer or supplier)."""

    id: str
    name: str = ""
    registration_number: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True

    @field_validator("name", mode="before")
    @classmethod
    def _name_defaults_to_empty(cls, value):
        return "" if value is None else value


class ContactBankAccount(BaseModel):
    """Bank account (IBAN) on file for a contact."""

    contact_id: str
    iban: str

    class Config:
        from_attributes = True
        frozen = True
