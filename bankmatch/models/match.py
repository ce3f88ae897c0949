# bankmatch/models/match.py

from typing import Optional, Literal
from pydantic import BaseModel, Field


# ============================================
# Confidence Scoring
# ============================================

class ConfidenceBreakdown(BaseModel):
    """Breakdown of how a candidate's confidence was calculated."""

    reference_score: int = Field(ge=0, le=50, description="0 or 50 points for variable symbol match")
    amount_score: int = Field(ge=0, le=30, description="0 or 30 points for remaining amount match")
    account_score: int = Field(ge=0, le=10, description="0 or 10 points for counterparty IBAN match")
    name_score: int = Field(ge=0, le=10, description="0 or 10 points for counterparty name match")
    total: int = Field(ge=0, le=100, description="Total confidence points")
    factors: list[str] = Field(default_factory=list, description="Human-readable factors")


# ============================================
# Candidates and results
# ============================================

class MatchCandidate(BaseModel):
    """An invoice proposed as the counterpart of a bank transaction."""

    invoice_id: str
    invoice_number: str
    contact_name: str = ""
    total: float
    remaining: float
    confidence: float = Field(gt=0, le=1)
    match_reason: str
    breakdown: ConfidenceBreakdown


class MatchResult(BaseModel):
    """Ranked candidates for one bank transaction."""

    transaction_id: str
    candidates: list[MatchCandidate] = Field(default_factory=list)
    best_match: Optional[MatchCandidate] = None
    auto_match: bool = False


# ============================================
# Auto-matching run
# ============================================

SkipReason = Literal[
    "invalid_record",
    "not_eligible",
    "scoring_failed",
    "invoice_already_claimed",
    "transaction_changed",
    "persist_failed",
]


class AutoMatchDetail(BaseModel):
    """A transaction ↔ invoice link committed by an auto-matching run."""

    transaction_id: str
    invoice_id: str
    confidence: float


class SkippedTransaction(BaseModel):
    """A transaction the run could not process, left unmatched for the next run."""

    transaction_id: str
    reason: SkipReason
    detail: Optional[str] = None


class AutoMatchResult(BaseModel):
    """Outcome of one auto-matching run."""

    matched: int = 0
    unmatched: int = 0
    details: list[AutoMatchDetail] = Field(default_factory=list)
    skipped: list[SkippedTransaction] = Field(default_factory=list)
