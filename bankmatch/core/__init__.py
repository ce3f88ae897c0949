# bankmatch/core/__init__.py

from bankmatch.core.scoring import (
    MatchContext,
    build_match_context,
    calculate_confidence,
    eligible_invoices,
    find_matches,
    find_matches_for_all,
    is_auto_match,
    score_transaction,
)
from bankmatch.core.auto_match import run_auto_matching, preview_matches
from bankmatch.core.normalizers import (
    normalize_iban,
    normalize_name,
    normalize_reference,
)

__all__ = [
    "MatchContext",
    "build_match_context",
    "calculate_confidence",
    "eligible_invoices",
    "find_matches",
    "find_matches_for_all",
    "is_auto_match",
    "score_transaction",
    "run_auto_matching",
    "preview_matches",
    "normalize_iban",
    "normalize_name",
    "normalize_reference",
]
