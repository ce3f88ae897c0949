# bankmatch/core/normalizers.py

"""
Normalization of the identifiers compared during matching.

Counterparty names, IBANs and variable symbols arrive from bank statements
and from hand-typed contact records, so both sides are normalized the same
way before comparison.
"""

import re


def normalize_name(name: str | None) -> str:
    """
    Normalize a counterparty or contact name for containment checks.

    - Trim surrounding whitespace
    - Lowercase
    """
    if not name:
        return ""
    return name.strip().lower()


def normalize_iban(iban: str | None) -> str:
    """
    Normalize an account number (IBAN).

    Statements print IBANs in groups of four ("SK31 1200 ..."), contact
    records usually store them compact; all whitespace is removed.
    """
    if not iban:
        return ""
    return re.sub(r'\s+', '', iban).upper()


def normalize_reference(reference: str | None) -> str:
    """Normalize a payment reference code (variable symbol)."""
    if not reference:
        return ""
    return reference.strip()
