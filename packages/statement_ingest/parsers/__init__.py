"""Registered statement formats, in detection priority order.

More specific detectors come first: the Revolut header check is stricter
than the CMB header check, which is stricter than the broad Crédit Agricole
markers. Among documents, Crédit Agricole indicators are checked before the
Crédit Mutuel ones.
"""

from __future__ import annotations

from . import cmb_csv, cmb_pdf, credit_agricole_csv, credit_agricole_pdf, revolut_csv
from .base import StatementFormat

TABULAR_FORMATS: tuple[StatementFormat, ...] = (
    revolut_csv.FORMAT,
    cmb_csv.FORMAT,
    credit_agricole_csv.FORMAT,
)

DOCUMENT_FORMATS: tuple[StatementFormat, ...] = (
    credit_agricole_pdf.FORMAT,
    cmb_pdf.FORMAT,
)

__all__ = ["DOCUMENT_FORMATS", "StatementFormat", "TABULAR_FORMATS"]
