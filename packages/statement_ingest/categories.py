"""Keyword-based category guesses.

Guesses are advisory: they seed ``category_guess`` so a downstream classifier
(or a human) has a starting point. All lookups are pure, ordered, and
case-insensitive substring matches. The first matching entry wins, so more
specific keywords must come before the generic ones they contain.

Three tables are exposed:

- ``OPERATION_KEYWORDS`` then ``MERCHANT_KEYWORDS``: the shared table every
  parser starts from (operation type first, then merchant names).
- ``CMB_REFINEMENTS``: Crédit Mutuel de Bretagne exports label card payments
  generically, so a generic guess is refined against merchant groups.
- ``CMB_DOCUMENT_RULES``: regular-expression rules for cleaned labels coming
  out of CMB PDF statements.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

UNCATEGORIZED = "Non catégorisé"
GENERIC_SPENDING = "Dépense"
OTHER = "Autre"

type KeywordTable = Sequence[tuple[str, str]]

# Raw bank jargon and the simplified forms parsers rewrite it into
# (``CB: ...``, ``Virement reçu: ...``) are both listed.
OPERATION_KEYWORDS: KeywordTable = (
    ("PAIEMENT PAR CARTE", GENERIC_SPENDING),
    ("PRELEVEMENT", "Abonnements"),
    ("PRÉLÈVEMENT", "Abonnements"),
    ("PRLV", "Abonnements"),
    ("VIREMENT EMIS", "Virement interne"),
    ("VIREMENT EN VOTRE FAVEUR", "Revenus"),
    ("VIR VERS LIVRET", "Virement interne"),
    ("VIR DE LIVRET", "Virement interne"),
    ("VIREMENT DEPUIS: LIVRET", "Virement interne"),
    ("VIR INST VERS", "Virement interne"),
    ("VIR INST DE", "Revenus"),
    ("VIR DE", "Revenus"),
    ("VIREMENT VERS", "Virement interne"),
    ("VIREMENT REÇU", "Revenus"),
    ("INTERETS CREDITEURS", "Revenus"),
    ("INTÉRÊTS", "Revenus"),
    ("CARTE", GENERIC_SPENDING),
    ("CB:", GENERIC_SPENDING),
    ("RETRAIT", "Retrait"),
    ("CHEQUE", "Chèque"),
    ("CAF", "Revenus"),
    ("DRFIP", "Revenus"),
    ("SALAIRE", "Revenus"),
    ("TRESORERIE", "Revenus"),
    ("WERO", "Virement interne"),
    ("F COTISATION", "Abonnements"),
    ("FRAIS BANCAIRES", "Abonnements"),
)

MERCHANT_KEYWORDS: KeywordTable = (
    ("APPLE.COM", "Abonnements"),
    ("NETFLIX", "Abonnements"),
    ("SPOTIFY", "Abonnements"),
    ("FREE", "Abonnements"),
    ("ORANGE", "Abonnements"),
    ("SFR", "Abonnements"),
    ("BOUYGUES", "Abonnements"),
    ("GOOGLE ONE", "Abonnements"),
    ("AMAZON PRIME", "Abonnements"),
    ("DISNEY", "Abonnements"),
    ("BLISSIM", "Abonnements"),
    ("HPI INSTANT INK", "Abonnements"),
    ("PHARMACIE", "Santé"),
    ("PHCIE", "Santé"),
    ("DOCTEUR", "Santé"),
    ("DR ", "Santé"),
    ("SNCF", "Transport"),
    ("RATP", "Transport"),
    ("ESSENCE", "Transport"),
    ("TOTAL", "Transport"),
    ("SHELL", "Transport"),
    ("CARREFOUR", "Courses"),
    ("LECLERC", "Courses"),
    ("AUCHAN", "Courses"),
    ("LIDL", "Courses"),
    ("INTERMARCHE", "Courses"),
    ("U EXPRESS", "Courses"),
    ("SUPER U", "Courses"),
    ("HYPER U", "Courses"),
    ("MONOPRIX", "Courses"),
    ("CASINO", "Courses"),
    ("RESTAURANT", "Restaurant"),
    ("MCDO", "Restaurant"),
    ("KFC", "Restaurant"),
    ("BURGER", "Restaurant"),
    ("CREP", "Restaurant"),
    ("BEURRE SALE", "Restaurant"),
    ("LA FOURNEE", "Restaurant"),
    ("IZLY", "Restaurant"),
    ("UBER EATS", "Restaurant"),
    ("DELIVEROO", "Restaurant"),
    ("MANGO", "Shopping"),
    ("ZARA", "Shopping"),
    ("H&M", "Shopping"),
    ("H  M", "Shopping"),
    ("PRIMARK", "Shopping"),
    ("ETAM", "Shopping"),
    ("VEEPEE", "Shopping"),
    ("LA REDOUTE", "Shopping"),
    ("DECATHLON", "Loisirs"),
    ("IKEA", "Logement"),
    ("CASTORAMA", "Logement"),
    ("LEROY MERLIN", "Logement"),
    ("EDF", "Logement"),
    ("ENGIE", "Logement"),
    ("ZOOPLUS", OTHER),
)

# Grouped merchant keywords; each group maps to one category.
CMB_REFINEMENTS: Sequence[tuple[tuple[str, ...], str]] = (
    (
        (
            "U EXPRESS", "SUPER U", "HYPER U", "LECLERC", "CARREFOUR",
            "INTERMARCHE", "LIDL", "ALDI", "MONOPRIX",
        ),
        "Courses",
    ),
    (
        (
            "GOOGLE ONE", "NETFLIX", "SPOTIFY", "APPLE.COM", "AMAZON PRIME",
            "DISNEY", "BLISSIM", "HPI INSTANT INK", "DEEZER",
        ),
        "Abonnements",
    ),
    (
        (
            "MANGO", "ZARA", "H&M", "H  M", "PRIMARK", "ETAM", "VEEPEE",
            "LA REDOUTE", "KIABI", "C&A", "DECATHLON", "NORMAL",
        ),
        "Shopping",
    ),
    (("IKEA", "CASTORAMA", "LEROY MERLIN", "BRICO", "SOSTRENE GRENE"), "Logement"),
    (
        (
            "CREP", "RESTAURANT", "BEURRE SALE", "LA FOURNEE", "BOULANG",
            "CUISINE", "MCDO", "KFC", "BURGER", "UBER EATS", "DELIVEROO", "IZLY",
        ),
        "Restaurant",
    ),
    (("PHCIE", "PHARMACIE", "DR ", "DOCTEUR", "LONGEPE", "MEDECIN"), "Santé"),
    (("SNCF", "TRAIN", "ESSENCE", "TOTAL", "SHELL", "TAXI"), "Transport"),
    (("LIBRAIRIE", "PAPETERIE", "CINEMA", "FNAC", "CULTURA"), "Loisirs"),
    (("VIR INST VERS", "WERO", "VIR VERS LIVRET", "VIR DE LIVRET"), "Virement interne"),
    (("VIR DE", "CAF", "DRFIP", "TRESORERIE", "SALAIRE"), "Revenus"),
)

CMB_DOCUMENT_RULES: Sequence[tuple[re.Pattern[str], str]] = tuple(
    (re.compile(pattern, re.IGNORECASE), category)
    for pattern, category in (
        (r"virement|vir\s|livret|compte\s*cheque", "Virement interne"),
        (r"wero", "Virement interne"),
        (r"salaire|paie|tresorerie|drfip|caf\s|allocations", "Revenus"),
        (r"netflix|spotify|amazon|google\s*one|disney|deezer|apple", "Abonnements"),
        (r"edf|engie|electricite|gaz|eau|veolia", "Logement"),
        (r"assurance|mutuelle|maif|maaf|axa|generali", "Assurance"),
        (r"cotisation|frais\s*bancaires|offrejeunes", "Frais bancaires"),
        (r"leclerc|carrefour|auchan|lidl|intermarche|super|marche|courses", "Courses"),
        (r"decathlon|hm|hennes|zara|mango|kiabi|celio|jules", "Shopping"),
        (r"fnac|darty|boulanger|mediamarkt", "Shopping"),
        (r"veepee|zalando|asos|shein", "Shopping"),
        (r"papeterie|librairie", "Shopping"),
        (r"castorama|leroy\s*merlin|bricorama|brico", "Maison"),
        (r"zooplus|animaux|animalerie", "Animaux"),
        (r"restaurant|resto|mcdo|burger|pizza|kebab|sushi", "Restaurant"),
        (r"boulangerie|fournier|fournee|patisserie", "Restaurant"),
        (r"beurre\s*sale|creperie|cafe", "Restaurant"),
        (r"deliveroo|uber\s*eats|just\s*eat", "Restaurant"),
        (r"sncf|train|tgv|ouigo|ratp|metro|bus|transdev", "Transport"),
        (r"carburant|essence|total|shell|bp\s|station", "Transport"),
        (r"parking|autoroute|peage", "Transport"),
        (r"blablacar|uber(?!\s*eats)|taxi|vtc", "Transport"),
        (r"pharmacie|phcie|medecin|docteur|sante|hopital|clinique", "Santé"),
        (r"dentiste|ophtalmo|kine|osteo", "Santé"),
        (r"blissim|beaute|parfum", "Beauté"),
        (r"cinema|ugc|pathe|gaumont|theatre|concert|spectacle", "Loisirs"),
        (r"sostrene\s*grene|flying\s*tiger|hema|gifi|action", "Loisirs"),
    )
)


def lookup(label: str | None, table: KeywordTable) -> str | None:
    if not label:
        return None
    upper = label.upper()
    for keyword, category in table:
        if keyword in upper:
            return category
    return None


def guess_basic(label: str | None) -> str:
    """Shared guess: operation keywords first, then merchant names."""

    return (
        lookup(label, OPERATION_KEYWORDS)
        or lookup(label, MERCHANT_KEYWORDS)
        or UNCATEGORIZED
    )


def refine_cmb(label: str | None) -> str:
    upper = (label or "").upper()
    for keywords, category in CMB_REFINEMENTS:
        if any(k in upper for k in keywords):
            return category
    return OTHER


def guess_cmb(label: str | None) -> str:
    """Shared guess, refined against CMB merchant groups when it is generic."""

    category = guess_basic(label)
    if category in (UNCATEGORIZED, GENERIC_SPENDING):
        return refine_cmb(label)
    return category


def guess_cmb_document(label: str | None) -> str:
    lowered = (label or "").lower()
    for pattern, category in CMB_DOCUMENT_RULES:
        if pattern.search(lowered):
            return category
    return OTHER


__all__ = [
    "CMB_DOCUMENT_RULES",
    "CMB_REFINEMENTS",
    "GENERIC_SPENDING",
    "MERCHANT_KEYWORDS",
    "OPERATION_KEYWORDS",
    "OTHER",
    "UNCATEGORIZED",
    "guess_basic",
    "guess_cmb",
    "guess_cmb_document",
    "lookup",
]
