# ruff: noqa: E501
from datetime import date
from decimal import Decimal
from pathlib import Path

from statement_ingest.models import AccountKind
from statement_ingest.parsers import cmb_csv, credit_agricole_csv, revolut_csv

CA_HEADER = (
    "Compte de Dépôt carte n° 12345678901;\n"
    "Date;Libellé;Débit euros;Crédit euros;\n"
)


def _read(data_dir: Path, name: str, encoding: str = "utf-8") -> str:
    return (data_dir / name).read_bytes().decode(encoding)


# ---- Crédit Agricole --------------------------------------------------------


def test_ca_card_payment_is_a_debit():
    text = CA_HEADER + '01/02/2024;"PAIEMENT PAR CARTE X1234 APPLE.COM";5,99;\n'
    result = credit_agricole_csv.extract_transactions(text)
    assert result.skipped == 0
    [tx] = result.transactions
    assert tx.date == date(2024, 2, 1)
    assert "APPLE" in tx.label
    assert tx.amount == Decimal("-5.99")
    assert tx.account_number == "12345678901"
    assert tx.category_guess == "Abonnements"


def test_ca_multiline_quoted_label_is_one_record():
    text = CA_HEADER + (
        '03/02/2024;"PAIEMENT PAR CARTE X5678\n'
        "\n"
        'BOULANGERIE DU PORT 03/02";3,20;\n'
    )
    [tx] = credit_agricole_csv.extract_transactions(text).transactions
    assert tx.label == "CB BOULANGERIE DU PORT"
    assert tx.amount == Decimal("-3.20")
    assert "\n" not in tx.label


def test_ca_quoted_line_that_looks_like_a_section_end_stays_in_the_record():
    text = CA_HEADER + (
        '02/02/2024;"VIREMENT EN VOTRE FAVEUR\n'
        'M. DUPONT JEAN";;150,00;\n'
        '03/02/2024;"PAIEMENT PAR CARTE X1234 LIDL";9,90;\n'
    )
    result = credit_agricole_csv.extract_transactions(text)
    assert result.skipped == 0
    assert [(t.date, t.amount) for t in result.transactions] == [
        (date(2024, 2, 2), Decimal("150.00")),
        (date(2024, 2, 3), Decimal("-9.90")),
    ]
    assert result.transactions[1].label == "CB LIDL"


def test_ca_account_marker_inside_a_quoted_label_is_not_an_account():
    text = CA_HEADER + '02/02/2024;"REMBOURSEMENT\ncarte n° 99999999999";;10,00;\n'
    assert [a.number for a in credit_agricole_csv.extract_accounts(text)] == ["12345678901"]
    [tx] = credit_agricole_csv.extract_transactions(text).transactions
    assert tx.account_number == "12345678901"
    assert tx.amount == Decimal("10.00")


def test_ca_fixture_accounts_and_balances(data_dir):
    text = _read(data_dir, "credit_agricole_export.csv", "iso-8859-1")
    assert credit_agricole_csv.detect(text)
    accounts = credit_agricole_csv.extract_accounts(text)
    assert [a.number for a in accounts] == ["12345678901", "55512345678"]
    checking, youth = accounts
    assert checking.kind is AccountKind.CHECKING
    assert checking.display_label == "Compte de Dépôt"
    assert checking.masked_number == "***8901"
    assert checking.known_balance == Decimal("1234.56")
    assert youth.kind is AccountKind.YOUTH_SAVINGS
    assert youth.known_balance == Decimal("800.00")


def test_ca_fixture_transactions(data_dir):
    text = _read(data_dir, "credit_agricole_export.csv", "iso-8859-1")
    result = credit_agricole_csv.extract_transactions(text)
    got = [(t.date, t.label, t.amount, t.account_number) for t in result.transactions]
    assert got == [
        (date(2024, 2, 1), "CB APPLE.COM", Decimal("-5.99"), "12345678901"),
        (
            date(2024, 2, 2),
            "Virement de M DUPONT JEAN REF 123",
            Decimal("150.00"),
            "12345678901",
        ),
        (date(2024, 2, 3), "CB BOULANGERIE DU PORT", Decimal("-3.20"), "12345678901"),
        (date(2024, 2, 4), "Prélèvement FREE MOBILE", Decimal("-19.99"), "12345678901"),
        (date(2024, 1, 31), "Intérêts 3,00%", Decimal("12.34"), "55512345678"),
    ]
    # The impossible 31/02 date is the only malformed record.
    assert result.skipped == 1


def test_ca_account_filter(data_dir):
    text = _read(data_dir, "credit_agricole_export.csv", "iso-8859-1")
    result = credit_agricole_csv.extract_transactions(text, "55512345678")
    assert [t.label for t in result.transactions] == ["Intérêts 3,00%"]


def test_ca_simplify_label_rules():
    s = credit_agricole_csv.simplify_label
    # Whitespace is collapsed first, so the party runs to the end of the label.
    assert s("VIR INST VERS MME DURAND  loyer") == "Virement vers MME DURAND loyer"
    assert s("VIR INST DE ALICE") == "Virement de ALICE"
    assert s("INTERETS CREDITEURS") == "Intérêts créditeurs"
    long_label = "X" * 60
    assert s(long_label) == "X" * 47 + "..."


# ---- Crédit Mutuel de Bretagne -----------------------------------------------


def test_cmb_fixture_transactions(data_dir):
    text = _read(data_dir, "cmb_export.csv")
    assert cmb_csv.detect(text)
    assert [a.number for a in cmb_csv.extract_accounts(text)] == ["CMB_CSV_IMPORT"]

    result = cmb_csv.extract_transactions(text)
    got = [(t.date, t.label, t.amount, t.category_guess) for t in result.transactions]
    assert got == [
        (date(2024, 2, 2), "CB: U EXPRESS RENNES", Decimal("-23.45"), "Courses"),
        (
            date(2024, 2, 3),
            "Virement reçu: CAF D ILLE ET VILAINE",
            Decimal("120.00"),
            "Revenus",
        ),
        (date(2024, 2, 5), "Prélèvement: NETFLIX.COM", Decimal("-13.49"), "Abonnements"),
        (date(2024, 2, 6), "Virement vers: LIVRET A", Decimal("-50.00"), "Virement interne"),
        (date(2024, 2, 8), "CB: BOULANGERIE DU PORT", Decimal("-2.10"), "Restaurant"),
    ]
    assert result.skipped == 1


def test_cmb_category_is_guessed_from_the_cleaned_label():
    text = (
        '"Date operation";"Date valeur";"Libelle";"Debit";"Credit"\n'
        '"09/02/2024";"09/02/2024";"VIR DE LIVRET BLEU/EPARGNE";"";"+80,00"\n'
        '"10/02/2024";"10/02/2024";"CARTE 09/02 ALDI 35000 RENNES FR";"-7,80";""\n'
    )
    got = [(t.label, t.category_guess) for t in cmb_csv.extract_transactions(text).transactions]
    assert got == [
        ("Virement depuis: Livret", "Virement interne"),
        ("CB: ALDI", "Courses"),
    ]


def test_cmb_account_filter_for_other_account_is_empty(data_dir):
    text = _read(data_dir, "cmb_export.csv")
    assert cmb_csv.extract_transactions(text, "FR7600000000000").transactions == ()


def test_cmb_simplify_label_rules():
    s = cmb_csv.simplify_label
    assert s("VIR INST WERO WERO Paul M") == "Wero vers: Paul M"
    assert s("VIR DE LIVRET BLEU/EPARGNE") == "Virement depuis: Livret"
    assert s("VIR vers LIVRET BLEU") == "Virement vers: Livret"
    assert s("F COTISATION OFFRE JEUNES") == "Frais bancaires CMB"
    assert s("VIR TRESORERIE CHR RENNES") == "Salaire CHU/Hôpital"
    assert s("   ") == "Transaction"


# ---- Revolut ----------------------------------------------------------------


def test_revolut_fixture(data_dir):
    text = _read(data_dir, "revolut_export.csv")
    assert revolut_csv.detect(text)

    accounts = revolut_csv.extract_accounts(text)
    assert [(a.number, a.kind) for a in accounts] == [
        ("Actuel", AccountKind.CHECKING),
        ("Épargne", AccountKind.SAVINGS),
    ]

    result = revolut_csv.extract_transactions(text)
    got = [(t.date, t.label, t.amount, t.account_number) for t in result.transactions]
    assert got == [
        (date(2024, 2, 2), "Achat: Carrefour City", Decimal("-12.40"), "Actuel"),
        (
            date(2024, 2, 3),
            "Virement reçu: Apple Pay Top-Up by *1234",
            Decimal("100.00"),
            "Actuel",
        ),
        (date(2024, 2, 6), "Virement: Vers Poche, vacances", Decimal("50.00"), "Épargne"),
    ]
    # Pending, exchange and zero rows are filtered; only the truncated row is malformed.
    assert result.skipped == 1
    assert result.transactions[0].category_guess == "Courses"


def test_revolut_english_header_is_detected():
    header = "Type,Product,Started Date,Completed Date,Description,Amount,Fee,Currency,State,Balance"
    row = "Card Payment,Current,2024-02-01 10:00:00,2024-02-01 11:00:00,Tesco,-4.20,0.00,GBP,COMPLETED,10.00"
    text = f"{header}\n{row}\n"
    assert revolut_csv.detect(text)
    [tx] = revolut_csv.extract_transactions(text).transactions
    assert tx.label == "Achat: Tesco"
    assert tx.amount == Decimal("-4.20")


def test_parsing_is_deterministic(data_dir):
    text = _read(data_dir, "cmb_export.csv")
    assert cmb_csv.extract_transactions(text) == cmb_csv.extract_transactions(text)
