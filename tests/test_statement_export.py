from datetime import date

import pytest

from export.statement_export import date_window, export_statement, statement_tables
from sacco import mock_data
from sacco.models import StatementRequest


def _request(**values):
    return StatementRequest.model_validate({"dateRange": "all_time", **values})


def _john():
    return mock_data.members()[0]


def test_date_windows():
    today = date(2024, 6, 30)
    assert date_window(_request(), today) == (None, None)
    assert date_window(_request(dateRange="year_to_date"), today) == (date(2024, 1, 1), today)
    start, end = date_window(_request(dateRange="last_month"), today)
    assert end == today and start == date(2024, 5, 31)
    custom = _request(dateRange="custom", customStartDate="2024-02-01", customEndDate="2024-02-10")
    assert date_window(custom, today) == (date(2024, 2, 1), date(2024, 2, 10))


def test_comprehensive_tables_follow_include_flags():
    tables = statement_tables(
        _request(includeExternalIncome=True), _john(), mock_data.loans(), mock_data.savings()
    )
    assert list(tables) == ["Savings History", "Loans", "Transactions", "External Income"]
    assert len(tables["Savings History"]) == 2
    assert list(tables["Loans"]["Purpose"]) == ["Business expansion"]
    # two deposits plus the disbursement
    assert len(tables["Transactions"]) == 3


def test_statement_type_limits_sections():
    tables = statement_tables(_request(statementType="loans_only"), _john(), mock_data.loans(), mock_data.savings())
    assert list(tables) == ["Loans"]


def test_custom_range_filters_records():
    request = _request(dateRange="custom", customStartDate="2024-02-10", customEndDate="2024-02-28", statementType="savings_only")
    tables = statement_tables(request, _john(), mock_data.loans(), mock_data.savings())
    assert list(tables["Savings History"]["Amount"]) == [1_000_000]


def test_csv_export():
    data, mime, name = export_statement(_request(format="csv"), _john(), mock_data.loans(), mock_data.savings())
    assert mime == "text/csv"
    assert name == "MEM001_comprehensive.csv"
    text = data.decode("utf-8")
    assert text.splitlines()[0].startswith("Section,")
    assert "Monthly savings contribution" in text


def test_pdf_export():
    credibility = mock_data.credibility()[2]
    data, mime, name = export_statement(
        _request(format="pdf", includeCredibilityScore=True), _john(), mock_data.loans(), mock_data.savings(), credibility
    )
    assert mime == "application/pdf"
    assert name.endswith(".pdf")
    assert data.startswith(b"%PDF")


@pytest.mark.parametrize("name", ["Okello & Sons <Ltd>", "A < B", "Tom & Jerry"])
def test_pdf_export_with_markup_characters_in_name(name):
    member = _john().model_copy(update={"name": name})
    data, _, _ = export_statement(_request(format="pdf"), member, mock_data.loans(), mock_data.savings())
    assert data.startswith(b"%PDF")


@pytest.mark.parametrize("fmt", ["excel", "word"])
def test_unsupported_formats_raise(fmt):
    with pytest.raises(ValueError):
        export_statement(_request(format=fmt), _john(), mock_data.loans(), mock_data.savings())
