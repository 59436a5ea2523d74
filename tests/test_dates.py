from datetime import date

from fintrack.dates import excel_serial_to_date, normalize_date, parse_date, resolve_date


def test_parse_common_formats():
    assert parse_date("2024-01-05") == "2024-01-05"
    assert parse_date("01/05/2024") == "2024-01-05"
    assert parse_date("25/01/2024") == "2024-01-25"
    assert parse_date("05 Jan 2024") == "2024-01-05"
    assert parse_date("Jan 5, 2024") == "2024-01-05"
    assert parse_date("2024-01-05T10:30:00Z") == "2024-01-05"
    assert parse_date("01/05/2024 10:30") == "2024-01-05"


def test_parse_excel_serial():
    assert parse_date("45667") == "2025-01-10"
    assert excel_serial_to_date(45667) == "2025-01-10"


def test_parse_rejects_error_markers():
    assert parse_date("#####") is None
    assert parse_date("#VALUE!") is None
    assert parse_date("") is None
    assert parse_date(None) is None
    assert parse_date("not a date") is None


def test_normalize_date_keeps_unparseable_input():
    assert normalize_date("01/05/2024") == "2024-01-05"
    assert normalize_date("someday") == "someday"


def test_resolve_date_falls_back_to_today():
    today = date(2024, 3, 1)
    assert resolve_date("#####", today=today) == "2024-03-01"
    assert resolve_date("", today=today) == "2024-03-01"
    assert resolve_date("2024-01-05", today=today) == "2024-01-05"
