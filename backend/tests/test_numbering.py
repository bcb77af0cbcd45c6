"""Document number sequencer."""

from datetime import date

import pytest

from app.config import settings
from app.utils.numbering import build_prefix, format_number, get_format, next_number


@pytest.mark.unit
class TestFormats:
    def test_default_formats(self):
        on = date(2026, 7, 4)
        assert format_number(get_format("invoice"), "AE", on, 12) == "INVAE260012"
        assert format_number(get_format("purchase_invoice"), "AE", on, 3) == "PIAE260003"
        assert format_number(get_format("receipt"), "AE", on, 7) == "RVAE26007"
        assert format_number(get_format("payment"), "IN", on, 1) == "PVIN26001"
        assert format_number(get_format("job"), "AE", on, 42) == "26AE0042"

    def test_prefix_blanks_sequence_slot(self):
        assert build_prefix("INV{office}{yy}{seq:4}", "AE", date(2026, 1, 1)) == "INVAE26#"
        assert build_prefix("INV-{date}-{seq:3}", "AE", date(2026, 1, 2)) == "INV-20260102-#"

    def test_overflowing_width_is_not_truncated(self):
        assert format_number("RV{seq:3}", "AE", date(2026, 1, 1), 1234) == "RV1234"

    def test_override_from_settings(self, monkeypatch):
        monkeypatch.setitem(settings.number_formats, "invoice", "INV-{office}-{seq:5}")
        assert get_format("invoice") == "INV-{office}-{seq:5}"
        assert get_format("receipt") == "RV{office}{yy}{seq:3}"


@pytest.mark.integration
@pytest.mark.asyncio
class TestNextNumber:
    async def test_sequence_is_monotonic(self, db_session):
        on = date(2026, 2, 1)
        numbers = [await next_number(db_session, "invoice", "AE", on) for _ in range(3)]
        assert numbers == ["INVAE260001", "INVAE260002", "INVAE260003"]

    async def test_offices_and_kinds_count_separately(self, db_session):
        on = date(2026, 2, 1)
        assert await next_number(db_session, "invoice", "AE", on) == "INVAE260001"
        assert await next_number(db_session, "invoice", "IN", on) == "INVIN260001"
        assert await next_number(db_session, "receipt", "AE", on) == "RVAE26001"
        assert await next_number(db_session, "invoice", "AE", on) == "INVAE260002"

    async def test_new_year_restarts_counter(self, db_session):
        assert await next_number(db_session, "invoice", "AE", date(2026, 12, 31)) == "INVAE260001"
        assert await next_number(db_session, "invoice", "AE", date(2027, 1, 1)) == "INVAE270001"
        assert await next_number(db_session, "invoice", "AE", date(2026, 12, 31)) == "INVAE260002"

    async def test_format_without_year_keeps_counting(self, db_session, monkeypatch):
        monkeypatch.setitem(settings.number_formats, "invoice", "INV{office}{seq:4}")
        assert await next_number(db_session, "invoice", "AE", date(2026, 12, 31)) == "INVAE0001"
        assert await next_number(db_session, "invoice", "AE", date(2027, 1, 1)) == "INVAE0002"
