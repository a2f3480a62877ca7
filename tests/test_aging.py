"""
Tests for engine/aging.py - outstanding balance aging.

Tests validate:
- Age computation (absolute, whole days)
- Bucket boundaries for default and custom ranges
- Grouping: one entry per party, first invoice wins name and currency
- Bucket sums equal the entry total and the report totals
"""

from datetime import date, timedelta

import pytest

from engine.aging import (
    DEFAULT_RANGES,
    age_bucket,
    age_in_days,
    aging_totals,
    build_aging,
    parse_report_date,
    validate_ranges,
)
from engine.errors import InvalidArgument
from engine.models import OutstandingInvoice

REPORT_DATE = date(2025, 6, 30)


def _invoice(party, amount, days_old, name=None, party_name=None, currency="USD"):
    return OutstandingInvoice(
        name=name or f"INV-{party}-{days_old}",
        posting_date=REPORT_DATE - timedelta(days=days_old),
        party=party,
        party_name=party_name or party,
        outstanding_amount=amount,
        currency=currency,
    )


# =============================================================================
# AGE AND BUCKETS
# =============================================================================


class TestAgeInDays:
    def test_same_day_is_zero(self):
        assert age_in_days(REPORT_DATE, REPORT_DATE) == 0

    def test_past_posting_date(self):
        assert age_in_days(REPORT_DATE, REPORT_DATE - timedelta(days=45)) == 45

    def test_future_posting_date_ages_as_positive(self):
        """A posting date after the report date is not negative."""
        assert age_in_days(REPORT_DATE, REPORT_DATE + timedelta(days=5)) == 5


class TestAgeBucket:
    @pytest.mark.parametrize(
        "age,bucket",
        [(0, 1), (30, 1), (31, 2), (60, 2), (61, 3), (90, 3), (91, 4), (400, 4)],
    )
    def test_default_boundaries(self, age, bucket):
        assert age_bucket(age) == bucket

    def test_custom_ranges(self):
        ranges = (15, 45, 120)
        assert age_bucket(15, ranges) == 1
        assert age_bucket(16, ranges) == 2
        assert age_bucket(100, ranges) == 3
        assert age_bucket(121, ranges) == 4


class TestValidateRanges:
    def test_default_ranges_are_valid(self):
        assert validate_ranges(DEFAULT_RANGES) == (30, 60, 90)

    def test_rejects_non_increasing(self):
        with pytest.raises(InvalidArgument):
            validate_ranges((30, 30, 90))

    def test_rejects_non_positive(self):
        with pytest.raises(InvalidArgument):
            validate_ranges((0, 60, 90))

    def test_rejects_wrong_length(self):
        with pytest.raises(InvalidArgument):
            validate_ranges((30, 60))


class TestParseReportDate:
    def test_missing_means_today(self):
        assert parse_report_date(None, today=REPORT_DATE) == REPORT_DATE
        assert parse_report_date("  ", today=REPORT_DATE) == REPORT_DATE

    def test_iso_date(self):
        assert parse_report_date("2025-01-31") == date(2025, 1, 31)

    def test_datetime_string_drops_time(self):
        assert parse_report_date("2025-01-31 23:59:00") == date(2025, 1, 31)

    def test_garbage_is_invalid_argument(self):
        with pytest.raises(InvalidArgument):
            parse_report_date("not-a-date")

    @pytest.mark.parametrize("value", ["2025-01-31garbage", "2025-01-31 later", "2025-1-31", "20250131"])
    def test_trailing_or_malformed_text_is_invalid(self, value):
        with pytest.raises(InvalidArgument):
            parse_report_date(value)

    def test_iso_t_separator(self):
        assert parse_report_date("2025-01-31T08:30") == date(2025, 1, 31)


# =============================================================================
# AGGREGATION
# =============================================================================


class TestBuildAging:
    def test_single_party_two_buckets(self):
        """10 and 45 days old land in buckets 1 and 2 of one entry."""
        invoices = [_invoice("C1", 100, 10), _invoice("C1", 50, 45)]

        entries = build_aging(invoices, "Customer", REPORT_DATE)

        assert len(entries) == 1
        entry = entries[0]
        assert entry.party == "C1"
        assert entry.range1 == 100
        assert entry.range2 == 50
        assert entry.range3 == 0
        assert entry.range4 == 0
        assert entry.total_outstanding == 150

    def test_one_entry_per_party(self):
        invoices = [
            _invoice("C1", 10, 5),
            _invoice("C2", 20, 70),
            _invoice("C1", 30, 100),
            _invoice("C2", 40, 5),
        ]

        entries = build_aging(invoices, "Customer", REPORT_DATE)

        assert sorted(e.party for e in entries) == ["C1", "C2"]
        by_party = {e.party: e for e in entries}
        assert by_party["C1"].total_outstanding == 40
        assert by_party["C2"].total_outstanding == 60

    def test_party_key_is_case_sensitive(self):
        entries = build_aging([_invoice("acme", 1, 1), _invoice("ACME", 1, 1)], "Customer", REPORT_DATE)
        assert len(entries) == 2

    def test_first_invoice_sets_name_and_currency(self):
        invoices = [
            _invoice("S1", 10, 1, party_name="Supplier One", currency="EUR"),
            _invoice("S1", 10, 1, party_name="Renamed", currency="USD"),
        ]

        entry = build_aging(invoices, "Supplier", REPORT_DATE)[0]

        assert entry.party_name == "Supplier One"
        assert entry.currency == "EUR"
        assert entry.party_type == "Supplier"
        assert entry.total_outstanding == 20

    def test_bucket_sums_match_total(self):
        invoices = [_invoice("C1", amount, age) for amount, age in [(5, 0), (7, 31), (11, 61), (13, 91)]]

        entry = build_aging(invoices, "Customer", REPORT_DATE)[0]

        assert entry.range1 + entry.range2 + entry.range3 + entry.range4 == entry.total_outstanding
        assert entry.to_dict()["total_outstanding"] == 36

    def test_empty_input(self):
        assert build_aging([], "Customer", REPORT_DATE) == []

    def test_custom_ranges_move_amounts(self):
        invoices = [_invoice("C1", 100, 20)]
        entry = build_aging(invoices, "Customer", REPORT_DATE, ranges=(10, 20, 30))[0]
        assert entry.range2 == 100


class TestAgingTotals:
    def test_totals_sum_all_entries(self):
        invoices = [_invoice("C1", 100, 10), _invoice("C2", 50, 45), _invoice("C3", 25, 200)]
        entries = build_aging(invoices, "Customer", REPORT_DATE)

        totals = aging_totals(entries)

        assert totals == {
            "range1": 100,
            "range2": 50,
            "range3": 0,
            "range4": 25,
            "total_outstanding": 175,
        }

    def test_totals_of_nothing(self):
        assert aging_totals([])["total_outstanding"] == 0
