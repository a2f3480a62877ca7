"""
Outstanding Balance Aging

One question: "How old is what each party owes, or is owed?"

No database, no caching. The caller fetches submitted invoices with an
outstanding balance; this module groups them by party and drops each
amount into one of four day-range buckets relative to the report date.
"""

import math
from collections.abc import Iterable
from datetime import date, timedelta
from typing import Any

from engine.errors import InvalidArgument
from engine.models import AgingEntry, OutstandingInvoice, parse_date

DEFAULT_RANGES: tuple[int, int, int] = (30, 60, 90)
"""Upper bounds (inclusive, in days) of buckets 1-3. Bucket 4 is everything older."""


def parse_report_date(value: str | date | None, today: date | None = None) -> date:
    """
    Resolve the report date.

    Empty or missing means today. Anything else must parse as a calendar
    date, otherwise InvalidArgument is raised.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return today or date.today()
    return parse_date(value)


def validate_ranges(ranges: Iterable[int]) -> tuple[int, int, int]:
    """Check bucket boundaries are three strictly increasing positive day counts."""
    bounds = tuple(ranges)
    if len(bounds) != 3:
        raise InvalidArgument("Exactly three aging range boundaries are required")
    if bounds[0] <= 0 or not (bounds[0] < bounds[1] < bounds[2]):
        raise InvalidArgument(f"Aging ranges must be positive and increasing, got {bounds}")
    return bounds  # type: ignore[return-value]


def age_in_days(report_date: date, posting_date: date) -> int:
    """
    Whole days between posting and report date.

    The difference is absolute: an invoice posted after the report date
    ages as if it were in the past.
    """
    diff = abs(report_date - posting_date)
    return math.ceil(diff / timedelta(days=1))


def age_bucket(age_days: int, ranges: tuple[int, int, int] = DEFAULT_RANGES) -> int:
    """
    Bucket 1..4 for an age in days. First match wins.

    With the default ranges: 0-30 -> 1, 31-60 -> 2, 61-90 -> 3, 91+ -> 4.
    """
    first, second, third = ranges
    if age_days <= first:
        return 1
    if age_days <= second:
        return 2
    if age_days <= third:
        return 3
    return 4


def build_aging(
    invoices: Iterable[OutstandingInvoice],
    party_type: str,
    report_date: date,
    ranges: tuple[int, int, int] = DEFAULT_RANGES,
) -> list[AgingEntry]:
    """
    Group outstanding invoices by party and bucket their amounts by age.

    One entry per distinct party (grouped verbatim, case-sensitive). The
    first invoice seen for a party sets party_name and currency; later
    invoices are not checked for a matching currency.
    """
    parties: dict[str, AgingEntry] = {}

    for inv in invoices:
        entry = parties.get(inv.party)
        if entry is None:
            entry = AgingEntry(
                party_type=party_type,
                party=inv.party,
                party_name=inv.party_name,
                currency=inv.currency,
            )
            parties[inv.party] = entry

        bucket = age_bucket(age_in_days(report_date, inv.posting_date), ranges)
        entry.add(bucket, inv.outstanding_amount)

    return list(parties.values())


def aging_totals(entries: Iterable[AgingEntry]) -> dict[str, Any]:
    """Column totals across all aging rows (report footer)."""
    totals = {"range1": 0.0, "range2": 0.0, "range3": 0.0, "range4": 0.0}
    for entry in entries:
        totals["range1"] += entry.range1
        totals["range2"] += entry.range2
        totals["range3"] += entry.range3
        totals["range4"] += entry.range4
    totals["total_outstanding"] = (
        totals["range1"] + totals["range2"] + totals["range3"] + totals["range4"]
    )
    return totals
