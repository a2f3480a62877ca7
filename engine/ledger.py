"""
General ledger report.

GL Entries come back from the ERP in posting-date order; the running
balance is debit minus credit accumulated in that order.
"""

from collections.abc import Iterable
from typing import Any

from engine.errors import MissingParameter
from engine.models import GLEntry, parse_date

GL_FIELDS = [
    "name",
    "posting_date",
    "account",
    "party_type",
    "party",
    "voucher_type",
    "voucher_no",
    "debit",
    "credit",
    "remarks",
    "against",
]


def gl_filters(
    from_date: str | None,
    to_date: str | None,
    account: str | None = None,
    party_type: str | None = None,
    party: str | None = None,
) -> list[list[Any]]:
    """Frappe filters for a GL query. Both dates are required and must parse."""
    if not from_date or not to_date:
        raise MissingParameter("From Date and To Date are required")
    start = parse_date(from_date)
    end = parse_date(to_date)

    filters: list[list[Any]] = [
        ["posting_date", ">=", start.isoformat()],
        ["posting_date", "<=", end.isoformat()],
    ]
    if account:
        filters.append(["account", "=", account])
    if party_type:
        filters.append(["party_type", "=", party_type])
    if party:
        filters.append(["party", "=", party])
    return filters


def with_running_balance(entries: Iterable[GLEntry]) -> list[GLEntry]:
    """Set each entry's balance to the cumulative debit - credit so far."""
    balance = 0.0
    result = []
    for entry in entries:
        balance += entry.debit - entry.credit
        entry.balance = balance
        result.append(entry)
    return result


def ledger_totals(entries: Iterable[GLEntry]) -> dict[str, float]:
    debit = 0.0
    credit = 0.0
    for entry in entries:
        debit += entry.debit
        credit += entry.credit
    return {"debit": debit, "credit": credit, "balance": debit - credit}
