"""
Typed views of ERP documents.

Frappe returns loosely-typed JSON. Everything the engine computes on is
parsed into one of these dataclasses first; parsing is where missing or
malformed fields are rejected.
"""

import re
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any

from engine.errors import InvalidArgument, MissingParameter

PARTY_TYPES = ("Customer", "Supplier")

# Invoice doctype backing each party type
INVOICE_DOCTYPE = {"Customer": "Sales Invoice", "Supplier": "Purchase Invoice"}

# Field holding the party's display name on invoices and party masters
PARTY_NAME_FIELD = {"Customer": "customer_name", "Supplier": "supplier_name"}

# Receivable/payable account field on the invoice
PARTY_ACCOUNT_FIELD = {"Customer": "debit_to", "Supplier": "credit_to"}

# YYYY-MM-DD, optionally followed by a time of day
_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}(?:[ T]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)?")


def parse_date(value: Any) -> date:
    """
    Parse an ERP date value into a calendar date.

    Accepts date objects, ISO dates ("2025-01-31") and ISO datetimes
    ("2025-01-31 10:15:00"); the time of day is dropped.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"Invalid date: {value!r}")
    text = value.strip()
    if not _DATE_RE.fullmatch(text):
        raise InvalidArgument(f"Invalid date: {value!r}")
    try:
        return date.fromisoformat(text[:10])
    except ValueError as e:
        raise InvalidArgument(f"Invalid date: {value!r}") from e


def to_amount(value: Any, field_name: str = "amount") -> float:
    """Coerce a numeric ERP field to float. None counts as zero."""
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise InvalidArgument(f"Invalid {field_name}: {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"Invalid {field_name}: {value!r}") from e


def require_party_type(party_type: str | None) -> str:
    """Validate a party type, returning it unchanged."""
    if not party_type:
        raise MissingParameter("Party Type is required")
    if party_type not in PARTY_TYPES:
        raise InvalidArgument(f"Party Type must be one of {', '.join(PARTY_TYPES)}")
    return party_type


@dataclass
class OutstandingInvoice:
    name: str
    posting_date: date
    party: str
    party_name: str
    outstanding_amount: float
    currency: str

    @classmethod
    def from_doc(cls, doc: dict[str, Any], party_type: str) -> "OutstandingInvoice":
        """Parse a Sales/Purchase Invoice list row for the given party type."""
        party = doc.get(party_type.lower())
        if not party:
            raise InvalidArgument(f"Invoice {doc.get('name')!r} has no {party_type.lower()}")
        return cls(
            name=doc.get("name") or "",
            posting_date=parse_date(doc.get("posting_date")),
            party=party,
            party_name=doc.get(PARTY_NAME_FIELD[party_type]) or party,
            outstanding_amount=to_amount(doc.get("outstanding_amount"), "outstanding_amount"),
            currency=doc.get("currency") or "",
        )


@dataclass
class AgingEntry:
    party_type: str
    party: str
    party_name: str
    currency: str
    range1: float = 0.0
    range2: float = 0.0
    range3: float = 0.0
    range4: float = 0.0

    @property
    def total_outstanding(self) -> float:
        return self.range1 + self.range2 + self.range3 + self.range4

    def add(self, bucket: int, amount: float) -> None:
        """Accumulate an amount into bucket 1..4."""
        attr = f"range{bucket}"
        setattr(self, attr, getattr(self, attr) + amount)

    def to_dict(self) -> dict[str, Any]:
        return {
            "party_type": self.party_type,
            "party": self.party,
            "party_name": self.party_name,
            "total_outstanding": self.total_outstanding,
            "range1": self.range1,
            "range2": self.range2,
            "range3": self.range3,
            "range4": self.range4,
            "currency": self.currency,
        }


@dataclass
class PaymentReference:
    reference_doctype: str
    reference_name: str
    outstanding_amount: float
    allocated_amount: float = 0.0
    total_amount: float | None = None

    @classmethod
    def from_invoice(cls, doc: dict[str, Any], party_type: str) -> "PaymentReference":
        """Build an unallocated reference from an outstanding invoice row."""
        return cls(
            reference_doctype=INVOICE_DOCTYPE[party_type],
            reference_name=doc.get("name") or "",
            outstanding_amount=to_amount(doc.get("outstanding_amount"), "outstanding_amount"),
            total_amount=to_amount(doc.get("grand_total"), "grand_total"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class GLEntry:
    name: str
    posting_date: date
    account: str
    voucher_type: str
    voucher_no: str
    debit: float
    credit: float
    party_type: str | None = None
    party: str | None = None
    remarks: str | None = None
    against: str | None = None
    balance: float = 0.0

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> "GLEntry":
        return cls(
            name=doc.get("name") or "",
            posting_date=parse_date(doc.get("posting_date")),
            account=doc.get("account") or "",
            voucher_type=doc.get("voucher_type") or "",
            voucher_no=doc.get("voucher_no") or "",
            debit=to_amount(doc.get("debit"), "debit"),
            credit=to_amount(doc.get("credit"), "credit"),
            party_type=doc.get("party_type") or None,
            party=doc.get("party") or None,
            remarks=doc.get("remarks") or None,
            against=doc.get("against") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["posting_date"] = self.posting_date.isoformat()
        return data

