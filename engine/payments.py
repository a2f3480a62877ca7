"""
Payment Entry documents.

Payments are created as drafts (docstatus 0); submitting them is left to
the ERP. Amounts are recorded 1:1: received_amount mirrors paid_amount and
both exchange rates are 1, so multi-currency payments are not converted.
"""

from collections.abc import Iterable
from datetime import date
from typing import Any

from engine.errors import InvalidArgument, MissingParameter
from engine.models import PaymentReference

PAYMENT_TYPES = ("Receive", "Pay")
DEFAULT_MODE_OF_PAYMENT = "Cash"


def build_payment_entry(
    *,
    payment_type: str | None,
    party_type: str | None,
    party: str | None,
    paid_amount: float | None,
    references: Iterable[PaymentReference] = (),
    company: str,
    today: date,
    posting_date: str | None = None,
    mode_of_payment: str | None = None,
    party_account: str | None = None,
    paid_to: str | None = None,
    paid_from: str | None = None,
    reference_no: str | None = None,
    reference_date: str | None = None,
) -> dict[str, Any]:
    """
    Build a draft Payment Entry for frappe.client.insert.

    party_account is the receivable/payable account of the invoices being
    settled: it becomes paid_from on a Receive and paid_to on a Pay.
    Explicit paid_to/paid_from win over that mapping. References with
    nothing allocated are dropped.
    """
    if not payment_type or not party_type or not party or not paid_amount:
        raise MissingParameter("Missing required fields")
    if payment_type not in PAYMENT_TYPES:
        raise InvalidArgument(f"payment_type must be one of {', '.join(PAYMENT_TYPES)}")

    doc: dict[str, Any] = {
        "doctype": "Payment Entry",
        "payment_type": payment_type,
        "party_type": party_type,
        "party": party,
        "posting_date": posting_date or today.isoformat(),
        "mode_of_payment": mode_of_payment or DEFAULT_MODE_OF_PAYMENT,
        "paid_amount": paid_amount,
        "received_amount": paid_amount,
        "source_exchange_rate": 1,
        "target_exchange_rate": 1,
        "references": [
            {
                "reference_doctype": ref.reference_doctype,
                "reference_name": ref.reference_name,
                "allocated_amount": ref.allocated_amount,
            }
            for ref in references
            if ref.allocated_amount > 0
        ],
        "company": company,
    }

    if party_account:
        if payment_type == "Receive":
            doc["paid_from"] = party_account
        else:
            doc["paid_to"] = party_account

    if paid_to:
        doc["paid_to"] = paid_to
    if paid_from:
        doc["paid_from"] = paid_from
    if reference_no:
        doc["reference_no"] = reference_no
    if reference_date:
        doc["reference_date"] = reference_date

    return doc


def shape_payment_entry(doc: dict[str, Any]) -> dict[str, Any]:
    """List-view projection of a Payment Entry."""
    return {
        "name": doc.get("name"),
        "payment_type": doc.get("payment_type"),
        "party_type": doc.get("party_type"),
        "party": doc.get("party"),
        "party_name": doc.get("party_name"),
        "posting_date": doc.get("posting_date"),
        "mode_of_payment": doc.get("mode_of_payment"),
        "paid_amount": doc.get("paid_amount"),
        "docstatus": doc.get("docstatus"),
        "company": doc.get("company"),
    }
